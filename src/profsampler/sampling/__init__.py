"""
Periodic snapshot sampling.

One sampler per snapshot kind polls the diagnostic endpoint and writes
each snapshot to a timestamped artifact file.
"""

from .artifacts import (
    TIMESTAMP_FORMAT,
    artifact_filename,
    ensure_directory,
    format_timestamp,
    kind_directory,
    write_artifact,
)
from .base import SnapshotSampler
from .cpu import CpuSampler
from .heap import HeapSampler

__all__ = [
    # Samplers
    "SnapshotSampler",
    "HeapSampler",
    "CpuSampler",
    # Artifacts
    "TIMESTAMP_FORMAT",
    "artifact_filename",
    "ensure_directory",
    "format_timestamp",
    "kind_directory",
    "write_artifact",
]
