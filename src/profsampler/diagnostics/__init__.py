"""
In-process diagnostic endpoint.

Lets a Python program expose heap and CPU snapshots of itself over HTTP,
so the samplers can profile the program they are embedded in.
"""

from .cpu import DEFAULT_RATE, cpu_profile, sample_stacks, to_collapsed
from .heap import ensure_tracing, heap_snapshot
from .server import DiagnosticServer

__all__ = [
    "DEFAULT_RATE",
    "DiagnosticServer",
    "cpu_profile",
    "ensure_tracing",
    "heap_snapshot",
    "sample_stacks",
    "to_collapsed",
]
