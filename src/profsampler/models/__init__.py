"""
Data models for the profsampler package.

This module provides the configuration and runtime data structures
shared by the samplers, the viewer launcher and the orchestrator.
"""

from .config import (
    DEFAULT_VIEWER_COMMAND,
    CpuSamplingSpec,
    HeapSamplingSpec,
    RunConfig,
    ViewerConfig,
    default_output_dir,
)
from .runtime import Artifact, SampleOutcome, SamplerState, SamplerStats

__all__ = [
    # Configuration
    "DEFAULT_VIEWER_COMMAND",
    "CpuSamplingSpec",
    "HeapSamplingSpec",
    "RunConfig",
    "ViewerConfig",
    "default_output_dir",
    # Runtime
    "Artifact",
    "SampleOutcome",
    "SamplerState",
    "SamplerStats",
]
