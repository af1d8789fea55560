"""
profsampler: periodic heap and CPU profile collection.

This package polls a local diagnostic HTTP endpoint for heap and CPU
snapshots, writes every snapshot to a timestamped file and, once a kind
has been fully sampled, opens an external viewer on a free local port.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Port allocation and process management
- sampling: Per-kind sampling loops and artifact files
- executor: Viewer process launching
- diagnostics: In-process diagnostic HTTP endpoint
- orchestration: Wiring of a complete run
- cli: Command-line interface

Usage:
    From command line:
        profsampler --port 6060 --heap-samples 5 --cpu-samples 5

    Programmatically, profiling the current process:
        import profsampler
        profsampler.start_profiling()
"""

from .config import clear_config_cache, get_config, load_config, set_config_path
from .executor import ViewerLauncher
from .models import (
    Artifact,
    CpuSamplingSpec,
    HeapSamplingSpec,
    RunConfig,
    SamplerState,
    SamplerStats,
    ViewerConfig,
)
from .orchestration import ProfilingOrchestrator, start_profiling
from .sampling import CpuSampler, HeapSampler, SnapshotSampler
from .system import PortAllocator
from .validation import PortExhaustedError, ProfilerError, ValidationError

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "start_profiling",
    "ProfilingOrchestrator",
    "get_config",
    "load_config",
    "set_config_path",
    "clear_config_cache",
    # Core components
    "PortAllocator",
    "SnapshotSampler",
    "HeapSampler",
    "CpuSampler",
    "ViewerLauncher",
    # Models
    "RunConfig",
    "HeapSamplingSpec",
    "CpuSamplingSpec",
    "ViewerConfig",
    "Artifact",
    "SamplerState",
    "SamplerStats",
    # Errors
    "ProfilerError",
    "PortExhaustedError",
    "ValidationError",
]
