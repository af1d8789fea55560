"""
Configuration data models.

This module contains the configuration structures for a profiling run:
per-kind sampling settings, viewer settings, and the root run configuration.
A RunConfig is immutable once built and is shared read-only by every
sampler and viewer launcher.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_VIEWER_COMMAND = ["go", "tool", "pprof", "-http", ":{port}", "{pattern}"]


def default_output_dir() -> Path:
    """Return the timestamped default output root, e.g. profile/profiles_2024-05-01_12-00-00."""
    return Path("profile") / f"profiles_{time.strftime('%Y-%m-%d_%H-%M-%S')}"


@dataclass(frozen=True)
class HeapSamplingSpec:
    """
    Heap snapshot sampling, loaded from the `[heap]` section.
    """

    # Number of heap snapshots to take.
    sample_count: int = 10
    # Seconds to wait between two heap snapshots.
    interval: float = 10.0


@dataclass(frozen=True)
class CpuSamplingSpec:
    """
    CPU profile sampling, loaded from the `[cpu]` section.
    """

    # Number of CPU profiles to take.
    sample_count: int = 10
    # Server-side capture window of each CPU profile, in seconds.
    duration: float = 10.0

    @property
    def seconds(self) -> int:
        """Whole seconds sent as the `seconds` query parameter."""
        return max(1, int(self.duration))


@dataclass(frozen=True)
class ViewerConfig:
    """
    External viewer settings, loaded from the `[viewer]` section.
    """

    # Launch the viewer once a kind has finished sampling.
    enabled: bool = True
    # Argument templates; "{port}" and "{pattern}" are substituted at launch.
    command: List[str] = field(default_factory=lambda: list(DEFAULT_VIEWER_COMMAND))
    # First port tried by the port allocator.
    base_port: int = 21000
    # Number of consecutive ports probed per allocation.
    max_attempts: int = 20


@dataclass(frozen=True)
class RunConfig:
    """
    The root configuration object for one profiling run.
    """

    # [run]
    port: int = 6060
    output_dir: Path = field(default_factory=default_output_dir)
    rate: int = 100
    grace_period: float = 1.0
    host: str = "localhost"
    diagnostic_path: str = "/debug/pprof"
    request_timeout: float = 5.0
    cpu_timeout_margin: float = 3.0
    # Start the in-process diagnostic server before sampling.
    serve_diagnostics: bool = False

    # [heap], [cpu]; None disables the kind.
    heap: Optional[HeapSamplingSpec] = field(default_factory=HeapSamplingSpec)
    cpu: Optional[CpuSamplingSpec] = field(default_factory=CpuSamplingSpec)

    # [viewer]
    viewer: ViewerConfig = field(default_factory=ViewerConfig)

    @property
    def base_url(self) -> str:
        """Base URL of the diagnostic endpoint, without a trailing slash."""
        host = self.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"http://{host}:{self.port}{self.diagnostic_path.rstrip('/')}"
