"""
CPU profile sampler.

A CPU profile request blocks on the server for the whole capture window, so
the request itself paces the loop. A slot that fails early waits out the rest
of its window, so failed and successful slots keep the same cadence.
"""

from ..models.config import CpuSamplingSpec, RunConfig
from ..models.runtime import SampleOutcome
from .base import SnapshotSampler


class CpuSampler(SnapshotSampler):
    """Collects CPU profiles back to back, one capture window per slot."""

    kind = "cpu"
    label = "CPU"

    def __init__(self, config: RunConfig, *args, **kwargs):
        if config.cpu is None:
            raise ValueError("CPU sampling is disabled in this configuration")
        super().__init__(config, *args, **kwargs)
        self.spec: CpuSamplingSpec = config.cpu

    @property
    def sample_count(self) -> int:
        return self.spec.sample_count

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/profile?seconds={self.spec.seconds}"

    @property
    def request_timeout(self) -> float:
        # Must outlast the server-side capture window.
        return self.spec.seconds + self.config.cpu_timeout_margin

    def pause_after(self, outcome: SampleOutcome, elapsed: float) -> float:
        return max(0.0, self.spec.seconds - elapsed)
