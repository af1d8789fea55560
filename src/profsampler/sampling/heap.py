"""
Heap snapshot sampler.
"""

from ..models.config import HeapSamplingSpec, RunConfig
from ..models.runtime import SampleOutcome
from .base import SnapshotSampler


class HeapSampler(SnapshotSampler):
    """Takes a heap snapshot, then waits the configured interval, for every slot."""

    kind = "heap"
    label = "Heap"

    def __init__(self, config: RunConfig, *args, **kwargs):
        if config.heap is None:
            raise ValueError("heap sampling is disabled in this configuration")
        super().__init__(config, *args, **kwargs)
        self.spec: HeapSamplingSpec = config.heap

    @property
    def sample_count(self) -> int:
        return self.spec.sample_count

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/heap"

    @property
    def request_timeout(self) -> float:
        return self.config.request_timeout

    def pause_after(self, outcome: SampleOutcome, elapsed: float) -> float:
        # The interval is a fixed gap after each slot, whatever its outcome.
        return self.spec.interval
