"""
Runtime data models.

This module defines the state and result structures produced while a
sampling loop is running.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List


class SamplerState(Enum):
    """Lifecycle of one sampling loop."""
    IDLE = "idle"
    GRACE_PERIOD = "grace_period"
    SAMPLING = "sampling"
    DONE = "done"
    FAILED = "failed"


class SampleOutcome(Enum):
    """Result of a single sample slot."""
    SAVED = "saved"
    REQUEST_FAILED = "request_failed"
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class Artifact:
    """A snapshot persisted to disk. Artifacts are never modified or removed."""

    kind: str
    path: Path
    captured_at: datetime
    size_bytes: int


@dataclass
class SamplerStats:
    """
    Per-loop counters, written only by the loop that owns them.
    """

    attempted: int = 0
    saved: int = 0
    request_failures: int = 0
    read_failures: int = 0
    write_failures: int = 0
    artifacts: List[Artifact] = field(default_factory=list)

    def record(self, outcome: SampleOutcome) -> None:
        self.attempted += 1
        if outcome is SampleOutcome.SAVED:
            self.saved += 1
        elif outcome is SampleOutcome.REQUEST_FAILED:
            self.request_failures += 1
        elif outcome is SampleOutcome.READ_FAILED:
            self.read_failures += 1
        elif outcome is SampleOutcome.WRITE_FAILED:
            self.write_failures += 1

    @property
    def failed(self) -> int:
        return self.request_failures + self.read_failures + self.write_failures
