"""
Shared data structures for the orchestration module.

This module defines the runtime state of one profiling run and the
timeout constants used when waiting for or stopping its components.
"""

import threading
from dataclasses import dataclass, field
from typing import List, Optional

from ..diagnostics.server import DiagnosticServer
from ..sampling.base import SnapshotSampler


@dataclass
class RuntimeState:
    """
    Runtime state of one profiling run, owned by the orchestrator.
    """
    server: Optional[DiagnosticServer] = None
    samplers: List[SnapshotSampler] = field(default_factory=list)
    started: bool = False
    shutdown_requested: threading.Event = field(default_factory=threading.Event)


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Poll period while waiting for samplers or viewers
    WAIT_POLL_INTERVAL = 0.5

    # Component shutdown
    SERVER_STOP_TIMEOUT = 5.0
    VIEWER_GRACEFUL_TIMEOUT = 3.0
