"""
Orchestration of a profiling run.

This module starts the diagnostic server and the per-kind samplers and
provides the handles the CLI uses to wait for and stop them.
"""

from .orchestrator import ProfilingOrchestrator, start_profiling
from .shared_state import RuntimeState, TimeoutConstants

__all__ = [
    "ProfilingOrchestrator",
    "RuntimeState",
    "TimeoutConstants",
    "start_profiling",
]
