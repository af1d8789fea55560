"""
Heap snapshots of the current interpreter.
"""

import logging
import pickle
import tracemalloc

logger = logging.getLogger(__name__)


def ensure_tracing(frames: int = 1) -> None:
    """Start tracemalloc unless allocations are already being traced."""
    if not tracemalloc.is_tracing():
        tracemalloc.start(frames)
        logger.info(f"Started tracemalloc with {frames} frame(s) per allocation")


def heap_snapshot() -> bytes:
    """
    Take a tracemalloc snapshot and serialize it.

    The bytes are in the same format as `tracemalloc.Snapshot.dump`, so a
    saved artifact can be opened with `tracemalloc.Snapshot.load`.
    """
    ensure_tracing()
    snapshot = tracemalloc.take_snapshot()
    return pickle.dumps(snapshot, pickle.HIGHEST_PROTOCOL)
