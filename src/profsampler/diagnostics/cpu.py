"""
Statistical CPU profile of the current interpreter.

All thread stacks are sampled at a fixed rate for the requested window and
aggregated in collapsed stack format (`root;...;leaf count`), the input
format of FlameGraph and speedscope.
"""

import sys
import threading
import time
from collections import defaultdict
from typing import Dict

DEFAULT_RATE = 100


def _format_stack(frame) -> str:
    parts = []
    while frame is not None:
        code = frame.f_code
        parts.append(f"{code.co_name} ({code.co_filename}:{frame.f_lineno})")
        frame = frame.f_back
    parts.reverse()
    return ";".join(parts)


def sample_stacks(seconds: float, rate: int = DEFAULT_RATE) -> Dict[str, int]:
    """
    Sample every thread's stack `rate` times per second for `seconds`.

    Args:
        seconds: Length of the capture window
        rate: Samples per second; values <= 0 select DEFAULT_RATE

    Returns:
        Mapping of collapsed stack (prefixed with the thread name) to count
    """
    if rate <= 0:
        rate = DEFAULT_RATE
    interval = 1.0 / rate
    own_ident = threading.get_ident()
    counts: Dict[str, int] = defaultdict(int)

    deadline = time.monotonic() + seconds
    while True:
        names = {t.ident: t.name for t in threading.enumerate()}
        for ident, frame in sys._current_frames().items():
            if ident == own_ident:
                continue
            stack = _format_stack(frame)
            if not stack:
                continue
            thread_name = names.get(ident, f"Thread-{ident}")
            counts[f"{thread_name};{stack}"] += 1

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        time.sleep(min(interval, remaining))

    return counts


def to_collapsed(counts: Dict[str, int]) -> str:
    lines = [f"{stack} {count}" for stack, count in sorted(counts.items())]
    return "\n".join(lines)


def cpu_profile(seconds: float, rate: int = DEFAULT_RATE) -> bytes:
    """Collect a CPU profile over `seconds` and return it as UTF-8 collapsed stacks."""
    return to_collapsed(sample_stacks(seconds, rate)).encode("utf-8")
