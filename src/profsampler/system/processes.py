"""
Process tree termination for spawned viewer processes.

Viewers such as `go tool pprof` start child processes of their own, so
stopping only the direct child would leave the web UI running.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)


def is_process_alive(process: psutil.Process) -> bool:
    """Safely check if a process is still alive and not a zombie."""
    try:
        if not process.is_running():
            return False
        return process.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False


def _living_tree(parent: psutil.Process) -> List[psutil.Process]:
    """Return the parent and all of its living descendants."""
    processes = [parent]
    try:
        processes.extend(parent.children(recursive=True))
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        # Children may vanish while being enumerated.
        pass
    return [p for p in processes if is_process_alive(p)]


def terminate_process_tree(
    pid: int,
    name: str,
    graceful_timeout: float = 3.0,
    force_timeout: float = 2.0,
) -> bool:
    """
    Terminate a process and all of its descendants.

    Sends SIGTERM to the whole tree, waits up to `graceful_timeout`, then
    SIGKILLs any survivors and waits up to `force_timeout`.

    Args:
        pid: PID of the root process
        name: Human-readable name used in log messages
        graceful_timeout: Seconds to wait after SIGTERM
        force_timeout: Seconds to wait after SIGKILL

    Returns:
        True if no process of the tree is left running
    """
    if pid <= 0:
        logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
        return True

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {name} (PID: {pid}) already terminated")
        return True

    for phase, timeout in (("terminate", graceful_timeout), ("kill", force_timeout)):
        processes = _living_tree(parent)
        if not processes:
            return True

        logger.debug(f"Phase {phase}: signalling {len(processes)} processes of {name}")
        for process in processes:
            try:
                if phase == "terminate":
                    process.terminate()
                else:
                    process.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning(f"Access denied sending {phase} to PID {process.pid}")

        _, still_alive = psutil.wait_procs(processes, timeout=timeout)
        if not [p for p in still_alive if is_process_alive(p)]:
            logger.info(f"Stopped {name} (PID: {pid})")
            return True

    survivors = _living_tree(parent)
    if survivors:
        logger.error(
            f"Failed to stop {len(survivors)} processes of {name}: "
            f"{[p.pid for p in survivors]}"
        )
        return False
    return True
