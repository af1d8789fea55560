"""
External viewer launching.

After a sampling loop finishes, the viewer is started on a freshly allocated
local port against the directory holding that kind's artifacts. The sampler
never waits for the viewer: a daemon thread reaps the process when it exits.
"""

import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..models.config import ViewerConfig
from ..system.ports import PortAllocator
from ..system.processes import terminate_process_tree
from ..validation import (
    ErrorSeverity,
    PortExhaustedError,
    ViewerSpawnError,
    handle_error,
    handle_subprocess_error,
)

logger = logging.getLogger(__name__)


@dataclass
class ViewerHandle:
    """A launched viewer process."""

    kind: str
    port: int
    command: List[str]
    process: subprocess.Popen
    started_at: float

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def running(self) -> bool:
        return self.process.poll() is None


class ViewerLauncher:
    """
    Spawns the external viewer for a directory of artifacts.

    One launcher is shared by all samplers; it draws every port from the
    same PortAllocator, so concurrent launches get distinct ports.
    """

    def __init__(self, port_allocator: PortAllocator, viewer_config: Optional[ViewerConfig] = None):
        self.port_allocator = port_allocator
        self.config = viewer_config or ViewerConfig()
        self._viewers: List[ViewerHandle] = []
        self._lock = threading.Lock()

    def build_command(self, port: int, artifact_dir: Path) -> List[str]:
        """Substitute `{port}` and `{pattern}` into the configured command."""
        pattern = str(Path(artifact_dir) / "*")
        return [arg.format(port=port, pattern=pattern) for arg in self.config.command]

    def launch(self, artifact_dir: Path, kind: str) -> Optional[ViewerHandle]:
        """
        Start the viewer for `artifact_dir` without waiting for it to exit.

        Args:
            artifact_dir: Directory holding one kind's artifacts
            kind: Snapshot kind, used in log messages

        Returns:
            The launched viewer, or None if no port was available or the
            process could not be started
        """
        try:
            port = self.port_allocator.acquire()
        except PortExhaustedError as e:
            handle_error(
                error=e,
                context=f"allocating a port for the {kind} viewer",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return None

        command = self.build_command(port, artifact_dir)
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            handle_subprocess_error(
                error=ViewerSpawnError(command, e),
                command=" ".join(command),
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return None

        handle = ViewerHandle(
            kind=kind,
            port=port,
            command=command,
            process=process,
            started_at=time.time(),
        )
        with self._lock:
            self._viewers.append(handle)

        logger.info(f"Opening {kind} profiles in browser at {handle.url}")

        reaper = threading.Thread(
            target=self._reap,
            args=(handle,),
            name=f"ViewerReaper-{kind}",
            daemon=True,
        )
        reaper.start()
        return handle

    def _reap(self, handle: ViewerHandle) -> None:
        """Wait for the viewer to exit so it does not linger as a zombie."""
        returncode = handle.process.wait()
        logger.debug(f"{handle.kind} viewer (PID: {handle.process.pid}) exited with code {returncode}")

    def viewers(self) -> List[ViewerHandle]:
        """All viewers launched so far."""
        with self._lock:
            return list(self._viewers)

    def active_viewers(self) -> List[ViewerHandle]:
        """Viewers that are still running."""
        return [v for v in self.viewers() if v.running]

    def stop_all(self, graceful_timeout: float = 3.0) -> None:
        """Terminate every running viewer together with its child processes."""
        for handle in self.active_viewers():
            terminate_process_tree(
                handle.process.pid,
                f"{handle.kind} viewer",
                graceful_timeout=graceful_timeout,
            )
