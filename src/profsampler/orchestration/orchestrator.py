"""
Profiling run orchestration.

The orchestrator creates the output root, optionally starts the in-process
diagnostic server, and starts one independent sampler per enabled snapshot
kind. It does not wait for the samplers; callers that need to block (the CLI,
tests) use wait().
"""

import dataclasses
import logging
import time
from typing import Callable, List, Optional

import requests

from ..diagnostics.server import DiagnosticServer
from ..executor.viewer import ViewerLauncher
from ..models.config import RunConfig
from ..sampling.artifacts import ensure_directory
from ..sampling.base import SnapshotSampler
from ..sampling.cpu import CpuSampler
from ..sampling.heap import HeapSampler
from ..system.ports import PortAllocator
from ..validation import DirectoryCreateError, ErrorSeverity, handle_error
from .shared_state import RuntimeState, TimeoutConstants

logger = logging.getLogger(__name__)


class ProfilingOrchestrator:
    """
    Wires configuration, diagnostic server, samplers and viewer launcher.

    One PortAllocator is shared by every viewer launch of the run.
    """

    def __init__(
        self,
        config: RunConfig,
        port_allocator: Optional[PortAllocator] = None,
        session_factory: Optional[Callable[[], requests.Session]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Run configuration
            port_allocator: Allocator for viewer ports; built from the
                viewer configuration if omitted
            session_factory: Creates the HTTP session of each sampler; each
                sampler creates its own session if omitted
            sleep: Wait function handed to the samplers
        """
        self.config = config
        self.port_allocator = port_allocator or PortAllocator(
            base_port=config.viewer.base_port,
            max_attempts=config.viewer.max_attempts,
        )
        self.viewer_launcher = ViewerLauncher(self.port_allocator, config.viewer)
        self.session_factory = session_factory
        self._sleep = sleep
        self.state = RuntimeState()

    @property
    def samplers(self) -> List[SnapshotSampler]:
        return list(self.state.samplers)

    def start(self) -> bool:
        """
        Start the run and return without waiting for the samplers.

        Returns:
            False if the output root could not be created, in which case
            nothing was started
        """
        if self.state.started:
            raise RuntimeError("Profiling run already started")

        try:
            ensure_directory(self.config.output_dir)
        except DirectoryCreateError as e:
            handle_error(
                error=e,
                context="creating profile directory",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return False

        self.state.started = True
        logger.info(f"Profiles will be saved in: {self.config.output_dir}")

        if self.config.serve_diagnostics:
            self._start_server()

        self.state.samplers = self.build_samplers()
        if not self.state.samplers:
            logger.warning("No snapshot kind enabled, nothing to sample")

        for sampler in self.state.samplers:
            sampler.start()
        return True

    def _start_server(self) -> None:
        server = DiagnosticServer(
            port=self.config.port,
            rate=self.config.rate,
            host=self.config.host,
            path=self.config.diagnostic_path,
        )
        try:
            server.start()
        except OSError as e:
            # Samplers still run; each slot reports the unreachable endpoint.
            handle_error(
                error=e,
                context="starting diagnostic server",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return

        self.state.server = server
        if server.port != self.config.port:
            self.config = dataclasses.replace(self.config, port=server.port)

    def build_samplers(self) -> List[SnapshotSampler]:
        """Create one sampler per enabled kind."""
        launcher = self.viewer_launcher if self.config.viewer.enabled else None
        samplers: List[SnapshotSampler] = []
        for sampler_cls, spec in ((HeapSampler, self.config.heap), (CpuSampler, self.config.cpu)):
            if spec is None:
                continue
            session = self.session_factory() if self.session_factory else None
            samplers.append(
                sampler_cls(self.config, launcher, session=session, sleep=self._sleep)
            )
        return samplers

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every sampler has finished, or until `timeout` elapses
        or shutdown is requested.

        Returns:
            True if all samplers finished
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for sampler in self.state.samplers:
            while not sampler.join(TimeoutConstants.WAIT_POLL_INTERVAL):
                if self.state.shutdown_requested.is_set():
                    return False
                if deadline is not None and time.monotonic() >= deadline:
                    return False
        return True

    def request_shutdown(self) -> None:
        """Stop waiting. Sampler threads are daemons and end with the process."""
        self.state.shutdown_requested.set()

    def wait_for_viewers(self) -> None:
        """Block while any launched viewer is still running."""
        while self.viewer_launcher.active_viewers():
            if self.state.shutdown_requested.wait(TimeoutConstants.WAIT_POLL_INTERVAL):
                return

    def shutdown(self, stop_viewers: bool = False) -> None:
        """Stop the diagnostic server and, optionally, all running viewers."""
        if stop_viewers:
            self.viewer_launcher.stop_all(graceful_timeout=TimeoutConstants.VIEWER_GRACEFUL_TIMEOUT)
        if self.state.server is not None:
            self.state.server.stop(timeout=TimeoutConstants.SERVER_STOP_TIMEOUT)
            self.state.server = None


def start_profiling(config: Optional[RunConfig] = None) -> ProfilingOrchestrator:
    """
    Profile the calling process.

    Starts the in-process diagnostic server and the samplers in background
    threads, then returns. `None` selects the default configuration: 10 heap
    snapshots 10 s apart and 10 CPU profiles of 10 s each, viewers enabled.
    """
    if config is None:
        config = RunConfig()
    if not config.serve_diagnostics:
        config = dataclasses.replace(config, serve_diagnostics=True)

    orchestrator = ProfilingOrchestrator(config)
    orchestrator.start()
    return orchestrator
