"""
Shared periodic sampling loop.

A sampler owns one thread that waits the grace period, then takes a fixed
number of snapshots from the diagnostic endpoint, writing each one to its
kind directory. Every per-sample failure is logged and the loop moves on to
the next slot; only a failure to create the kind directory ends the loop
early. Samplers of different kinds share nothing but the viewer launcher.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import requests

from ..executor.viewer import ViewerLauncher
from ..models.config import RunConfig
from ..models.runtime import SampleOutcome, SamplerState, SamplerStats
from ..validation import (
    DirectoryCreateError,
    EndpointUnreachableError,
    ErrorSeverity,
    ReadFailedError,
    WriteFailedError,
    handle_error,
    handle_file_error,
)
from .artifacts import ensure_directory, kind_directory, write_artifact

logger = logging.getLogger(__name__)


class SnapshotSampler(ABC):
    """
    Base class for the per-kind sampling loops.

    Subclasses define the endpoint URL, the request timeout and the pause
    between two slots.
    """

    kind: str = ""
    label: str = ""

    def __init__(
        self,
        config: RunConfig,
        viewer_launcher: Optional[ViewerLauncher] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            config: Run configuration, read only
            viewer_launcher: Launcher invoked once sampling is done; None
                disables the viewer
            session: HTTP session to use; a private one is created if omitted
            sleep: Function used for every wait
            clock: Source of capture timestamps
        """
        self.config = config
        self.viewer_launcher = viewer_launcher
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        self._clock = clock

        self.kind_dir: Path = kind_directory(config.output_dir, self.kind)
        self.state = SamplerState.IDLE
        self.stats = SamplerStats()
        self.thread: Optional[threading.Thread] = None

    # --- Per-kind behaviour ---

    @property
    @abstractmethod
    def sample_count(self) -> int:
        """Number of sample slots."""

    @property
    @abstractmethod
    def url(self) -> str:
        """Endpoint URL of one snapshot."""

    @property
    @abstractmethod
    def request_timeout(self) -> float:
        """Client timeout of one snapshot request, in seconds."""

    @abstractmethod
    def pause_after(self, outcome: SampleOutcome, elapsed: float) -> float:
        """Seconds to wait after a slot that took `elapsed` seconds."""

    # --- Thread management ---

    def start(self) -> None:
        """Run the loop in a daemon thread and return immediately."""
        if self.thread is not None:
            logger.warning(f"{self.label} sampler already started")
            return
        self.thread = threading.Thread(
            target=self.run,
            name=f"{self.label}Sampler",
            daemon=True,
        )
        self.thread.start()
        logger.debug(f"{self.label} sampler thread started")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the loop to finish.

        Returns:
            True if the loop has finished (or was never started)
        """
        if self.thread is None:
            return True
        self.thread.join(timeout=timeout)
        return not self.thread.is_alive()

    @property
    def finished(self) -> bool:
        return self.state in (SamplerState.DONE, SamplerState.FAILED)

    # --- Loop ---

    def run(self) -> SamplerStats:
        """Execute the whole loop in the calling thread."""
        try:
            self._run()
        except Exception as e:
            logger.error(f"Unexpected error in {self.kind} sampler: {e}", exc_info=True)
            self.state = SamplerState.FAILED
        finally:
            if self._owns_session and self._session is not None:
                self._session.close()
                self._session = None
        return self.stats

    def _run(self) -> None:
        try:
            ensure_directory(self.kind_dir)
        except DirectoryCreateError as e:
            handle_error(
                error=e,
                context=f"creating {self.kind} profile directory",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            self.state = SamplerState.FAILED
            return

        self.state = SamplerState.GRACE_PERIOD
        self._sleep(self.config.grace_period)

        self.state = SamplerState.SAMPLING
        count = self.sample_count
        for index in range(count):
            slot_started = time.monotonic()
            outcome = self.sample_once()
            self.stats.record(outcome)
            if index < count - 1:
                pause = self.pause_after(outcome, time.monotonic() - slot_started)
                if pause > 0:
                    self._sleep(pause)

        self.state = SamplerState.DONE
        logger.info(
            f"Finished {self.kind} sampling: {self.stats.saved}/{count} profiles saved "
            f"in {self.kind_dir}"
        )

        if self.viewer_launcher is not None:
            self.viewer_launcher.launch(self.kind_dir, self.kind)

    def sample_once(self) -> SampleOutcome:
        """Take one snapshot and persist it. Never raises for per-sample failures."""
        captured_at = self._clock()

        try:
            payload = self.fetch()
        except EndpointUnreachableError as e:
            handle_error(e, f"collecting {self.kind} profile", reraise=False, logger=logger)
            return SampleOutcome.REQUEST_FAILED
        except ReadFailedError as e:
            handle_error(e, f"reading {self.kind} profile data", reraise=False, logger=logger)
            return SampleOutcome.READ_FAILED

        try:
            artifact = write_artifact(self.kind_dir, self.kind, captured_at, payload)
        except WriteFailedError as e:
            handle_file_error(e, f"writing {self.kind} profile", reraise=False, logger=logger)
            return SampleOutcome.WRITE_FAILED

        self.stats.artifacts.append(artifact)
        logger.info(f"Saved {self.kind} profile to {artifact.path}")
        return SampleOutcome.SAVED

    def fetch(self) -> bytes:
        """
        Fetch one snapshot payload.

        Raises:
            EndpointUnreachableError: On connection errors, timeouts and
                non-2xx responses
            ReadFailedError: If the body could not be read completely
        """
        url = self.url
        try:
            response = self.session.get(url, timeout=self.request_timeout, stream=True)
        except requests.RequestException as e:
            raise EndpointUnreachableError(url, e) from e

        with response:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise EndpointUnreachableError(url, e) from e
            try:
                return response.content
            except (requests.RequestException, OSError) as e:
                raise ReadFailedError(url, e) from e

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session
