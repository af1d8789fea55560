"""
Pytest configuration and shared fixtures for the profsampler test suite.

This module provides common fixtures, HTTP test doubles and configuration
helpers for all test modules.
"""

import shutil
import sys
import tempfile
import threading
from pathlib import Path
from typing import Any, List, Optional

import pytest
import requests

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from profsampler.models.config import (  # noqa: E402
    CpuSamplingSpec,
    HeapSamplingSpec,
    RunConfig,
    ViewerConfig,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def make_config(temp_dir):
    """Factory for fast RunConfigs: no grace period, no heap interval, no viewer."""

    def _make(**overrides) -> RunConfig:
        params = dict(
            port=6060,
            output_dir=temp_dir / "profiles",
            grace_period=0.0,
            heap=HeapSamplingSpec(sample_count=3, interval=0.0),
            cpu=CpuSamplingSpec(sample_count=3, duration=1.0),
            viewer=ViewerConfig(enabled=False),
        )
        params.update(overrides)
        return RunConfig(**params)

    return _make


@pytest.fixture
def sleep_recorder():
    """A sleep replacement that records the requested delays instead of waiting."""

    class SleepRecorder:
        def __init__(self):
            self.calls: List[float] = []

        def __call__(self, seconds: float) -> None:
            self.calls.append(seconds)

    return SleepRecorder()


# ============================================================================
# HTTP Test Doubles
# ============================================================================


class FakeResponse:
    """Minimal stand-in for requests.Response as used by the samplers."""

    def __init__(self, payload: bytes = b"", status_code: int = 200,
                 read_error: Optional[Exception] = None):
        self.payload = payload
        self.status_code = status_code
        self.read_error = read_error
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True
        return False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    @property
    def content(self) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        return self.payload


class FakeSession:
    """
    Scripted replacement for requests.Session.

    Each get() consumes the next scripted item: bytes become a 200 response,
    a FakeResponse is returned as is and an exception is raised. Once the
    script is exhausted `default` is served.
    """

    def __init__(self, script: Optional[List[Any]] = None, default: Any = b"x" * 100):
        self.script = list(script or [])
        self.default = default
        self.calls: List[dict] = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None, stream=False, **kwargs):
        with self._lock:
            self.calls.append({"url": url, "timeout": timeout, "stream": stream})
            item = self.script.pop(0) if self.script else self.default
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)

    def close(self) -> None:
        pass


@pytest.fixture
def fake_response():
    """The FakeResponse class, for scripting error responses."""
    return FakeResponse


@pytest.fixture
def fake_session():
    """Factory for scripted HTTP sessions."""

    def _make(script=None, default=b"x" * 100) -> FakeSession:
        return FakeSession(script, default)

    return _make


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically reset the configuration singleton after each test."""
    from profsampler.config import manager

    original_config_path = manager._CONFIG_FILE_PATH

    yield

    manager.clear_config_cache()
    manager._CONFIG_FILE_PATH = original_config_path
