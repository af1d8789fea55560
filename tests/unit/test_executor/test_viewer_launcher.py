"""
Unit tests for the viewer launcher.

Tests command construction, port allocation, spawn failures, background
reaping and viewer shutdown.
"""

import subprocess
import sys
import threading
import time
from unittest.mock import Mock, patch

import pytest

from profsampler.executor.viewer import ViewerLauncher
from profsampler.models.config import ViewerConfig
from profsampler.system.ports import PortAllocator
from profsampler.validation import PortExhaustedError


def _allocator(start=31000):
    allocator = Mock(spec=PortAllocator)
    ports = iter(range(start, start + 100))
    allocator.acquire.side_effect = lambda: next(ports)
    return allocator


def _python_viewer(code: str) -> ViewerConfig:
    return ViewerConfig(command=[sys.executable, "-c", code, "{port}", "{pattern}"])


@pytest.mark.unit
class TestCommand:
    """Command construction."""

    def test_default_command(self, temp_dir):
        launcher = ViewerLauncher(_allocator())

        command = launcher.build_command(31000, temp_dir / "heap")

        assert command == ["go", "tool", "pprof", "-http", ":31000", str(temp_dir / "heap" / "*")]

    def test_custom_command(self, temp_dir):
        config = ViewerConfig(command=["pprof", "--http=localhost:{port}", "{pattern}"])
        launcher = ViewerLauncher(_allocator(), config)

        command = launcher.build_command(4242, temp_dir)

        assert command == ["pprof", "--http=localhost:4242", str(temp_dir / "*")]


@pytest.mark.unit
class TestLaunch:
    """Launching with a mocked subprocess."""

    @patch("profsampler.executor.viewer.subprocess.Popen")
    def test_launch_spawns_viewer_on_allocated_port(self, mock_popen, temp_dir):
        process = Mock()
        process.pid = 12345
        process.wait.return_value = 0
        mock_popen.return_value = process
        launcher = ViewerLauncher(_allocator(31000))

        handle = launcher.launch(temp_dir / "cpu", "cpu")

        assert handle is not None
        assert handle.port == 31000
        assert handle.kind == "cpu"
        assert handle.url == "http://localhost:31000"
        args, kwargs = mock_popen.call_args
        assert args[0] == ["go", "tool", "pprof", "-http", ":31000", str(temp_dir / "cpu" / "*")]
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert launcher.viewers() == [handle]

    @patch("profsampler.executor.viewer.subprocess.Popen")
    def test_reaper_waits_for_exit(self, mock_popen, temp_dir):
        waited = threading.Event()
        process = Mock()
        process.pid = 1
        process.wait.side_effect = lambda: waited.set() or 0
        mock_popen.return_value = process

        ViewerLauncher(_allocator()).launch(temp_dir, "heap")

        assert waited.wait(timeout=5)

    @patch("profsampler.executor.viewer.subprocess.Popen")
    def test_port_exhaustion_skips_launch(self, mock_popen, temp_dir, caplog):
        allocator = Mock(spec=PortAllocator)
        allocator.acquire.side_effect = PortExhaustedError(21000, 20)
        launcher = ViewerLauncher(allocator)

        assert launcher.launch(temp_dir, "heap") is None

        mock_popen.assert_not_called()
        assert "no available ports" in caplog.text
        assert launcher.viewers() == []

    @patch("profsampler.executor.viewer.subprocess.Popen", side_effect=FileNotFoundError("go"))
    def test_spawn_failure_is_reported(self, mock_popen, temp_dir, caplog):
        launcher = ViewerLauncher(_allocator())

        assert launcher.launch(temp_dir, "cpu") is None

        assert "failed to start viewer" in caplog.text
        assert "subprocess command 'go tool pprof -http :31000" in caplog.text
        assert launcher.viewers() == []

    @patch("profsampler.executor.viewer.subprocess.Popen")
    def test_concurrent_launches_use_distinct_ports(self, mock_popen, temp_dir):
        mock_popen.return_value = Mock(pid=1, wait=Mock(return_value=0))
        allocator = PortAllocator(base_port=45000, max_attempts=5)
        launcher = ViewerLauncher(allocator)
        barrier = threading.Barrier(2)
        handles = []

        def launch(kind):
            barrier.wait()
            handles.append(launcher.launch(temp_dir / kind, kind))

        with patch.object(PortAllocator, "_probe", lambda self, port: True):
            threads = [threading.Thread(target=launch, args=(k,)) for k in ("heap", "cpu")]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=10)

        assert sorted(h.port for h in handles) == [45000, 45001]


@pytest.mark.unit
class TestRealProcesses:
    """Launching real short-lived processes."""

    def test_exited_viewer_is_reaped(self, temp_dir):
        launcher = ViewerLauncher(_allocator(), _python_viewer("import sys; sys.exit(3)"))

        handle = launcher.launch(temp_dir, "heap")
        assert handle is not None

        deadline = time.monotonic() + 10
        while handle.running and time.monotonic() < deadline:
            time.sleep(0.05)

        assert handle.process.returncode == 3
        assert launcher.active_viewers() == []

    def test_stop_all_terminates_running_viewers(self, temp_dir):
        launcher = ViewerLauncher(_allocator(), _python_viewer("import time; time.sleep(60)"))
        handle = launcher.launch(temp_dir, "cpu")
        assert handle is not None and handle.running

        launcher.stop_all(graceful_timeout=5.0)

        handle.process.wait(timeout=5)
        assert not handle.running
        assert launcher.active_viewers() == []
