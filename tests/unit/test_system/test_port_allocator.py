"""
Unit tests for the local port allocator.

Tests sequential allocation, the monotonic base, exhaustion handling and
uniqueness under concurrent callers.
"""

import socket
import threading
import time

import pytest

from profsampler.system.ports import MAX_PORT, PortAllocator
from profsampler.validation import PortExhaustedError


def _occupied_listener():
    """Return a listening socket on an OS-chosen port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("", 0))
    sock.listen(1)
    return sock


@pytest.mark.unit
class TestSequentialAllocation:
    """Allocation order and base movement with a scripted probe."""

    def test_returns_base_when_free(self, monkeypatch):
        monkeypatch.setattr(PortAllocator, "_probe", lambda self, port: True)
        allocator = PortAllocator(base_port=30000)

        assert allocator.acquire() == 30000
        assert allocator.base_port == 30001

    def test_consecutive_calls_never_repeat(self, monkeypatch):
        monkeypatch.setattr(PortAllocator, "_probe", lambda self, port: True)
        allocator = PortAllocator(base_port=30000)

        ports = [allocator.acquire() for _ in range(5)]

        assert ports == [30000, 30001, 30002, 30003, 30004]

    def test_skips_busy_ports_and_advances_past_result(self, monkeypatch):
        busy = {30000, 30001}
        monkeypatch.setattr(PortAllocator, "_probe", lambda self, port: port not in busy)
        allocator = PortAllocator(base_port=30000)

        assert allocator.acquire() == 30002
        assert allocator.base_port == 30003

    def test_next_search_starts_after_previous_result(self, monkeypatch):
        probed = []

        def probe(self, port):
            probed.append(port)
            return port != 30001

        monkeypatch.setattr(PortAllocator, "_probe", probe)
        allocator = PortAllocator(base_port=30000)

        first = allocator.acquire()
        second = allocator.acquire()

        assert first == 30000
        assert second == 30002
        assert min(probed[1:]) > first

    def test_invalid_attempt_budget(self):
        with pytest.raises(ValueError, match="max_attempts"):
            PortAllocator(base_port=30000, max_attempts=0)


@pytest.mark.unit
class TestExhaustion:
    """All candidates busy."""

    def test_raises_and_keeps_base(self, monkeypatch):
        probed = []

        def probe(self, port):
            probed.append(port)
            return False

        monkeypatch.setattr(PortAllocator, "_probe", probe)
        allocator = PortAllocator(base_port=30000, max_attempts=5)

        with pytest.raises(PortExhaustedError) as exc_info:
            allocator.acquire()

        assert probed == [30000, 30001, 30002, 30003, 30004]
        assert allocator.base_port == 30000
        assert exc_info.value.start_port == 30000
        assert exc_info.value.end_port == 30004
        assert exc_info.value.attempts == 5
        assert "30000" in str(exc_info.value)

    def test_recovers_once_ports_are_released(self, monkeypatch):
        free = set()
        monkeypatch.setattr(PortAllocator, "_probe", lambda self, port: port in free)
        allocator = PortAllocator(base_port=30000, max_attempts=3)

        with pytest.raises(PortExhaustedError):
            allocator.acquire()

        free.add(30001)
        assert allocator.acquire() == 30001

    def test_never_probes_beyond_highest_port(self, monkeypatch):
        probed = []

        def probe(self, port):
            probed.append(port)
            return False

        monkeypatch.setattr(PortAllocator, "_probe", probe)
        allocator = PortAllocator(base_port=MAX_PORT - 1, max_attempts=10)

        with pytest.raises(PortExhaustedError) as exc_info:
            allocator.acquire()

        assert probed == [MAX_PORT - 1, MAX_PORT]
        assert exc_info.value.attempts == 2
        assert exc_info.value.end_port == MAX_PORT
        assert f"tried {MAX_PORT - 1}-{MAX_PORT}" in str(exc_info.value)
        assert allocator.base_port == MAX_PORT - 1


@pytest.mark.unit
class TestRealSockets:
    """Allocation against the real network stack."""

    def test_occupied_port_is_exhausted(self):
        listener = _occupied_listener()
        try:
            port = listener.getsockname()[1]
            allocator = PortAllocator(base_port=port, max_attempts=1)

            with pytest.raises(PortExhaustedError):
                allocator.acquire()
            assert allocator.base_port == port
        finally:
            listener.close()

    def test_allocated_port_is_bindable(self):
        listener = _occupied_listener()
        base = listener.getsockname()[1]
        listener.close()

        allocator = PortAllocator(base_port=base, max_attempts=20)
        port = allocator.acquire()

        assert base <= port < base + 20
        assert allocator.base_port == port + 1

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", port))
        finally:
            sock.close()


@pytest.mark.unit
class TestConcurrency:
    """Mutual exclusion across callers."""

    def test_concurrent_callers_get_distinct_ports(self, monkeypatch):
        def slow_probe(self, port):
            # Widen the window in which an unguarded scan would race.
            time.sleep(0.001)
            return True

        monkeypatch.setattr(PortAllocator, "_probe", slow_probe)
        allocator = PortAllocator(base_port=40000, max_attempts=5)

        results = []
        results_lock = threading.Lock()
        barrier = threading.Barrier(16)

        def worker():
            barrier.wait()
            port = allocator.acquire()
            with results_lock:
                results.append(port)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(results) == 16
        assert len(set(results)) == 16
        assert sorted(results) == list(range(40000, 40016))
        assert allocator.base_port == 40016
