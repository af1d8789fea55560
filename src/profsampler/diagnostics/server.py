"""
In-process diagnostic HTTP server.

Serves heap and CPU snapshots of the current interpreter under a path
prefix (default `/debug/pprof`):

    GET <prefix>/heap                 tracemalloc snapshot
    GET <prefix>/profile?seconds=N    collapsed stacks sampled over N seconds
"""

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse

from .cpu import DEFAULT_RATE, cpu_profile
from .heap import ensure_tracing, heap_snapshot

logger = logging.getLogger(__name__)

MAX_PROFILE_SECONDS = 3600


class _DiagnosticHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, address, prefix: str, rate: int):
        super().__init__(address, _DiagnosticHandler)
        self.prefix = prefix.rstrip("/")
        self.rate = rate


class _DiagnosticHandler(BaseHTTPRequestHandler):
    server: _DiagnosticHTTPServer

    def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler API)
        parsed = urlparse(self.path)
        prefix = self.server.prefix

        if parsed.path == f"{prefix}/heap":
            self._send(200, heap_snapshot(), "application/octet-stream")
        elif parsed.path == f"{prefix}/profile":
            params = parse_qs(parsed.query)
            try:
                seconds = int(params.get("seconds", ["30"])[0])
            except ValueError:
                self._send(400, b"seconds must be an integer", "text/plain")
                return
            if not 1 <= seconds <= MAX_PROFILE_SECONDS:
                self._send(400, f"seconds must be in 1..{MAX_PROFILE_SECONDS}".encode(), "text/plain")
                return
            self._send(200, cpu_profile(seconds, self.server.rate), "text/plain; charset=utf-8")
        else:
            self._send(404, b"Not Found", "text/plain")

    def _send(self, status: int, payload: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args) -> None:  # noqa: A003 (matches base signature)
        logger.debug("%s - %s", self.address_string(), format % args)


class DiagnosticServer:
    """
    Diagnostic endpoint for the current process, served from a daemon thread.

    Port 0 binds any free port; `port` reports the bound port after start().
    """

    def __init__(self, port: int = 6060, rate: int = DEFAULT_RATE,
                 host: str = "localhost", path: str = "/debug/pprof"):
        self.host = host
        self.requested_port = port
        self.rate = rate if rate > 0 else DEFAULT_RATE
        self.path = path
        self._server: Optional[_DiagnosticHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            return self.requested_port
        return self._server.server_address[1]

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path.rstrip('/')}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Bind the socket and start serving.

        Raises:
            OSError: If the address cannot be bound
        """
        if self._server is not None:
            raise RuntimeError("Diagnostic server already started")

        ensure_tracing()
        self._server = _DiagnosticHTTPServer((self.host, self.requested_port), self.path, self.rate)
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="DiagnosticServer",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Starting diagnostic server on address: {self.host}:{self.port}")

    def stop(self, timeout: float = 5.0) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._server = None
        self._thread = None
        logger.info("Diagnostic server stopped")
