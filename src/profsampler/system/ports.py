"""
Local TCP port allocation for viewer processes.

The allocator hands out ports from a moving base. A candidate is considered
free if a listening socket can be bound to it and closed again. The port is
released before the caller's process binds it, so another process may grab
it in between.
"""

import logging
import os
import socket
import threading

from ..validation import PortExhaustedError

logger = logging.getLogger(__name__)

MAX_PORT = 65535


class PortAllocator:
    """
    Mutually exclusive, sequential allocator of local TCP ports.

    The whole scan-and-reserve sequence of acquire() runs under one lock,
    so concurrent callers never receive the same port. The base only moves
    forward: after port P is handed out the next scan starts at P + 1.
    """

    def __init__(self, base_port: int = 21000, max_attempts: int = 20, host: str = ""):
        """
        Args:
            base_port: First candidate port
            max_attempts: Number of consecutive candidates probed per call
            host: Interface used for the bind probe ("" probes all interfaces)
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._base_port = base_port
        self.max_attempts = max_attempts
        self.host = host
        self._lock = threading.Lock()

    @property
    def base_port(self) -> int:
        """Next port the allocator will try."""
        with self._lock:
            return self._base_port

    def acquire(self) -> int:
        """
        Find and reserve a free local port.

        Returns:
            The allocated port number

        Raises:
            PortExhaustedError: If none of the `max_attempts` candidates
                starting at the current base is free. The base is unchanged.
        """
        with self._lock:
            start = self._base_port
            probed = 0
            for attempt in range(self.max_attempts):
                port = start + attempt
                if port > MAX_PORT:
                    break
                probed += 1
                if self._probe(port):
                    self._base_port = port + 1
                    logger.debug(f"Allocated port {port} after {attempt + 1} attempt(s)")
                    return port
                logger.debug(f"Port {port} is in use")

            raise PortExhaustedError(start, probed)

    def _probe(self, port: int) -> bool:
        """Return True if a listening socket could be bound to `port`."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            if os.name != "nt":
                # Match the reuse semantics servers use, so TIME_WAIT leftovers
                # do not count as occupied.
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
            sock.listen(1)
            return True
        except OSError:
            return False
        finally:
            sock.close()
