"""Host port allocation for module and sidecar containers.

PortAllocator hands out non-colliding ports from a half-open range
``[start, end)``. It is an explicit value passed through the resolution
pipeline: nothing is global, nothing is persisted. Every invocation starts
fresh, so ports pinned by a previous run are not remembered.

Allocation must finish before any concurrent deployment begins; the
allocator is not thread-safe.
"""

import logging
import socket
from typing import Callable

from eureka import constants
from eureka.errors import ConfigurationError, PortRangeExhausted

logger = logging.getLogger(__name__)


def is_port_free(port: int, host: str = constants.HOST_IP) -> bool:
    """Return True if a TCP socket can bind ``host:port`` right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class PortAllocator:
    """Monotonic port allocator over a bounded range.

    Example:
        >>> allocator = PortAllocator(30000, 30003)
        >>> allocator.reserve(30001)
        >>> allocator.allocate(), allocator.allocate()
        (30000, 30002)
    """

    def __init__(
        self,
        start: int = constants.DEFAULT_PORT_START,
        end: int = constants.DEFAULT_PORT_END,
        is_free: Callable[[int], bool] | None = None,
    ):
        """Initialize allocator.

        Args:
            start: First port of the range (inclusive)
            end: End of the range (exclusive)
            is_free: Optional host check, ports failing it are skipped

        Raises:
            ConfigurationError: If the range is empty
        """
        if start >= end:
            raise ConfigurationError(f"Invalid port range: {start}-{end}")
        self.start = start
        self.end = end
        self._is_free = is_free
        self._next = start
        self._reserved: set[int] = set()

    @property
    def reserved(self) -> frozenset[int]:
        """Every port issued or explicitly reserved in this run."""
        return frozenset(self._reserved)

    def reserve(self, port: int) -> None:
        """Mark an explicitly configured port as taken.

        Raises:
            ConfigurationError: If the port was already issued or reserved
        """
        if port in self._reserved:
            raise ConfigurationError(f"Port {port} is configured for more than one module")
        self._reserved.add(port)
        logger.debug(f"Reserved explicit port {port}")

    def allocate(self) -> int:
        """Return the next unused port, never reissuing one in this run.

        Raises:
            PortRangeExhausted: If no port is left in the range
        """
        while self._next < self.end:
            candidate = self._next
            self._next += 1
            if candidate in self._reserved:
                continue
            if self._is_free is not None and not self._is_free(candidate):
                logger.debug(f"Port {candidate} is bound on the host, skipping")
                continue
            self._reserved.add(candidate)
            return candidate

        raise PortRangeExhausted(self.start, self.end)


__all__ = ["PortAllocator", "is_port_free"]
