"""Local port allocation."""

from __future__ import annotations

import socket

import structlog

from agentprep.core.errors import ServerError

logger = structlog.get_logger()


class SocketPortAllocator:
    """Ask the kernel for a free port by binding to port 0.

    The port is released before returning, so another process can still
    take it before the agent binds. The attach retry path covers that case.
    """

    def __init__(self, host: str = "127.0.0.1") -> None:
        self._host = host

    def allocate_unused_port(self) -> int:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self._host, 0))
                port = int(sock.getsockname()[1])
        except OSError as e:
            raise ServerError.port_allocation_failed(str(e)) from e
        logger.debug("port_allocated", port=port)
        return port
