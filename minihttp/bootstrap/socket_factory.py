"""Listening socket creation."""

import logging
import socket

from minihttp.domain.correlation_id import CorrelationLoggerAdapter

SOCKET_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.socket"), {})

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(host: str, port: int) -> socket.socket:
    """Create the listening socket with a short accept timeout for shutdown polling."""
    try:
        server_socket = socket.create_server(
            (host, port), reuse_port=hasattr(socket, "SO_REUSEPORT")
        )
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": host,
                "port": port,
                "error": str(error),
            },
        )
        raise
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
