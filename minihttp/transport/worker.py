"""Per-connection handling: read one request, route it, write one response."""

import logging
import socket
import time

from minihttp.domain.correlation_id import CorrelationLoggerAdapter, correlation_scope
from minihttp.domain.errors import BodyTooLarge, ConnectionClosed, ProtocolError
from minihttp.domain.http_types import RequestContext
from minihttp.domain.response import HttpResponse
from minihttp.domain.response_builders import (
    bad_request_response,
    entity_too_large_response,
    internal_error_response,
)
from minihttp.pipeline.codec import receive_request, send_response
from minihttp.pipeline.router import route_request
from minihttp.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.transport.worker"), {}
)


def _format_client(client_address) -> str:
    if isinstance(client_address, tuple) and len(client_address) >= 2:
        return f"{client_address[0]}:{client_address[1]}"
    return str(client_address)


def _read_and_dispatch(
    client_socket: socket.socket, client_addr_str: str, context: WorkerContext
) -> HttpResponse | None:
    """Build the response for this connection, or None when there is none to send."""
    config = context.config
    try:
        request = receive_request(
            client_socket, config.max_header_bytes, config.max_body_bytes
        )
    except ConnectionClosed:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client disconnected before sending a request",
                extra={"event": "client_disconnected", "client": client_addr_str},
            )
        return None
    except BodyTooLarge as error:
        WORKER_LOGGER.warning(
            "Request body size exceeded limit",
            extra={
                "event": "body_size_exceeded",
                "client": client_addr_str,
                "error": str(error),
            },
        )
        return entity_too_large_response()
    except ProtocolError as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return bad_request_response()
    except OSError as error:
        WORKER_LOGGER.error(
            "Error reading request",
            extra={
                "event": "request_read_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return internal_error_response(str(error) or type(error).__name__)

    request_context = RequestContext(request, client_socket, context.directory)
    try:
        return route_request(request_context)
    except OSError as error:
        WORKER_LOGGER.error(
            "Handler I/O failure",
            extra={
                "event": "handler_io_error",
                "client": client_addr_str,
                "route": request.path,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return internal_error_response(str(error) or type(error).__name__)
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in handler",
            extra={
                "event": "handler_error",
                "client": client_addr_str,
                "route": request.path,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
        return internal_error_response()


def handle_connection(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Serve exactly one request on ``client_socket`` and close it."""
    client_addr_str = _format_client(client_address)
    started = time.monotonic()
    with correlation_scope():
        try:
            with client_socket:
                client_socket.settimeout(context.config.socket_timeout)
                response = _read_and_dispatch(client_socket, client_addr_str, context)
                if response is not None:
                    _write_response(client_socket, client_addr_str, response, started)
        finally:
            if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                WORKER_LOGGER.debug(
                    "Socket closed",
                    extra={"event": "socket_closed", "client": client_addr_str},
                )


def _write_response(
    client_socket: socket.socket,
    client_addr_str: str,
    response: HttpResponse,
    started: float,
) -> None:
    try:
        send_response(client_socket, response)
    except OSError as error:
        WORKER_LOGGER.warning(
            "Failed to write response",
            extra={
                "event": "response_write_failed",
                "client": client_addr_str,
                "status_code": response.status_code,
                "error_type": type(error).__name__,
            },
        )
        return
    WORKER_LOGGER.info(
        "Request complete",
        extra={
            "event": "request_complete",
            "client": client_addr_str,
            "status_code": response.status_code,
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )
