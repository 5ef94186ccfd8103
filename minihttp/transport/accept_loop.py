"""Main connection acceptance loop."""

import argparse
import functools
import logging
import socket

from minihttp.bootstrap.config import ServerConfig
from minihttp.bootstrap.socket_factory import create_server_socket
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.transport.context import WorkerContext
from minihttp.transport.pool import PoolClosed, WorkerPool
from minihttp.transport.worker import handle_connection

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.transport.accept"), {}
)


def _submit_client(
    pool: WorkerPool,
    client_socket: socket.socket,
    client_address: tuple[str, int],
    handler_context: WorkerContext,
) -> bool:
    """Hand an accepted connection to the pool; False once the pool is closed."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={
                "event": "client_accepted",
                "client": client_addr_str,
                "pending": pool.pending,
            },
        )
    task = functools.partial(
        handle_connection, client_socket, client_address, handler_context
    )
    try:
        pool.submit(task)
    except PoolClosed:
        ACCEPT_LOGGER.warning(
            "Worker pool closed, dropping connection",
            extra={"event": "pool_closed", "client": client_addr_str},
        )
        client_socket.close()
        return False
    return True


def serve(
    server_socket: socket.socket,
    pool: WorkerPool,
    handler_context: WorkerContext,
    lifecycle: ServerLifecycle,
) -> None:
    """Accept connections until shutdown is requested, submitting each to the pool."""
    while not lifecycle.should_stop():
        try:
            client_socket, client_address = server_socket.accept()
        except socket.timeout:
            continue
        except OSError as error:
            if lifecycle.should_stop():
                break
            ACCEPT_LOGGER.error(
                "Socket accept failed",
                extra={"event": "accept_error", "error_type": type(error).__name__},
            )
            continue

        if not _submit_client(pool, client_socket, client_address, handler_context):
            break


def run_server(
    args: argparse.Namespace, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    """Create the listening socket and worker pool and run until shutdown."""
    server_socket = create_server_socket(args.host, args.port)
    handler_context = WorkerContext(directory=args.directory, config=config)
    pool = WorkerPool(config.workers)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "workers": config.workers,
        },
    )

    try:
        serve(server_socket, pool, handler_context, lifecycle)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "pending": pool.pending,
                "shutdown_grace_seconds": config.shutdown_grace_seconds,
            },
        )
        drained = pool.shutdown(wait=True, timeout=config.shutdown_grace_seconds)
        if not drained:
            ACCEPT_LOGGER.warning(
                "Shutdown timeout exceeded", extra={"event": "shutdown_timeout"}
            )
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
