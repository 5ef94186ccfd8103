"""HTTP server supporting echo, user-agent, and file operations."""

import logging
import signal
import sys

from minihttp.bootstrap.config import ServerConfig, ensure_directory, parse_cli_args
from minihttp.bootstrap.logging_setup import configure_logging
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.server"), {})


def main(argv: list[str] | None = None) -> None:
    """Start the HTTP server and serve until SIGINT or SIGTERM."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )
    args.directory = ensure_directory(args.directory)

    config = ServerConfig.from_args(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "signal_received", "signal": signum},
        )
        lifecycle.begin_shutdown()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "directory": str(args.directory),
            "workers": config.workers,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(args, config, lifecycle)


if __name__ == "__main__":
    main()
