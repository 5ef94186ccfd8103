"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


DEFAULT_HOST = _env_str("MINIHTTP_HOST", "127.0.0.1")
DEFAULT_PORT = _env_int("MINIHTTP_PORT", 4221)
DEFAULT_WORKERS = _env_int("MINIHTTP_WORKERS", 4)
DEFAULT_SOCKET_TIMEOUT = _env_int("MINIHTTP_SOCKET_TIMEOUT", 30)
DEFAULT_MAX_HEADER_BYTES = _env_int("MINIHTTP_MAX_HEADER_BYTES", 8192)
DEFAULT_MAX_BODY_BYTES = _env_int("MINIHTTP_MAX_BODY_BYTES", 5 * 1024 * 1024)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("MINIHTTP_SHUTDOWN_GRACE_SECONDS", 10)
DEFAULT_DIRECTORY_NAME = "file_directory"

ALLOWED_METHODS = frozenset({"GET", "POST"})


@dataclass
class ServerConfig:
    """Runtime knobs handed from the CLI to the transport layer."""

    workers: int = DEFAULT_WORKERS
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    shutdown_grace_seconds: float = DEFAULT_SHUTDOWN_GRACE_SECONDS

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ServerConfig":
        """Build a config from parsed CLI arguments."""
        return cls(
            workers=args.workers,
            socket_timeout=args.socket_timeout,
            max_header_bytes=args.max_header_bytes,
            max_body_bytes=args.max_body_bytes,
            shutdown_grace_seconds=args.shutdown_grace_seconds,
        )


def _positive_int(raw_value: str) -> int:
    value = int(raw_value)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value


def default_directory() -> Path:
    """Return the storage root used when --directory is not given."""
    configured = _env_str("MINIHTTP_DIRECTORY", None)
    if configured:
        return Path(configured)
    return Path.cwd() / DEFAULT_DIRECTORY_NAME


def ensure_directory(directory: Path) -> Path:
    """Create the storage root if needed and return its absolute path."""
    directory.mkdir(parents=True, exist_ok=True)
    return directory.resolve()


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Minimal HTTP/1.1 server")
    parser.add_argument(
        "--directory",
        type=Path,
        default=None,
        help=f"Storage root for /files (default: ./{DEFAULT_DIRECTORY_NAME})",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=DEFAULT_WORKERS,
        help="Number of worker threads handling connections",
    )
    parser.add_argument(
        "--socket-timeout",
        type=float,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Idle read timeout in seconds for client connections",
    )
    parser.add_argument(
        "--max-header-bytes",
        type=_positive_int,
        default=DEFAULT_MAX_HEADER_BYTES,
        help="Maximum size of the request line plus headers",
    )
    parser.add_argument(
        "--max-body-bytes",
        type=int,
        default=DEFAULT_MAX_BODY_BYTES,
        help="Maximum accepted Content-Length",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=float,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for queued and running connections",
    )
    default_log_level = os.getenv("MINIHTTP_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("MINIHTTP_LOG_DESTINATION", "stdout")
    default_log_format = os.getenv("MINIHTTP_LOG_FORMAT", "json").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=["json", "text"],
        type=str.lower,
    )
    args = parser.parse_args(argv)
    if args.directory is None:
        args.directory = default_directory()
    return args
