"""Logging configuration for the server process.

Every component logs through a ``CorrelationLoggerAdapter`` below the
``minihttp`` logger and attaches structured fields with ``extra=``. The
handler installed here renders those fields either as one JSON object per
line or as ``key=value`` pairs after a plain text prefix. Values that come
from clients (paths, header values, error text) are sanitized before they
reach the output.
"""

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from minihttp.domain.correlation_id import MISSING_CORRELATION_ID, CorrelationLoggerAdapter

LOGGER_NAME = "minihttp"
STDOUT_DESTINATION = "stdout"
TEXT_PREFIX_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROTATE_AT_BYTES = 10 * 1024 * 1024
ROTATED_FILES_KEPT = 5

REDACTED = "[REDACTED]"
MAX_FIELD_CHARS = 256

SECRET_PATTERNS = (
    re.compile(r"(?i)(authorization|token|key|signature|password|secret|api[_-]?key)"),
    re.compile(r"\b[A-Fa-f0-9]{32,}\b"),
    re.compile(r"\b[A-Za-z0-9+/]{32,}={0,2}\b"),
)
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# Structured fields copied from ``extra=`` into the output, in this order.
STRUCTURED_FIELDS = (
    "event",
    "client",
    "method",
    "route",
    "path",
    "status_code",
    "bytes_in",
    "bytes_out",
    "duration_ms",
    "error_type",
    "error",
    "worker",
    "workers",
    "pending",
    "host",
    "port",
    "directory",
    "log_destination",
    "log_level",
    "socket_timeout",
    "shutdown_grace_seconds",
    "signal",
)


def redact_sensitive(value: str) -> str:
    """Return ``value`` made safe for a log line.

    Secret-looking values are replaced wholesale, control characters are
    escaped so a client cannot forge log lines, and long values are cut.
    """
    if not value:
        return value
    if any(pattern.search(value) for pattern in SECRET_PATTERNS):
        return REDACTED
    value = _CONTROL_CHARS.sub(lambda match: f"\\x{ord(match.group()):02x}", value)
    if len(value) > MAX_FIELD_CHARS:
        value = value[:MAX_FIELD_CHARS] + "..."
    return value


def structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the known ``extra=`` fields present on ``record``."""
    fields: dict[str, Any] = {}
    for key in STRUCTURED_FIELDS:
        if not hasattr(record, key):
            continue
        value = getattr(record, key)
        fields[key] = redact_sensitive(value) if isinstance(value, str) else value
    return fields


class CorrelationIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Give records logged outside the adapter the fields formatters expect."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = MISSING_CORRELATION_ID
        if not hasattr(record, "component"):
            record.component = record.name.removeprefix(LOGGER_NAME + ".")
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record with sorted keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "correlation_id": getattr(record, "correlation_id", MISSING_CORRELATION_ID),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }
        log_data.update(structured_fields(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


class KeyValueFormatter(logging.Formatter):
    """Plain text prefix followed by ``key=value`` pairs for structured fields."""

    def __init__(self) -> None:
        super().__init__(TEXT_PREFIX_FORMAT, DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(
            f"{key}={value}" for key, value in structured_fields(record).items()
        )
        if not pairs:
            return line
        head, newline, tail = line.partition("\n")
        return f"{head} {pairs}{newline}{tail}"


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handler(destination: Optional[str], use_json: bool) -> logging.Handler:
    """Create a stdout or rotating file handler."""
    if destination and destination.lower() != STDOUT_DESTINATION:
        target_path = Path(destination)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            target_path, maxBytes=ROTATE_AT_BYTES, backupCount=ROTATED_FILES_KEPT
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(
        JsonFormatter(datefmt=DATE_FORMAT) if use_json else KeyValueFormatter()
    )
    handler.addFilter(CorrelationIdFilter())
    return handler


def configure_logging(
    level: str = "INFO", destination: Optional[str] = None, use_json: bool = True
) -> CorrelationLoggerAdapter:
    """Install a single handler on the ``minihttp`` logger and return an adapter for it.

    Calling this again replaces the previous handler, closing it first.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(_build_handler(destination, use_json))
    return CorrelationLoggerAdapter(logger, {})
