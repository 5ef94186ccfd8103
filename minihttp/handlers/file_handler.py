"""File store handlers for ``/files/{name}``."""

import logging
from pathlib import Path
from typing import Optional

from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.http_types import RequestContext
from minihttp.domain.response import HttpResponse
from minihttp.domain.response_builders import (
    created_response,
    not_found_response,
    octet_stream_response,
)
from minihttp.domain.sandbox import ForbiddenPath, resolve_sandbox_path

FILE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.handlers.file"), {})


def _resolve(context: RequestContext, filename: str) -> Optional[Path]:
    try:
        return resolve_sandbox_path(context.file_directory, filename)
    except ForbiddenPath:
        FILE_LOGGER.warning(
            "Forbidden path access blocked",
            extra={
                "event": "forbidden_path",
                "path": filename,
                "method": context.request.method,
            },
        )
        return None


def handle_get_file(context: RequestContext, filename: str) -> HttpResponse:
    """Return the stored file's bytes, or 404 when it does not exist."""
    resolved_path = _resolve(context, filename)
    if resolved_path is None or not resolved_path.is_file():
        FILE_LOGGER.info(
            "File not found",
            extra={"event": "file_not_found", "path": filename},
        )
        return not_found_response()

    payload = resolved_path.read_bytes()
    FILE_LOGGER.info(
        "File read operation complete",
        extra={
            "event": "file_read_complete",
            "path": resolved_path.as_posix(),
            "bytes_out": len(payload),
        },
    )
    return octet_stream_response(payload, context)


def handle_post_file(context: RequestContext, filename: str) -> HttpResponse:
    """Replace the stored file with the request body and answer 201."""
    resolved_path = _resolve(context, filename)
    if resolved_path is None:
        return not_found_response()

    body = context.request.body or b""
    if resolved_path.exists():
        resolved_path.unlink()
    resolved_path.parent.mkdir(parents=True, exist_ok=True)
    resolved_path.write_bytes(body)
    FILE_LOGGER.info(
        "File write complete",
        extra={
            "event": "file_write_complete",
            "path": resolved_path.as_posix(),
            "bytes_in": len(body),
        },
    )
    return created_response()
