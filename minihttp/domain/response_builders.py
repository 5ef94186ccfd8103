"""Canned HTTP responses shared by handlers and the connection worker."""

from typing import Iterable, Optional

from minihttp.domain.headers import HttpHeader
from minihttp.domain.http_types import (
    CT_APP_OCTET_STREAM,
    CT_TEXT_PLAIN,
    HDR_ALLOW,
    HDR_CONTENT_TYPE,
    RequestContext,
)
from minihttp.domain.response import HttpResponse


def empty_response(status_code: int = 200) -> HttpResponse:
    """Return a response with no headers and no body."""
    return HttpResponse(status_code)


def text_response(
    message: str, context: Optional[RequestContext], status_code: int = 200
) -> HttpResponse:
    """Return a text/plain response, compressed when the request allows it."""
    return HttpResponse(
        status_code,
        headers=[HttpHeader(HDR_CONTENT_TYPE, CT_TEXT_PLAIN)],
        body=message.encode(),
        context=context,
    )


def octet_stream_response(payload: bytes, context: RequestContext) -> HttpResponse:
    """Return raw bytes as application/octet-stream."""
    return HttpResponse(
        200,
        headers=[HttpHeader(HDR_CONTENT_TYPE, CT_APP_OCTET_STREAM)],
        body=payload,
        context=context,
    )


def created_response() -> HttpResponse:
    """Produce a 201 response with no body."""
    return HttpResponse(201)


def not_found_response() -> HttpResponse:
    """Produce a 404 response with no body."""
    return HttpResponse(404)


def bad_request_response() -> HttpResponse:
    """Produce a 400 response with no body."""
    return HttpResponse(400)


def entity_too_large_response() -> HttpResponse:
    """Produce a 413 response with no body."""
    return HttpResponse(413, "Payload Too Large")


def method_not_allowed_response(allowed_methods: Iterable[str]) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    allow_header = ", ".join(sorted(allowed_methods))
    return HttpResponse(405, headers=[HttpHeader(HDR_ALLOW, allow_header)])


def internal_error_response(detail: Optional[str] = None) -> HttpResponse:
    """Produce a 500 response, carrying ``detail`` as plain text when given."""
    if not detail:
        return HttpResponse(500)
    return text_response(detail, None, status_code=500)
