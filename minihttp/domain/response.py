"""Mutable HTTP response with Content-Length and gzip bookkeeping."""

import gzip
import logging
from http import HTTPStatus
from typing import Iterable, Optional

from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.headers import HeaderSet, HttpHeader
from minihttp.domain.http_types import (
    CRLF,
    ENCODING_GZIP,
    HDR_CONTENT_ENCODING,
    HDR_CONTENT_LENGTH,
    RequestContext,
)

COMPRESSION_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.compression"), {}
)

# zlib's default level
GZIP_COMPRESSION_LEVEL = 6


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class HttpResponse:
    """An HTTP response that keeps its framing headers consistent with its body.

    Whenever the body is non-empty a ``Content-Length`` header holds the
    length of the stored (possibly compressed) bytes. An empty body carries
    neither ``Content-Length`` nor ``Content-Encoding``. Responses built with
    a :class:`RequestContext` gzip their body when the request accepts it;
    responses without one never compress.
    """

    def __init__(
        self,
        status_code: int,
        status_message: Optional[str] = None,
        headers: Optional[Iterable[HttpHeader]] = None,
        body: Optional[bytes] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        self.status_code = status_code
        self.status_message = (
            status_message
            if status_message is not None
            else _reason_phrase(status_code)
        )
        self.headers = HeaderSet(headers)
        self.context = context
        self._body: Optional[bytes] = None
        if body is not None:
            self.set_body(body)

    @property
    def body(self) -> Optional[bytes]:
        """Stored body bytes, already encoded."""
        return self._body

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status_code} {self.status_message}"

    def get_header_value(self, name: str) -> Optional[str]:
        """Return the value of the first header named ``name``."""
        return self.headers.get_value(name)

    def set_or_add_header(self, name: str, value: str) -> None:
        """Replace an existing header value or append a new header."""
        self.headers.set_or_add(name, value)

    def remove_header(self, name: str) -> None:
        """Delete the first header named ``name`` if present."""
        self.headers.remove(name)

    def _should_compress(self) -> bool:
        if self.context is None:
            return False
        return self.context.request.supports_encoding(ENCODING_GZIP)

    def set_body(self, body: bytes) -> None:
        """Store ``body``, compressing it when negotiated, and fix framing headers."""
        if not body:
            self._body = None
            self.remove_header(HDR_CONTENT_LENGTH)
            self.remove_header(HDR_CONTENT_ENCODING)
            return

        if self._should_compress():
            original_size = len(body)
            body = gzip.compress(body, compresslevel=GZIP_COMPRESSION_LEVEL)
            self.set_or_add_header(HDR_CONTENT_ENCODING, ENCODING_GZIP)
            if COMPRESSION_LOGGER.logger.isEnabledFor(logging.DEBUG):
                COMPRESSION_LOGGER.debug(
                    "Compressed payload",
                    extra={
                        "event": "body_compressed",
                        "bytes_in": original_size,
                        "bytes_out": len(body),
                    },
                )
        else:
            self.remove_header(HDR_CONTENT_ENCODING)

        self.set_or_add_header(HDR_CONTENT_LENGTH, str(len(body)))
        self._body = body

    def serialize(self) -> bytes:
        """Render the status line, headers in stored order, blank line and body."""
        head = [self.status_line + CRLF]
        head.extend(f"{header}{CRLF}" for header in self.headers)
        head.append(CRLF)
        return "".join(head).encode() + (self._body or b"")

    def __repr__(self) -> str:
        body_length = len(self._body) if self._body else 0
        return (
            f"HttpResponse({self.status_code} {self.status_message!r}, "
            f"headers={list(self.headers)!r}, body_length={body_length})"
        )
