"""Shared HTTP type definitions to avoid circular imports."""

import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from minihttp.domain.headers import HeaderSet, HttpHeader

CRLF = "\r\n"

CT_TEXT_PLAIN = "text/plain"
CT_APP_OCTET_STREAM = "application/octet-stream"

ENCODING_GZIP = "gzip"

HDR_ACCEPT_ENCODING = "Accept-Encoding"
HDR_ALLOW = "Allow"
HDR_CONTENT_ENCODING = "Content-Encoding"
HDR_CONTENT_LENGTH = "Content-Length"
HDR_CONTENT_TYPE = "Content-Type"
HDR_REQUEST_ID = "X-Request-ID"
HDR_USER_AGENT = "User-Agent"

METHOD_GET = "GET"
METHOD_POST = "POST"


def accepts_encoding(accept_encoding: str, encoding: str) -> bool:
    """Return True when an Accept-Encoding value lists ``encoding`` with q>0."""
    for token in accept_encoding.split(","):
        value = token.strip()
        if not value:
            continue
        algorithm, _, params = value.partition(";")
        if algorithm.strip().lower() != encoding.lower():
            continue
        quality = 1.0
        if params:
            for param in params.split(";"):
                key, _, raw_value = param.strip().partition("=")
                if key.lower() == "q" and raw_value:
                    try:
                        quality = float(raw_value)
                    except ValueError:
                        quality = 0.0
                    break
        if quality > 0:
            return True
    return False


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request."""

    method: str
    path: str
    version: str
    headers: HeaderSet = field(default_factory=HeaderSet)
    body: Optional[bytes] = None

    def get_header(self, name: str) -> Optional[HttpHeader]:
        """Return the first header named ``name`` ignoring case."""
        return self.headers.get(name)

    def supports_encoding(self, encoding: str) -> bool:
        """Check the Accept-Encoding header for ``encoding``."""
        header = self.get_header(HDR_ACCEPT_ENCODING)
        if header is None:
            return False
        return accepts_encoding(header.value, encoding)


@dataclass
class RequestContext:
    """One request bound to the connection it arrived on and the storage root.

    Owned by the task handling the connection; the connection must not
    outlive that task.
    """

    request: HttpRequest
    connection: socket.socket
    file_directory: Path
