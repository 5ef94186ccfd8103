"""HTTP/1.1 message framing: reading requests and writing responses."""

import logging
import socket
from typing import BinaryIO

from minihttp.bootstrap.config import DEFAULT_MAX_BODY_BYTES, DEFAULT_MAX_HEADER_BYTES
from minihttp.domain.correlation_id import CorrelationLoggerAdapter, adopt_correlation_id
from minihttp.domain.errors import (
    BodyTooLarge,
    ConnectionClosed,
    HeaderBlockTooLarge,
    InvalidContentLength,
    MalformedHeader,
    MalformedRequestLine,
    TruncatedBody,
)
from minihttp.domain.headers import HeaderSet, HttpHeader
from minihttp.domain.http_types import HDR_CONTENT_LENGTH, HDR_REQUEST_ID, HttpRequest
from minihttp.domain.response import HttpResponse

CODEC_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.pipeline.codec"), {}
)

HEADER_SEPARATOR = ": "
LINE_TERMINATORS = (b"\r\n", b"\n")


def _decode_line(raw_line: bytes, is_request_line: bool) -> str:
    try:
        return raw_line.decode()
    except UnicodeDecodeError as exc:
        if is_request_line:
            raise MalformedRequestLine("Request line is not valid UTF-8") from exc
        raise MalformedHeader("Header line is not valid UTF-8") from exc


def read_meta(reader: BinaryIO, max_header_bytes: int) -> list[str]:
    """Read the request line and header lines up to the blank line.

    No byte past the blank line is consumed. A peer that closes mid block
    yields the lines read so far.
    """
    lines: list[str] = []
    consumed = 0
    while True:
        remaining = max_header_bytes - consumed
        if remaining <= 0:
            raise HeaderBlockTooLarge(f"Header block exceeds {max_header_bytes} bytes")
        raw_line = reader.readline(remaining)
        if not raw_line:
            break
        consumed += len(raw_line)
        if raw_line in LINE_TERMINATORS:
            break
        if not raw_line.endswith(b"\n") and len(raw_line) == remaining:
            raise HeaderBlockTooLarge(f"Header block exceeds {max_header_bytes} bytes")
        lines.append(_decode_line(raw_line, not lines).rstrip("\r\n"))

    if not lines:
        if consumed == 0:
            raise ConnectionClosed("Peer closed the connection before sending a request")
        raise MalformedRequestLine("Request line is missing")
    return lines


def parse_request_line(request_line: str) -> tuple[str, str, str]:
    """Split the request line into method, path and version."""
    parts = request_line.split(" ")
    if len(parts) != 3 or not all(parts):
        raise MalformedRequestLine(f"Request line is invalid: {request_line!r}")
    method, path, version = parts
    return method, path, version


def parse_header_line(line: str) -> HttpHeader:
    """Split a header line on the first ``": "``."""
    name, separator, value = line.partition(HEADER_SEPARATOR)
    if not separator or not name:
        raise MalformedHeader(f"Invalid header line: {line!r}")
    return HttpHeader(name, value)


def parse_headers(lines: list[str]) -> HeaderSet:
    """Convert raw header lines into an ordered header set, keeping duplicates."""
    headers = HeaderSet()
    for line in lines:
        header = parse_header_line(line)
        headers.add(header.name, header.value)
    return headers


def determine_content_length(headers: HeaderSet, max_body_bytes: int) -> int:
    """Validate and return the declared Content-Length, zero when absent."""
    header_value = headers.get_value(HDR_CONTENT_LENGTH)
    if header_value is None:
        return 0
    value = header_value.strip()
    if not (value.isascii() and value.isdigit()):
        raise InvalidContentLength(f"Invalid Content-Length: {header_value!r}")
    content_length = int(value)
    if content_length > max_body_bytes:
        raise BodyTooLarge(
            f"Content-Length {content_length} exceeds {max_body_bytes} bytes"
        )
    return content_length


def read_body(reader: BinaryIO, content_length: int) -> bytes:
    """Read exactly ``content_length`` bytes or raise TruncatedBody."""
    body = reader.read(content_length)
    if len(body) < content_length:
        raise TruncatedBody(
            f"Expected {content_length} body bytes, received {len(body)}"
        )
    return body


def read_request(
    reader: BinaryIO,
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> HttpRequest:
    """Parse one request from a buffered binary reader."""
    meta = read_meta(reader, max_header_bytes)
    method, path, version = parse_request_line(meta[0])
    headers = parse_headers(meta[1:])

    content_length = determine_content_length(headers, max_body_bytes)
    body = read_body(reader, content_length) if content_length > 0 else None
    return HttpRequest(method, path, version, headers, body)


def receive_request(
    client_socket: socket.socket,
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> HttpRequest:
    """Read one request from the socket, honouring its configured timeout."""
    with client_socket.makefile("rb") as reader:
        request = read_request(reader, max_header_bytes, max_body_bytes)

    adopt_correlation_id(request.headers.get_value(HDR_REQUEST_ID))

    if CODEC_LOGGER.logger.isEnabledFor(logging.DEBUG):
        CODEC_LOGGER.debug(
            "Parsed request",
            extra={
                "event": "request_parsed",
                "method": request.method,
                "route": request.path,
                "bytes_in": len(request.body or b""),
            },
        )
    return request


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    payload = response.serialize()
    client_socket.sendall(payload)
    if CODEC_LOGGER.logger.isEnabledFor(logging.DEBUG):
        CODEC_LOGGER.debug(
            "Sent response",
            extra={
                "event": "response_sent",
                "status_code": response.status_code,
                "bytes_out": len(payload),
            },
        )
