"""Exceptions raised while reading and framing HTTP messages."""


class HttpError(Exception):
    """Base class for request handling failures."""


class ProtocolError(HttpError):
    """The peer sent bytes that are not a valid request; answered with 400."""


class MalformedRequestLine(ProtocolError):
    """Request line is not exactly ``method SP path SP version``."""


class MalformedHeader(ProtocolError):
    """Header line lacks the ``": "`` separator or is not valid UTF-8."""


class InvalidContentLength(ProtocolError):
    """Content-Length is not a non-negative decimal integer."""


class HeaderBlockTooLarge(ProtocolError):
    """Request line plus headers exceeded the configured byte limit."""


class BodyTooLarge(ProtocolError):
    """Declared Content-Length exceeds the configured body limit; answered with 413."""


class TransportError(HttpError, OSError):
    """I/O level failure while reading a request; answered with 500."""


class TruncatedBody(TransportError):
    """Peer closed the connection before the declared body arrived."""


class ConnectionClosed(HttpError):
    """Peer closed the connection before sending any request bytes."""
