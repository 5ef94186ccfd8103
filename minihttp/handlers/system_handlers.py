"""Handlers for the home, echo and user-agent routes."""

import logging

from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.http_types import HDR_USER_AGENT, RequestContext
from minihttp.domain.response import HttpResponse
from minihttp.domain.response_builders import empty_response, text_response

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.handlers.system"), {}
)

UNKNOWN_USER_AGENT = "Unknown"


def handle_home(_context: RequestContext, _remainder: str) -> HttpResponse:
    """Handle ``GET /`` with an empty 200."""
    return empty_response()


def handle_echo(context: RequestContext, message: str) -> HttpResponse:
    """Handle ``GET /echo/{msg}`` by returning the raw path suffix."""
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Echo request processed",
            extra={"event": "echo_request", "bytes_out": len(message)},
        )
    return text_response(message, context)


def handle_user_agent(context: RequestContext, _remainder: str) -> HttpResponse:
    """Handle ``GET /user-agent`` by returning the User-Agent header."""
    header = context.request.get_header(HDR_USER_AGENT)
    agent = header.value if header is not None else UNKNOWN_USER_AGENT
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "User-agent request processed", extra={"event": "user_agent_request"}
        )
    return text_response(agent, context)
