"""Request routing logic."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from minihttp.bootstrap.config import ALLOWED_METHODS
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.http_types import METHOD_GET, METHOD_POST, RequestContext
from minihttp.domain.response import HttpResponse
from minihttp.domain.response_builders import (
    method_not_allowed_response,
    not_found_response,
)
from minihttp.handlers.file_handler import handle_get_file, handle_post_file
from minihttp.handlers.system_handlers import (
    handle_echo,
    handle_home,
    handle_user_agent,
)

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.pipeline.router"), {}
)

ROUTE_HOME = "/"
ROUTE_USER_AGENT = "/user-agent"
ROUTE_ECHO = "/echo/"
ROUTE_FILES = "/files/"

Handler = Callable[[RequestContext, str], HttpResponse]


@dataclass(frozen=True)
class Route:
    """A path pattern bound to a handler.

    Exact routes match the whole path. Prefix routes match any path that
    starts with ``pattern`` and pass the remainder to the handler.
    """

    pattern: str
    handler: Handler
    prefix: bool = False

    def match(self, path: str) -> Optional[str]:
        """Return the path parameter when ``path`` matches, else None."""
        if self.prefix:
            return path[len(self.pattern) :] if path.startswith(self.pattern) else None
        return "" if path == self.pattern else None


ROUTES: dict[str, tuple[Route, ...]] = {
    METHOD_GET: (
        Route(ROUTE_HOME, handle_home),
        Route(ROUTE_USER_AGENT, handle_user_agent),
        Route(ROUTE_ECHO, handle_echo, prefix=True),
        Route(ROUTE_FILES, handle_get_file, prefix=True),
    ),
    METHOD_POST: (Route(ROUTE_FILES, handle_post_file, prefix=True),),
}


def match_route(
    routes: tuple[Route, ...], path: str
) -> Optional[tuple[Route, str]]:
    """Pick the exact match first, then the longest matching prefix route."""
    for route in routes:
        if not route.prefix and route.match(path) is not None:
            return route, ""

    best: Optional[tuple[Route, str]] = None
    for route in routes:
        if not route.prefix:
            continue
        remainder = route.match(path)
        if remainder is None:
            continue
        if best is None or len(route.pattern) > len(best[0].pattern):
            best = (route, remainder)
    return best


def route_request(context: RequestContext) -> HttpResponse:
    """Route the request to the appropriate handler and return a response."""
    request = context.request
    routes = ROUTES.get(request.method) if request.method in ALLOWED_METHODS else None
    if routes is None:
        ROUTER_LOGGER.info(
            "Method not allowed",
            extra={
                "event": "method_not_allowed",
                "method": request.method,
                "route": request.path,
            },
        )
        return method_not_allowed_response(ALLOWED_METHODS)

    matched = match_route(routes, request.path)
    if matched is None:
        ROUTER_LOGGER.info(
            "No matching route found",
            extra={
                "event": "route_not_found",
                "route": request.path,
                "method": request.method,
            },
        )
        return not_found_response()

    route, remainder = matched
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched",
            extra={
                "event": "route_matched",
                "route": route.pattern,
                "method": request.method,
            },
        )
    return route.handler(context, remainder)
