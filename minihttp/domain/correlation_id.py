"""Per-connection correlation ids carried in a context variable."""

import contextvars
import logging
import re
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_NAMESPACE = "minihttp."
MISSING_CORRELATION_ID = "-"

# Incoming X-Request-ID values are only trusted when they look like an id.
_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Return a fresh UUID4 string."""
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Bind ``correlation_id`` to the current context and return the reset token."""
    return _correlation_id_var.set(correlation_id)


def adopt_correlation_id(candidate: Optional[str]) -> bool:
    """Replace the current id with a client-supplied one when it is well formed."""
    if candidate is None:
        return False
    candidate = candidate.strip()
    if not _ACCEPTABLE_ID.match(candidate):
        return False
    set_correlation_id(candidate)
    return True


@contextmanager
def correlation_scope() -> Iterator[str]:
    """Run the block under a newly generated id, restoring the previous one after."""
    correlation_id = generate_correlation_id()
    token = set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to every record's extras.

    ``component`` is the logger name with the ``minihttp.`` prefix removed,
    so ``minihttp.transport.pool`` logs as ``transport.pool``.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = get_correlation_id() or MISSING_CORRELATION_ID
        extra["component"] = self._component()
        kwargs["extra"] = extra
        return msg, kwargs

    def _component(self) -> str:
        name = self.logger.name
        if name.startswith(LOGGER_NAMESPACE):
            return name[len(LOGGER_NAMESPACE) :]
        return name
