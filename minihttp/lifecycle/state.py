"""Server lifecycle state management."""

import logging
import threading

from minihttp.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.lifecycle"), {})


class ServerLifecycle:
    """Carries the stop signal from signal handlers to the accept loop."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def begin_shutdown(self) -> None:
        """Signal the accept loop to stop and drain the worker pool."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "shutdown_requested"}
        )
