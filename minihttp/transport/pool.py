"""Fixed-size pool of worker threads draining one shared task queue."""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from minihttp.domain.correlation_id import CorrelationLoggerAdapter

POOL_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.transport.pool"), {}
)

Task = Callable[[], None]


class PoolClosed(RuntimeError):
    """Raised when a task is submitted after the pool was shut down."""


class _Worker(threading.Thread):
    """Runs tasks from the shared queue until it receives the stop sentinel."""

    def __init__(self, worker_id: int, pool: "WorkerPool") -> None:
        super().__init__(name=f"minihttp-worker-{worker_id}", daemon=True)
        self.worker_id = worker_id
        self._pool = pool

    def run(self) -> None:
        while True:
            task = self._pool._tasks.get()
            if task is None:
                break
            self._pool._task_started()
            try:
                task()
            except BaseException as error:  # pylint: disable=broad-except
                POOL_LOGGER.error(
                    "Task raised an unhandled exception",
                    extra={
                        "event": "worker_task_failed",
                        "worker": self.name,
                        "error_type": type(error).__name__,
                        "error": str(error),
                    },
                    exc_info=True,
                )
            finally:
                self._pool._task_finished()
        if POOL_LOGGER.logger.isEnabledFor(logging.DEBUG):
            POOL_LOGGER.debug(
                "Worker stopped", extra={"event": "worker_stopped", "worker": self.name}
            )


class WorkerPool:
    """Bounds concurrently running tasks to ``size`` threads.

    Tasks are dequeued in submission order, but with several workers they
    finish in any order. The queue is unbounded: under sustained overload
    queued tasks accumulate without limit. A task that raises is logged and
    its worker moves on to the next task.
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"Worker pool size must be positive, got {size}")
        self._size = size
        self._tasks: "queue.SimpleQueue[Optional[Task]]" = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._closed = False
        self._active = 0
        self._workers = [_Worker(worker_id, self) for worker_id in range(size)]
        for worker in self._workers:
            worker.start()
        POOL_LOGGER.info(
            "Worker pool started", extra={"event": "pool_started", "workers": size}
        )

    @property
    def size(self) -> int:
        """Number of worker threads."""
        return self._size

    @property
    def pending(self) -> int:
        """Tasks queued but not yet picked up by a worker."""
        return self._tasks.qsize()

    @property
    def active(self) -> int:
        """Tasks currently running."""
        with self._lock:
            return self._active

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _task_started(self) -> None:
        with self._lock:
            self._active += 1

    def _task_finished(self) -> None:
        with self._lock:
            self._active -= 1

    def submit(self, task: Task) -> None:
        """Queue ``task`` for the next free worker."""
        with self._lock:
            if self._closed:
                raise PoolClosed("Worker pool has been shut down")
            self._tasks.put(task)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """Stop accepting tasks and let workers exit after the queued ones.

        Returns True when every worker has exited. With ``wait`` the call
        blocks up to ``timeout`` seconds (forever when None).
        """
        with self._lock:
            if not self._closed:
                self._closed = True
                for _ in self._workers:
                    self._tasks.put(None)
                POOL_LOGGER.info(
                    "Worker pool shutting down",
                    extra={"event": "pool_shutdown", "pending": self._tasks.qsize()},
                )
        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            for worker in self._workers:
                remaining = None
                if deadline is not None:
                    remaining = max(0.0, deadline - time.monotonic())
                worker.join(remaining)
        return not any(worker.is_alive() for worker in self._workers)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)
