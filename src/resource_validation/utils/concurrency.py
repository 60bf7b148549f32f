"""Thread-backed serial task executor used for background cache maintenance."""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable
from typing import Any, Final

import structlog

_DEFAULT_QUEUE_SIZE: Final[int] = 16
_STOP: Final[object] = object()

Task = Callable[[], object]


class _Counter:
    """Thread-safe monotonic counter."""

    __slots__ = ("_lock", "_value")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> None:
        with self._lock:
            self._value += 1

    def value(self) -> int:
        with self._lock:
            return self._value


class SerialExecutor:
    """Run submitted callables one at a time on a single daemon worker thread.

    Submission never blocks: when the bounded queue is full the task is
    refused and ``submit`` returns ``False``. Task exceptions are logged and
    counted; they never stop the worker.
    """

    def __init__(
        self,
        *,
        name: str = "resource-validation-worker",
        queue_size: int = _DEFAULT_QUEUE_SIZE,
        logger: Any | None = None,
    ) -> None:
        if not isinstance(queue_size, int) or isinstance(queue_size, bool):
            raise ValueError(f"queue_size must be an integer, got {type(queue_size).__name__}")
        if queue_size <= 0:
            raise ValueError("queue_size must be > 0")

        self._name = name
        self._queue: queue.Queue[object] = queue.Queue(maxsize=queue_size)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._completed = _Counter()
        self._failed = _Counter()
        self._rejected = _Counter()

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def completed_tasks(self) -> int:
        return self._completed.value()

    @property
    def failed_tasks(self) -> int:
        return self._failed.value()

    @property
    def rejected_tasks(self) -> int:
        return self._rejected.value()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread = thread
            thread.start()

    def submit(self, task: Task) -> bool:
        """Queue ``task``; return ``False`` when the queue is full or the worker is stopped."""

        if not callable(task):
            raise ValueError("task must be callable")
        if not self.is_running:
            self._rejected.increment()
            return False
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            self._rejected.increment()
            return False
        return True

    def drain(self, *, timeout_seconds: float = 2.0) -> bool:
        """Wait until every queued task has finished; return ``True`` if drained in time."""

        deadline = time.monotonic() + max(timeout_seconds, 0.0)
        while self._queue.unfinished_tasks > 0:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.005)
        return True

    def shutdown(self, *, timeout_seconds: float = 2.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None or not thread.is_alive():
            return
        self.drain(timeout_seconds=timeout_seconds)
        # The stop marker may wait for a free slot; the worker is still consuming.
        self._queue.put(_STOP)
        thread.join(timeout=max(timeout_seconds, 0.0))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._run_one(item)
            finally:
                self._queue.task_done()

    def _run_one(self, item: object) -> None:
        task = item if callable(item) else None
        if task is None:
            return
        try:
            task()
        except Exception as exc:  # noqa: BLE001
            self._failed.increment()
            self._logger.error(
                "serial_executor_task_failed",
                executor=self._name,
                error_type=exc.__class__.__name__,
                error=str(exc),
            )
        else:
            self._completed.increment()


__all__ = ["SerialExecutor", "Task"]
