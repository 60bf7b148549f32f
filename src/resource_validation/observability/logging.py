"""
resource-validation — structured logging.

File: src/resource_validation/observability/logging.py

Purpose
- Give every component one place its ``structlog`` events end up: a JSON-lines
  file and/or stdout, written from a background queue listener.

What should be included in this file
- structlog configuration that hands event dicts to stdlib ``logging``.
- A queue-backed sink that never blocks the caller; overflow is counted.
- A handle to flush and shut the sink down, plus a process-wide active handle.

Non-functional requirements
- Output is one sorted-key JSON object per line so logs diff cleanly.
"""

from __future__ import annotations

import atexit
import json
import logging
import logging.handlers
import queue
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final

import structlog

_LOG_FILENAME: Final[str] = "resource-validation.jsonl"
_LOGGER_NAME: Final[str] = "resource_validation"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.makeLogRecord({}))
) | {"message", "asctime", "taskName"}


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where and how verbosely to write structured logs.

    ``base_log_dir=None`` disables the file sink.
    """

    base_log_dir: Path | str | None = Path("logs")
    logger_name: str = _LOGGER_NAME
    level: int | str = "INFO"
    queue_size: int = 4096
    log_filename: str = _LOG_FILENAME
    log_to_stdout: bool = True


class JsonLineFormatter(logging.Formatter):
    """Render a record as ``{timestamp, level, logger, message[, fields, exception, stack]}``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=_json_fallback,
        )


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """Enqueue without blocking; a full queue drops the record and counts it."""

    def __init__(self, log_queue: queue.Queue[Any]) -> None:
        super().__init__(log_queue)
        self._drops_lock = threading.Lock()
        self.dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._drops_lock:
                self.dropped += 1


class StructuredLoggingHandle:
    """Owns the queue listener and sinks installed by ``setup_structured_logging``."""

    def __init__(
        self,
        logger: logging.Logger,
        queue_handler: _DroppingQueueHandler,
        listener: logging.handlers.QueueListener,
        sinks: tuple[logging.Handler, ...],
        log_path: Path | None,
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._queue_handler = queue_handler
        self._listener = listener
        self._sinks = sinks
        self._lock = threading.Lock()
        self._closed = False

    @property
    def dropped_records(self) -> int:
        return self._queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def flush(self, *, timeout_seconds: float = 2.0) -> None:
        """Wait for the listener to catch up, then flush every sink."""

        pending: queue.Queue[Any] = self._queue_handler.queue  # type: ignore[assignment]
        deadline = time.monotonic() + max(timeout_seconds, 0.0)
        while pending.unfinished_tasks and time.monotonic() < deadline:
            time.sleep(0.01)
        for sink in self._sinks:
            sink.flush()

    def shutdown(self, *, timeout_seconds: float = 2.0) -> None:
        with self._lock:
            if self._closed:
                return
            self.flush(timeout_seconds=timeout_seconds)
            self._listener.stop()
            self.logger.removeHandler(self._queue_handler)
            self._queue_handler.close()
            for sink in self._sinks:
                sink.close()
            self._closed = True


class _ActiveHandle:
    """The handle most recently installed in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handle: StructuredLoggingHandle | None = None
        self._atexit_hooked = False

    def get(self) -> StructuredLoggingHandle | None:
        with self._lock:
            return self._handle

    def replace(self, handle: StructuredLoggingHandle | None) -> StructuredLoggingHandle | None:
        with self._lock:
            previous, self._handle = self._handle, handle
            if handle is not None and not self._atexit_hooked:
                atexit.register(shutdown_logging)
                self._atexit_hooked = True
            return previous

    def release(self, handle: StructuredLoggingHandle) -> None:
        with self._lock:
            if self._handle is handle:
                self._handle = None


_active = _ActiveHandle()


def configure_structlog() -> None:
    """Send ``structlog.get_logger`` events through stdlib logging.

    Bound keyword fields become ``extra`` attributes on the LogRecord, which is
    where ``JsonLineFormatter`` picks them up.
    """

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Install sinks for ``config`` and make the result the active handle.

    Any previously active handle is shut down first.
    """

    if isinstance(config.queue_size, bool) or not isinstance(config.queue_size, int):
        raise ValueError("queue_size must be an integer")
    if config.queue_size < 1:
        raise ValueError("queue_size must be >= 1")
    level = _as_level(config.level)
    logger_name = _non_empty(config.logger_name, "logger_name")
    log_path = _log_path(config)

    previous = _active.replace(None)
    if previous is not None:
        previous.shutdown()

    formatter = JsonLineFormatter()
    sinks: list[logging.Handler] = []
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stdout:
        sinks.append(logging.StreamHandler())
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    queue_handler = _DroppingQueueHandler(queue.Queue(maxsize=config.queue_size))
    listener = logging.handlers.QueueListener(
        queue_handler.queue, *sinks, respect_handler_level=True
    )
    listener.start()
    logger.addHandler(queue_handler)
    configure_structlog()

    handle = StructuredLoggingHandle(logger, queue_handler, listener, tuple(sinks), log_path)
    _active.replace(handle)
    return handle


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    log_dir: Path | str | None = None,
    logger_name: str = _LOGGER_NAME,
) -> StructuredLoggingHandle:
    """Configure logging from the ``[observability]`` table of ``validation.toml``.

    An empty ``log_dir`` turns the file sink off; ``log_dir=`` overrides the table.
    """

    settings = dict(observability_config or {})
    directory = log_dir if log_dir is not None else settings.get("log_dir", "logs")
    if not isinstance(directory, (str, Path)) or not str(directory).strip():
        directory = None
    level = settings.get("log_level", "INFO")
    return setup_structured_logging(
        LoggingConfig(
            base_log_dir=directory,
            logger_name=logger_name,
            level=level if isinstance(level, (int, str)) else "INFO",
            log_to_stdout=bool(settings.get("log_to_stdout", True)),
        )
    )


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    return _active.get()


def flush_logging(
    handle: StructuredLoggingHandle | None = None, *, timeout_seconds: float = 2.0
) -> None:
    target = handle or _active.get()
    if target is not None:
        target.flush(timeout_seconds=timeout_seconds)


def shutdown_logging(
    handle: StructuredLoggingHandle | None = None, *, timeout_seconds: float = 2.0
) -> None:
    target = handle or _active.get()
    if target is None:
        return
    target.shutdown(timeout_seconds=timeout_seconds)
    _active.release(target)


@contextmanager
def correlation_scope(**fields: str) -> Iterator[None]:
    """Bind ``fields`` onto every structlog event emitted inside the block."""

    with structlog.contextvars.bound_contextvars(**fields):
        yield


def _log_path(config: LoggingConfig) -> Path | None:
    if config.base_log_dir is None:
        return None
    filename = _non_empty(config.log_filename, "log_filename")
    if Path(filename).name != filename:
        raise ValueError("log_filename must be a bare file name")
    return Path(config.base_log_dir) / filename


def _as_level(level: int | str) -> int:
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if isinstance(resolved, int):
            return resolved
    raise ValueError(f"unsupported logging level {level!r}")


def _non_empty(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value.strip()


def _utc_timestamp(epoch_seconds: float) -> str:
    moment = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_fallback(value: object) -> object:
    if isinstance(value, datetime):
        aware = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return aware.astimezone(UTC).isoformat().replace("+00:00", "Z")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, (Path, Mapping)):
        return str(value) if isinstance(value, Path) else dict(value)
    return repr(value)


__all__ = [
    "JsonLineFormatter",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "flush_logging",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
