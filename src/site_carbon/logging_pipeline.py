"""Structured JSON logging for the HTTP service and CLI."""

from __future__ import annotations

import json
import logging
import logging.handlers
from collections.abc import Iterable
from contextvars import ContextVar
from datetime import datetime, timezone
from queue import Full, Queue
from typing_extensions import override

LOGGER = logging.getLogger(__name__)

request_id_var: ContextVar[str | None] = ContextVar("site_carbon_request_id", default=None)

_RESERVED_KEYS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "message",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "request_id",
    }
)


class RequestIdFilter(logging.Filter):
    """Copy the active request identifier onto every record."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, *, service: str = "site-carbon") -> None:
        super().__init__()
        self._service = service

    @override
    def format(self, record: logging.LogRecord) -> str:
        exception_text: str | None = None
        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
        elif record.exc_text:
            exception_text = record.exc_text

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_KEYS
        }
        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self._service,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "context": context,
        }
        if exception_text:
            payload["exception"] = exception_text
        return json.dumps(payload, default=str, ensure_ascii=False)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    level: int | str = logging.INFO,
    service: str = "site-carbon",
    max_queue: int = 1024,
) -> logging.handlers.QueueListener:
    """Attach a bounded queue handler that emits JSON lines on stderr.

    Args:
        logger: Target logger, usually the ``site_carbon`` package logger.
        level: Logging level or level name.
        service: Service name included in every payload.
        max_queue: Records buffered before new ones are dropped.

    Returns:
        The started queue listener; stop it with :func:`shutdown_listeners`.
    """

    logger.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=max_queue)
    queue_handler = BoundedQueueHandler(record_queue)
    queue_handler.addFilter(RequestIdFilter())
    logger.addHandler(queue_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter(service=service))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners, logging rather than raising on failure."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - defensive logging cleanup
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
