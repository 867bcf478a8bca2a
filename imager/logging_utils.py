"""Structured logging utilities for watermark invocations."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, MutableMapping
from uuid import uuid4


_RESERVED_LOG_RECORD_ATTRS = {
    "name",
    "msg",
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
    "process",
    "processName",
    "taskName",
    "message",
    "asctime",
}


class JsonLogFormatter(logging.Formatter):
    """Serialize log records to JSON with ISO timestamps."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        log_record: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_ATTRS:
                continue
            log_record[key] = self._coerce_value(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)

    @staticmethod
    def _coerce_value(value: Any) -> Any:
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, datetime):
            return value.astimezone(timezone.utc).isoformat()
        return value


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Merge per-call ``extra`` fields with the invocation context."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


@dataclass(slots=True)
class InvocationContext:
    """Holds contextual metadata and logger for a single stamping invocation."""

    invocation_id: str
    key: str | None
    logger: logging.LoggerAdapter
    log_path: Path
    _handler: logging.Handler
    _base_logger: logging.Logger

    def close(self) -> None:
        """Detach handlers associated with this invocation."""

        self._base_logger.removeHandler(self._handler)
        self._handler.close()


@contextmanager
def invocation_context(
    *,
    key: str | None = None,
    log_dir: str | Path | None = None,
    extra_context: Mapping[str, Any] | None = None,
) -> Iterator[InvocationContext]:
    """Create a structured logging context for one dispatcher invocation."""

    invocation_id = uuid4().hex
    base_log_dir = Path(log_dir) if log_dir is not None else Path("logs") / "invocations"
    base_log_dir.mkdir(parents=True, exist_ok=True)
    log_path = base_log_dir / f"{invocation_id}.log"

    # not registered with the logging manager so finished invocations can be collected
    base_logger = logging.Logger(f"imager.invocation.{invocation_id}")
    base_logger.setLevel(logging.DEBUG)
    base_logger.propagate = False

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(JsonLogFormatter())
    base_logger.addHandler(handler)

    context_fields: MutableMapping[str, Any] = {"invocation_id": invocation_id, "key": key}
    if extra_context:
        context_fields.update(extra_context)
    adapter = ContextLoggerAdapter(base_logger, context_fields)

    context = InvocationContext(
        invocation_id=invocation_id,
        key=key,
        logger=adapter,
        log_path=log_path,
        _handler=handler,
        _base_logger=base_logger,
    )

    adapter.info("invocation_started")
    try:
        yield context
        adapter.info("invocation_completed")
    except Exception:
        adapter.exception("invocation_failed")
        raise
    finally:
        context.close()
