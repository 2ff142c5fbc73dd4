"""Structured JSON logging for the Fixi client."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from .errors import redact

LOGGER_NAME = "fixi"
DEFAULT_LEVEL = "WARNING"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for attr in (
            "operation",
            "method",
            "url",
            "status",
            "result_type",
            "duration_ms",
            "error",
        ):
            if hasattr(record, attr):
                value = getattr(record, attr)
                entry[attr] = redact(value) if isinstance(value, str) else value
        reserved = set(entry.keys()) | {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
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
            "exc_info",
            "exc_text",
            "stack_info",
        }
        for k, v in record.__dict__.items():
            if k not in reserved and not k.startswith("_"):
                entry[k] = v
        return json.dumps(entry, default=str)


class StructuredLogger:
    def __init__(
        self, name: str = LOGGER_NAME, json_logging: bool = False, level: str = DEFAULT_LEVEL
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            JSONFormatter()
            if json_logging
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        self._logger.addHandler(handler)
        self._logger.propagate = False
        self._dedupe_enabled = json_logging
        self._last_signature: tuple[int, str, tuple[tuple[str, str], ...]] | None = None

    @property
    def level(self) -> int:
        return self._logger.level

    def _emit(self, level: int, message: str, extra: dict[str, Any]) -> None:
        if self._dedupe_enabled:
            signature = (
                level,
                message,
                tuple(sorted((k, repr(v)) for k, v in extra.items())),
            )
            if signature == self._last_signature:
                return
            self._last_signature = signature
        self._logger.log(level, message, extra=extra)

    def log_operation(self, operation: str, **kw: Any) -> None:
        extra = {"operation": operation, **kw}
        self._emit(logging.INFO, f"Operation: {operation}", extra)

    def log_request(self, method: str, url: str, **kw: Any) -> None:
        extra = {"operation": "request", "method": method, "url": redact(url), **kw}
        self._emit(logging.DEBUG, f"{method} {redact(url)}", extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        extra = {"operation": operation, "duration_ms": round(duration_ms, 2), **kw}
        self._emit(
            logging.INFO,
            f"Performance: {operation} completed in {duration_ms:.2f}ms",
            extra,
        )

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        extra = dict(kw)
        if error:
            extra["error"] = redact(error)
        self._logger.error(message, extra=extra)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        start = time.perf_counter()
        self.log_operation(f"{operation}_start", **kw)
        try:
            yield
            self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)
        except Exception as exc:
            self.log_error(f"operation {operation} failed", error=str(exc), **kw)
            raise


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger()
    return _GLOBAL


def configure_logging(json_logging: bool = False, level: str = DEFAULT_LEVEL) -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    _GLOBAL = StructuredLogger(json_logging=json_logging, level=level)
    return _GLOBAL


__all__ = ["JSONFormatter", "StructuredLogger", "configure_logging", "get_logger"]
