"""Error taxonomy & redaction for the Fixi client.

Three kinds of failure reach callers:

- ``UnsupportedParameterType``: a filter value has no query encoding rule.
  Raised locally, before anything is sent.
- transport errors: httpx's own exception types (connection, timeout,
  non-success status), propagated unchanged.
- ``InvalidResponseError``: the body could not be deserialized into the
  requested type. Always carries the type and the original parse error.

``classify_error`` maps any of these onto a stable category string so CLI
output and logs do not depend on exception class names. ``redact`` masks
credentials before text is logged or printed.
"""
from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any

import httpx

from .config import ConfigError

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*"),
    re.compile(r"(?i)((?:access_)?token=)[^&\s]+"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class FixiError(Exception):
    """Base class for errors raised by the Fixi client itself."""


class UnsupportedParameterType(FixiError, TypeError):
    """A parameter value has no query-string encoding rule."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value_type = type(value)
        super().__init__(
            f"Parameter '{field}' has unsupported type {self.value_type.__name__}"
        )


class InvalidResponseError(FixiError):
    """The response body could not be read as the requested type."""

    def __init__(self, result_type: Any, message: str | None = None):
        self.result_type = result_type
        self.type_name = type_name(result_type)
        super().__init__(
            message or f"The response could not be deserialized as {self.type_name}"
        )


class UnsupportedMediaTypeError(InvalidResponseError):
    """No configured formatter accepts the response content type."""

    def __init__(self, result_type: Any, media_type: str):
        self.media_type = media_type
        super().__init__(
            result_type,
            f"No formatter can read {type_name(result_type)} from '{media_type}' content",
        )


def type_name(tp: Any) -> str:
    """Readable name for classes and parameterized generics alike."""
    name = getattr(tp, "__name__", None)
    if isinstance(name, str) and not getattr(tp, "__args__", None):
        return name
    return repr(tp).replace("typing.", "")


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Mask bearer tokens and ``token=`` query values in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception onto the client's error categories.

    ``transient`` is only a hint; this package never retries on its own.
    """
    msg = redact(str(exc))
    kind = exc.__class__.__name__

    if isinstance(exc, UnsupportedParameterType):
        return ErrorInfo(
            "parameter",
            msg,
            kind,
            details={"field": exc.field, "type": exc.value_type.__name__},
        )
    if isinstance(exc, InvalidResponseError):
        details: dict[str, Any] = {"result_type": exc.type_name}
        if exc.__cause__ is not None:
            details["cause"] = redact(str(exc.__cause__))
        return ErrorInfo("invalid_response", msg, kind, details=details)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return ErrorInfo(
            "http_status",
            msg,
            kind,
            transient=status == 429 or status >= 500,
            details={"status": status},
        )
    if isinstance(exc, httpx.TimeoutException):
        return ErrorInfo("timeout", msg, kind, transient=True)
    if isinstance(exc, httpx.TransportError):
        return ErrorInfo("network", msg, kind, transient=True)
    if isinstance(exc, asyncio.CancelledError):
        return ErrorInfo("cancelled", msg or "operation cancelled", kind)
    if isinstance(exc, ConfigError):
        return ErrorInfo("config", msg, kind)
    return ErrorInfo("generic", msg, kind)


__all__ = [
    "ErrorInfo",
    "FixiError",
    "InvalidResponseError",
    "UnsupportedMediaTypeError",
    "UnsupportedParameterType",
    "classify_error",
    "redact",
    "type_name",
]
