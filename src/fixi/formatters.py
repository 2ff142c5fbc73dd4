"""Content-type formatters used to read response bodies.

A formatter advertises the media types it accepts and turns raw body bytes
into an instance of the requested type. ``MediaTypeFormatterCollection``
holds formatters in priority order and is immutable: the first formatter that
accepts the response media type and can produce the requested type wins, so
when two formatters claim the same media type the one registered first is
used.

Every formatter lists the low-level exceptions it may raise while parsing in
``read_errors``; the REST layer turns those into ``InvalidResponseError``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from functools import lru_cache
from typing import Any, get_origin
from urllib.parse import parse_qsl

from pydantic import BaseModel, TypeAdapter

DEFAULT_CHARSET = "utf-8"
OCTET_STREAM = "application/octet-stream"


@lru_cache(maxsize=256)
def _adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


def validate(result_type: Any, data: Any) -> Any:
    """Validate plain Python data against ``result_type`` with pydantic."""
    return _adapter(result_type).validate_python(data)


def parse_content_type(header: str | None) -> tuple[str, str | None]:
    """Split a Content-Type header into (media type, charset)."""
    if not header:
        return OCTET_STREAM, None
    media_type, *params = (part.strip() for part in header.split(";"))
    charset: str | None = None
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value:
            charset = value.strip().strip('"')
    return media_type.lower() or OCTET_STREAM, charset


class MediaTypeFormatter:
    """Base formatter: subclasses set ``media_types`` and implement ``read``."""

    media_types: tuple[str, ...] = ()
    read_errors: tuple[type[Exception], ...] = (ValueError, LookupError, RecursionError)

    def supports(self, media_type: str) -> bool:
        return media_type in self.media_types

    def can_read(self, result_type: Any) -> bool:
        return True

    def read(self, body: bytes, result_type: Any, charset: str | None = None) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(self.media_types)})"


class JsonMediaTypeFormatter(MediaTypeFormatter):
    media_types = ("application/json", "text/json")

    def supports(self, media_type: str) -> bool:
        return super().supports(media_type) or media_type.endswith("+json")

    def read(self, body: bytes, result_type: Any, charset: str | None = None) -> Any:
        data = json.loads(body.decode(charset or DEFAULT_CHARSET))
        return validate(result_type, data)


class FormUrlEncodedMediaTypeFormatter(MediaTypeFormatter):
    """Reads ``a=1&b=2`` bodies into models or dicts; repeated keys become lists."""

    media_types = ("application/x-www-form-urlencoded",)

    def can_read(self, result_type: Any) -> bool:
        origin = get_origin(result_type) or result_type
        if origin is dict:
            return True
        return isinstance(origin, type) and issubclass(origin, BaseModel)

    def read(self, body: bytes, result_type: Any, charset: str | None = None) -> Any:
        text = body.decode(charset or DEFAULT_CHARSET)
        data: dict[str, Any] = {}
        for key, value in parse_qsl(text, keep_blank_values=True, strict_parsing=bool(text)):
            if key not in data:
                data[key] = value
            elif isinstance(data[key], list):
                data[key].append(value)
            else:
                data[key] = [data[key], value]
        return validate(result_type, data)


class PlainTextMediaTypeFormatter(MediaTypeFormatter):
    media_types = ("text/plain",)

    def can_read(self, result_type: Any) -> bool:
        return result_type is str

    def read(self, body: bytes, result_type: Any, charset: str | None = None) -> str:
        return body.decode(charset or DEFAULT_CHARSET)


class MediaTypeFormatterCollection(Sequence[MediaTypeFormatter]):
    """Ordered, read-only set of formatters; safe to share between calls."""

    def __init__(self, formatters: Iterable[MediaTypeFormatter] | None = None):
        if formatters is None:
            formatters = (
                JsonMediaTypeFormatter(),
                FormUrlEncodedMediaTypeFormatter(),
                PlainTextMediaTypeFormatter(),
            )
        self._formatters: tuple[MediaTypeFormatter, ...] = tuple(formatters)

    def __getitem__(self, index: Any) -> Any:
        return self._formatters[index]

    def __len__(self) -> int:
        return len(self._formatters)

    def __iter__(self) -> Iterator[MediaTypeFormatter]:
        return iter(self._formatters)

    def __repr__(self) -> str:
        return f"MediaTypeFormatterCollection({list(self._formatters)!r})"

    def with_formatter(
        self, formatter: MediaTypeFormatter, *, first: bool = False
    ) -> MediaTypeFormatterCollection:
        """Return a new collection with ``formatter`` added at either end."""
        if first:
            return MediaTypeFormatterCollection((formatter, *self._formatters))
        return MediaTypeFormatterCollection((*self._formatters, formatter))

    def find_reader(self, result_type: Any, media_type: str) -> MediaTypeFormatter | None:
        for formatter in self._formatters:
            if formatter.supports(media_type) and formatter.can_read(result_type):
                return formatter
        return None


__all__ = [
    "FormUrlEncodedMediaTypeFormatter",
    "JsonMediaTypeFormatter",
    "MediaTypeFormatter",
    "MediaTypeFormatterCollection",
    "PlainTextMediaTypeFormatter",
    "parse_content_type",
    "validate",
]
