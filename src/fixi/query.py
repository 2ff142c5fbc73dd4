"""Query-string serialization for structured parameter objects.

``serialize_parameters`` turns a dataclass instance (or a plain mapping) into
an ordered list of ``(key, value)`` pairs:

- pair order follows declared field order, so the same object always yields
  the same query string
- ``None``, empty strings and empty sequences contribute nothing
- lists and tuples become repeated keys in their original order
- booleans are ``true``/``false``, enums use their wire name, datetimes use a
  fixed ISO 8601 form with microseconds and a UTC offset

Wire names come from ``field(metadata={"query": "name"})`` and fall back to
the field name. Values of any type not listed in ``SUPPORTED_KINDS`` raise
``UnsupportedParameterType``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from .errors import UnsupportedParameterType

QueryPair = tuple[str, str]

QUERY_NAME = "query"

SUPPORTED_KINDS: tuple[type, ...] = (
    str,
    bool,
    int,
    float,
    Decimal,
    Enum,
    datetime,
    date,
    UUID,
    list,
    tuple,
)


def format_datetime(value: datetime) -> str:
    """Round-trippable timestamp; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="microseconds")


def format_scalar(key: str, value: Any) -> str:
    # bool before int, datetime before date: both are subclasses
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise UnsupportedParameterType(key, value)


def _iter_fields(params: Any) -> Iterator[tuple[str, Any]]:
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        for f in dataclasses.fields(params):
            yield f.metadata.get(QUERY_NAME, f.name), getattr(params, f.name)
        return
    if isinstance(params, Mapping):
        for key, value in params.items():
            yield str(key), value
        return
    raise UnsupportedParameterType("<parameters>", params)


def iter_pairs(key: str, value: Any) -> Iterator[QueryPair]:
    """Yield the pairs contributed by a single field."""
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            if item is None:
                continue
            if isinstance(item, (list, tuple)):
                raise UnsupportedParameterType(key, item)
            text = format_scalar(key, item)
            if text:
                yield key, text
        return
    text = format_scalar(key, value)
    if text:
        yield key, text


def serialize_parameters(params: Any) -> list[QueryPair]:
    """Serialize a parameter object into ordered query pairs."""
    pairs: list[QueryPair] = []
    for key, value in _iter_fields(params):
        pairs.extend(iter_pairs(key, value))
    return pairs


__all__ = [
    "QueryPair",
    "SUPPORTED_KINDS",
    "format_datetime",
    "format_scalar",
    "iter_pairs",
    "serialize_parameters",
]
