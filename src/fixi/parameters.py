"""Filter and paging parameter shapes for the issues endpoints.

Field order is wire order. ``query`` metadata holds the wire name where it
differs from the Python attribute name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .models import SortOrder, Status

DEFAULT_PAGE = 1
DEFAULT_COUNT = 20
DEFAULT_MAP_COUNT = 200


def _wire(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"query": name})


def _check_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive non-zero integer, got {value!r}")


@dataclass(frozen=True)
class PagingMixin:
    def __post_init__(self) -> None:
        _check_positive("page", getattr(self, "page"))
        _check_positive("count", getattr(self, "count"))


@dataclass(frozen=True)
class TeamExportParameters:
    """Team export filters: no private-info search and no paging."""

    q: str | None = None
    reported_by: str | None = _wire("reportedBy")
    assigned_to: str | None = _wire("assignedTo")
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None


@dataclass(frozen=True)
class ExportParameters:
    q: str | None = None
    search_private_info: bool = _wire("searchPrivateInfo", False)
    reported_by: str | None = _wire("reportedBy")
    assigned_to: str | None = _wire("assignedTo")
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None


@dataclass(frozen=True)
class FindParameters(PagingMixin):
    q: str | None = None
    search_private_info: bool = _wire("searchPrivateInfo", False)
    reported_by: str | None = _wire("reportedBy")
    assigned_to: str | None = _wire("assignedTo")
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None
    page: int = DEFAULT_PAGE
    count: int = DEFAULT_COUNT


@dataclass(frozen=True)
class TeamParameters(PagingMixin):
    q: str | None = None
    reported_by: str | None = _wire("reportedBy")
    assigned_to: str | None = _wire("assignedTo")
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None
    page: int = DEFAULT_PAGE
    count: int = DEFAULT_COUNT


@dataclass(frozen=True)
class NearbyParameters(PagingMixin):
    latitude: float
    longitude: float
    radius: float
    q: str | None = None
    search_private_info: bool = _wire("searchPrivateInfo", False)
    reported_by: str | None = _wire("reportedBy")
    assigned_to: str | None = _wire("assignedTo")
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None
    sort: SortOrder = SortOrder.DEFAULT
    page: int = DEFAULT_PAGE
    count: int = DEFAULT_COUNT


@dataclass(frozen=True)
class MapParameters(PagingMixin):
    north: float
    east: float
    south: float
    west: float
    category: tuple[str, ...] | list[str] | None = None
    status: tuple[Status, ...] | list[Status] | None = None
    from_: datetime | None = _wire("from")
    to: datetime | None = None
    page: int = DEFAULT_PAGE
    count: int = DEFAULT_MAP_COUNT


__all__ = [
    "DEFAULT_COUNT",
    "DEFAULT_MAP_COUNT",
    "DEFAULT_PAGE",
    "ExportParameters",
    "FindParameters",
    "MapParameters",
    "NearbyParameters",
    "TeamExportParameters",
    "TeamParameters",
]
