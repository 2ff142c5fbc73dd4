from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Status(str, Enum):
    """Issue workflow status; values are the service's wire names."""

    OPEN = "Open"
    ACCEPTED = "Accepted"
    IN_PROGRESS = "InProgress"
    CLOSED = "Closed"
    REJECTED = "Rejected"


class SortOrder(str, Enum):
    DEFAULT = "Default"
    DATE = "Date"
    DISTANCE = "Distance"


class FixiModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown fields ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ListPage(FixiModel, Generic[T]):
    """A single page of results.

    ``count`` is the requested page size, ``total_count`` the number of
    matches across all pages.
    """

    items: list[T] = Field(default_factory=list)
    total_count: int = Field(ge=0)
    page: int = Field(default=1, ge=1)
    count: int = Field(ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> ListPage[T]:
        if len(self.items) > self.count:
            raise ValueError(
                f"page holds {len(self.items)} items but page size is {self.count}"
            )
        if self.total_count < len(self.items):
            raise ValueError(
                f"total count {self.total_count} is less than the {len(self.items)} items returned"
            )
        return self


class Location(FixiModel):
    latitude: float
    longitude: float


class IssueMapListItem(FixiModel):
    """Minimal issue projection used to draw map markers."""

    id: str
    status: Status
    category: str | None = None
    location: Location


class IssueListItem(FixiModel):
    id: str
    description: str | None = None
    status: Status
    category: str | None = None
    address: str | None = None
    location: Location | None = None
    created: datetime
    distance: float | None = None


class Issue(FixiModel):
    id: str
    description: str | None = None
    status: Status
    category: str | None = None
    address: str | None = None
    location: Location | None = None
    created: datetime
    modified: datetime | None = None
    reported_by: str | None = None
    assigned_to: str | None = None
    private_info: str | None = None
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class IssueChanges(FixiModel):
    """Partial modification of an issue; only fields set explicitly are sent."""

    description: str | None = None
    status: Status | None = None
    category: str | None = None
    assigned_to: str | None = None
    private_info: str | None = None
    location: Location | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


__all__ = [
    "Issue",
    "IssueChanges",
    "IssueListItem",
    "IssueMapListItem",
    "ListPage",
    "Location",
    "SortOrder",
    "Status",
]
