"""Issues API surface.

Every operation is a row in ``ENDPOINTS``: HTTP verb, path template,
parameter shape, result type and default page size. ``IssuesApi.call`` is the
single dispatcher; the named coroutines below only build the parameter object
and pick the row.

Path templates are part of the service contract and must not change.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import IO, Any
from urllib.parse import quote

from .cancellation import CancellationToken
from .models import (
    Issue,
    IssueChanges,
    IssueListItem,
    IssueMapListItem,
    ListPage,
    SortOrder,
)
from .parameters import (
    DEFAULT_COUNT,
    DEFAULT_MAP_COUNT,
    DEFAULT_PAGE,
    ExportParameters,
    FindParameters,
    MapParameters,
    NearbyParameters,
    TeamExportParameters,
    TeamParameters,
)
from .rest import RestApi

API_VERSION = "2.0"
STREAM = "stream"


@dataclass(frozen=True)
class Endpoint:
    method: str
    path: str
    parameters: type | None
    result: Any
    default_count: int | None = None

    def format_path(self, **path_args: str) -> str:
        # ids are opaque: encode each as exactly one non-empty path segment
        for key, value in path_args.items():
            if not value:
                raise ValueError(f"{key} must be a non-empty string")
        return self.path.format(**{k: quote(v, safe="") for k, v in path_args.items()})


ENDPOINTS: Mapping[str, Endpoint] = MappingProxyType(
    {
        "find": Endpoint(
            "GET",
            f"/issues?api-version={API_VERSION}",
            FindParameters,
            ListPage[IssueListItem],
            DEFAULT_COUNT,
        ),
        "get": Endpoint("GET", "/issues/{id}", None, Issue),
        "nearby": Endpoint(
            "GET",
            f"/issues/nearby?api-version={API_VERSION}",
            NearbyParameters,
            ListPage[IssueListItem],
            DEFAULT_COUNT,
        ),
        "map_issues": Endpoint(
            "GET",
            f"/issues/map?api-version={API_VERSION}",
            MapParameters,
            ListPage[IssueMapListItem],
            DEFAULT_MAP_COUNT,
        ),
        "team_issues": Endpoint(
            "GET",
            f"/issues/team?api-version={API_VERSION}",
            TeamParameters,
            ListPage[IssueListItem],
            DEFAULT_COUNT,
        ),
        "export": Endpoint(
            "GET", f"/issues/export?api-version={API_VERSION}", ExportParameters, STREAM
        ),
        "export_team": Endpoint(
            "GET",
            f"/issues/team/export?api-version={API_VERSION}",
            TeamExportParameters,
            STREAM,
        ),
        "update": Endpoint("PATCH", "/issues/{id}", None, Issue),
    }
)


def _as_list(values: Any) -> list[Any] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


class IssuesApi(RestApi):
    """Async client for the issues endpoints."""

    async def call(
        self,
        name: str,
        parameters: Any | None = None,
        *,
        path_args: Mapping[str, str] | None = None,
        body: IssueChanges | None = None,
        destination: IO[bytes] | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> Any:
        try:
            endpoint = ENDPOINTS[name]
        except KeyError:
            raise ValueError(f"Unknown issues operation: {name}") from None
        if endpoint.parameters is not None and not isinstance(parameters, endpoint.parameters):
            raise TypeError(
                f"{name} expects {endpoint.parameters.__name__}, got {type(parameters).__name__}"
            )
        path = endpoint.format_path(**(path_args or {}))
        if endpoint.result == STREAM:
            if destination is None:
                raise ValueError(f"{name} requires a destination stream")
            return await self.download(
                path, destination, parameters, cancellation_token=cancellation_token
            )
        return await self.send(
            endpoint.method,
            path,
            endpoint.result,
            parameters,
            json=body.to_payload() if body is not None else None,
            cancellation_token=cancellation_token,
        )

    async def find(
        self,
        q: str | None = None,
        *,
        search_private_info: bool = False,
        reported_by: str | None = None,
        assigned_to: str | None = None,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        page: int = DEFAULT_PAGE,
        count: int = DEFAULT_COUNT,
        cancellation_token: CancellationToken | None = None,
    ) -> ListPage[IssueListItem]:
        """Return one page of issues, newest first."""
        params = FindParameters(
            q=q,
            search_private_info=search_private_info,
            reported_by=reported_by,
            assigned_to=assigned_to,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
            page=page,
            count=count,
        )
        return await self.call("find", params, cancellation_token=cancellation_token)

    async def get(
        self, id: str, *, cancellation_token: CancellationToken | None = None
    ) -> Issue:
        """Return the issue with the given public id."""
        return await self.call("get", path_args={"id": id}, cancellation_token=cancellation_token)

    async def nearby(
        self,
        latitude: float,
        longitude: float,
        radius: float,
        q: str | None = None,
        *,
        search_private_info: bool = False,
        reported_by: str | None = None,
        assigned_to: str | None = None,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        sort: SortOrder = SortOrder.DEFAULT,
        page: int = DEFAULT_PAGE,
        count: int = DEFAULT_COUNT,
        cancellation_token: CancellationToken | None = None,
    ) -> ListPage[IssueListItem]:
        """Return issues within ``radius`` meters of a point."""
        params = NearbyParameters(
            latitude=latitude,
            longitude=longitude,
            radius=radius,
            q=q,
            search_private_info=search_private_info,
            reported_by=reported_by,
            assigned_to=assigned_to,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
            sort=sort,
            page=page,
            count=count,
        )
        return await self.call("nearby", params, cancellation_token=cancellation_token)

    async def map_issues(
        self,
        north: float,
        east: float,
        south: float,
        west: float,
        *,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        page: int = DEFAULT_PAGE,
        count: int = DEFAULT_MAP_COUNT,
        cancellation_token: CancellationToken | None = None,
    ) -> ListPage[IssueMapListItem]:
        """Return issues inside the given bounding box."""
        params = MapParameters(
            north=north,
            east=east,
            south=south,
            west=west,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
            page=page,
            count=count,
        )
        return await self.call("map_issues", params, cancellation_token=cancellation_token)

    async def team_issues(
        self,
        q: str | None = None,
        *,
        reported_by: str | None = None,
        assigned_to: str | None = None,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        page: int = DEFAULT_PAGE,
        count: int = DEFAULT_COUNT,
        cancellation_token: CancellationToken | None = None,
    ) -> ListPage[IssueListItem]:
        """Return issues assigned to any of the logged-in user's teams."""
        params = TeamParameters(
            q=q,
            reported_by=reported_by,
            assigned_to=assigned_to,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
            page=page,
            count=count,
        )
        return await self.call("team_issues", params, cancellation_token=cancellation_token)

    async def export(
        self,
        destination: IO[bytes],
        q: str | None = None,
        *,
        search_private_info: bool = False,
        reported_by: str | None = None,
        assigned_to: str | None = None,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> int:
        """Write the Excel overview of matching issues to ``destination``."""
        params = ExportParameters(
            q=q,
            search_private_info=search_private_info,
            reported_by=reported_by,
            assigned_to=assigned_to,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
        )
        return await self.call(
            "export", params, destination=destination, cancellation_token=cancellation_token
        )

    async def export_team(
        self,
        destination: IO[bytes],
        q: str | None = None,
        *,
        reported_by: str | None = None,
        assigned_to: str | None = None,
        category: Any = None,
        status: Any = None,
        from_: datetime | None = None,
        to: datetime | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> int:
        params = TeamExportParameters(
            q=q,
            reported_by=reported_by,
            assigned_to=assigned_to,
            category=_as_list(category),
            status=_as_list(status),
            from_=from_,
            to=to,
        )
        return await self.call(
            "export_team", params, destination=destination, cancellation_token=cancellation_token
        )

    async def update(
        self,
        id: str,
        changes: IssueChanges,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> Issue:
        """Apply ``changes`` to an issue and return the updated issue."""
        return await self.call(
            "update",
            path_args={"id": id},
            body=changes,
            cancellation_token=cancellation_token,
        )


__all__ = ["API_VERSION", "ENDPOINTS", "Endpoint", "IssuesApi"]
