"""Build an ``IssuesApi`` wired to a configured ``httpx.AsyncClient``.

Usage::

    async with open_client(load_config("fixi.config.yaml")) as issues:
        page = await issues.find("pothole", category=["roads"])
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from . import __version__
from .config import FixiConfig
from .formatters import MediaTypeFormatterCollection
from .issues import IssuesApi

USER_AGENT = f"fixi-client/{__version__}"


def build_http_client(
    cfg: FixiConfig, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if cfg.token:
        headers["Authorization"] = f"Bearer {cfg.token}"
    return httpx.AsyncClient(
        base_url=cfg.base_url.rstrip("/"),
        headers=headers,
        timeout=cfg.timeout,
        transport=transport,
    )


@asynccontextmanager
async def open_client(
    cfg: FixiConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    formatters: MediaTypeFormatterCollection | None = None,
) -> AsyncIterator[IssuesApi]:
    """Yield an ``IssuesApi`` and close its HTTP client on exit."""
    async with build_http_client(cfg, transport) as http_client:
        yield IssuesApi(http_client, formatters)


__all__ = ["USER_AGENT", "build_http_client", "open_client"]
