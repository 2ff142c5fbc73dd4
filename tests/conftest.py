"""Pytest configuration for fixi tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Subprocess-based CLI tests import the in-repo package through PYTHONPATH.
py_path = os.environ.get("PYTHONPATH", "")
parts = [p for p in py_path.split(os.pathsep) if p]
if str(SRC) not in parts:
    parts.insert(0, str(SRC))
    os.environ["PYTHONPATH"] = os.pathsep.join(parts)

pytest_plugins = ["pytest_asyncio"]

BASE_URL = "https://fixi.test/api"

Handler = Callable[[httpx.Request], Any]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Handler):
        self.requests: list[httpx.Request] = []

        async def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            result = handler(request)
            if hasattr(result, "__await__"):
                result = await result
            return result

        super().__init__(_record)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def list_page(items: list[dict[str, Any]], *, page: int = 1, count: int = 20, total: int | None = None) -> dict[str, Any]:
    return {
        "items": items,
        "page": page,
        "count": count,
        "totalCount": len(items) if total is None else total,
    }


def issue_item(issue_id: str = "FX-1001", **overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": issue_id,
        "description": "Pothole on Main Street",
        "status": "Open",
        "category": "roads",
        "address": "Main Street 1",
        "location": {"latitude": 52.09, "longitude": 5.12},
        "created": "2024-03-01T09:30:00+00:00",
    }
    item.update(overrides)
    return item


@pytest.fixture(autouse=True)
def _reset_logger() -> Iterator[None]:
    import fixi.logging as fixi_logging

    fixi_logging._GLOBAL = None
    yield
    fixi_logging._GLOBAL = None
