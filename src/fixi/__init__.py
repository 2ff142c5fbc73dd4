"""fixi - typed async client for the Fixi issue-tracking service.

High-level public API (stable):

from fixi import open_client, load_config

async with open_client(load_config('fixi.config.yaml')) as issues:
    page = await issues.find('pothole', category=['roads'])
    issue = await issues.get(page.items[0].id)

``IssuesApi`` builds on ``RestApi``, the generic typed-GET core, which other
API surfaces can subclass with their own endpoint tables.
"""

from __future__ import annotations

# Version constant (keep in sync with pyproject)
__version__ = "0.2.0"

from .cancellation import CancellationToken  # noqa: E402
from .client import build_http_client, open_client  # noqa: E402
from .config import ConfigError, FixiConfig, config_from_env, load_config  # noqa: E402
from .errors import (  # noqa: E402
    FixiError,
    InvalidResponseError,
    UnsupportedMediaTypeError,
    UnsupportedParameterType,
)
from .issues import IssuesApi  # noqa: E402
from .models import (  # noqa: E402
    Issue,
    IssueChanges,
    IssueListItem,
    IssueMapListItem,
    ListPage,
    Location,
    SortOrder,
    Status,
)
from .rest import RestApi  # noqa: E402

__all__ = [
    "CancellationToken",
    "ConfigError",
    "FixiConfig",
    "FixiError",
    "InvalidResponseError",
    "Issue",
    "IssueChanges",
    "IssueListItem",
    "IssueMapListItem",
    "IssuesApi",
    "ListPage",
    "Location",
    "RestApi",
    "SortOrder",
    "Status",
    "UnsupportedMediaTypeError",
    "UnsupportedParameterType",
    "build_http_client",
    "config_from_env",
    "load_config",
    "open_client",
    "__version__",
]
