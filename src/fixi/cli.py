"""Fixi CLI.

Subcommands:
  find    -> search issues (one page)
  get     -> fetch one issue by public id
  nearby  -> issues around a coordinate
  map     -> issues inside a bounding box
  team    -> issues assigned to the caller's teams
  export  -> write the Excel overview to a file (--team for team issues)
  update  -> patch an issue from a JSON document of changed fields

Results are printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import io
import json
import os
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from fixi.client import open_client
from fixi.config import CONFIG_DEFAULT, ConfigError, FixiConfig, config_from_env, load_config
from fixi.errors import classify_error
from fixi.issues import IssuesApi
from fixi.logging import configure_logging
from fixi.models import IssueChanges, SortOrder, Status
from fixi.observability import configure_telemetry

EXIT_OK = 0
EXIT_REMOTE = 1
EXIT_USAGE = 2

_MAX_HELP_WIDTH = 100
_STATUS_CHOICES = "{" + ",".join(s.value for s in Status) + "}"
_SORT_CHOICES = "{" + ",".join(s.value for s in SortOrder) + "}"


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value}") from exc


def _add_filters(parser: argparse.ArgumentParser, *, private: bool = True) -> None:
    parser.add_argument("-q", "--query", dest="q", help="Search string")
    if private:
        parser.add_argument(
            "--search-private-info",
            action="store_true",
            help="Also search fields that may contain private information",
        )
    parser.add_argument("--reported-by", help="Reporter email address")
    parser.add_argument("--assigned-to", help="Handler email address or team short name")
    parser.add_argument(
        "--category", action="append", help="Category short name (repeatable)"
    )
    parser.add_argument(
        "--status",
        action="append",
        type=Status,
        metavar=_STATUS_CHOICES,
        help="Status (repeatable)",
    )
    parser.add_argument("--from", dest="from_", type=_timestamp, help="Created on or after")
    parser.add_argument("--to", type=_timestamp, help="Created on or before")


def _add_paging(parser: argparse.ArgumentParser, default_count: int) -> None:
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--count", type=int, default=default_count)


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands.

    Keep ordering stable for help output readability.
    """
    p = _FormatterArgumentParser(prog="fixi", description="Fixi issue-tracking client")
    p.add_argument(
        "--config",
        help=f"YAML config file (default: {CONFIG_DEFAULT} if present, else FIXI_* env)",
    )
    p.add_argument("--pretty", action="store_true", help="Indent JSON output")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pf = sub.add_parser("find", help="Search issues")
    _add_filters(pf)
    _add_paging(pf, 20)

    pg = sub.add_parser("get", help="Fetch an issue by public id")
    pg.add_argument("id")

    pn = sub.add_parser("nearby", help="Issues near a location")
    pn.add_argument("latitude", type=float)
    pn.add_argument("longitude", type=float)
    pn.add_argument("radius", type=float, help="Radius in meters")
    _add_filters(pn)
    pn.add_argument("--sort", type=SortOrder, metavar=_SORT_CHOICES, default=SortOrder.DEFAULT)
    _add_paging(pn, 20)

    pm = sub.add_parser("map", help="Issues inside a bounding box")
    for edge in ("north", "east", "south", "west"):
        pm.add_argument(edge, type=float)
    pm.add_argument("--category", action="append")
    pm.add_argument("--status", action="append", type=Status, metavar=_STATUS_CHOICES)
    pm.add_argument("--from", dest="from_", type=_timestamp)
    pm.add_argument("--to", type=_timestamp)
    _add_paging(pm, 200)

    pt = sub.add_parser("team", help="Issues assigned to your teams")
    _add_filters(pt, private=False)
    _add_paging(pt, 20)

    pe = sub.add_parser("export", help="Write an Excel overview of issues")
    pe.add_argument("--output", required=True, help="Destination .xlsx file")
    pe.add_argument("--team", action="store_true", help="Export team issues instead")
    _add_filters(pe)

    pu = sub.add_parser("update", help="Update an issue")
    pu.add_argument("id")
    pu.add_argument(
        "--changes",
        required=True,
        help="JSON object of changed fields, or @path to a JSON file",
    )
    return p


def _resolve_config(args: argparse.Namespace) -> FixiConfig:
    if args.config:
        return load_config(args.config)
    if Path(CONFIG_DEFAULT).exists():
        return load_config(CONFIG_DEFAULT)
    return config_from_env()


def _read_changes(raw: str) -> IssueChanges:
    text = Path(raw[1:]).read_text(encoding="utf-8") if raw.startswith("@") else raw
    return IssueChanges.model_validate_json(text)


def _filters(args: argparse.Namespace, *, private: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {
        "reported_by": args.reported_by,
        "assigned_to": args.assigned_to,
        "category": args.category,
        "status": args.status,
        "from_": args.from_,
        "to": args.to,
    }
    if private:
        out["search_private_info"] = args.search_private_info
    return out


async def _cmd_export(issues: IssuesApi, args: argparse.Namespace) -> dict[str, Any]:
    target = Path(args.output)
    buffer = io.BytesIO()
    if args.team:
        size = await issues.export_team(buffer, args.q, **_filters(args, private=False))
    else:
        size = await issues.export(buffer, args.q, **_filters(args))
    # an existing file is only replaced once the whole export has arrived
    target.write_bytes(buffer.getvalue())
    return {"output": str(target), "bytes": size}


def _build_handlers(
    args: argparse.Namespace,
) -> dict[str, Callable[[IssuesApi], Awaitable[Any]]]:
    return {
        "find": lambda api: api.find(
            args.q, **_filters(args), page=args.page, count=args.count
        ),
        "get": lambda api: api.get(args.id),
        "nearby": lambda api: api.nearby(
            args.latitude,
            args.longitude,
            args.radius,
            args.q,
            **_filters(args),
            sort=args.sort,
            page=args.page,
            count=args.count,
        ),
        "map": lambda api: api.map_issues(
            args.north,
            args.east,
            args.south,
            args.west,
            category=args.category,
            status=args.status,
            from_=args.from_,
            to=args.to,
            page=args.page,
            count=args.count,
        ),
        "team": lambda api: api.team_issues(
            args.q, **_filters(args, private=False), page=args.page, count=args.count
        ),
        "export": lambda api: _cmd_export(api, args),
        "update": lambda api: api.update(args.id, _read_changes(args.changes)),
    }


def _render(result: Any, pretty: bool) -> str:
    if isinstance(result, BaseModel):
        payload = result.model_dump(mode="json", by_alias=True)
    else:
        payload = result
    return json.dumps(payload, indent=2 if pretty else None)


async def _run(cfg: FixiConfig, args: argparse.Namespace) -> Any:
    handler = _build_handlers(args)[args.cmd]
    async with open_client(cfg) as issues:
        return await handler(issues)


def _report_error(exc: BaseException) -> int:
    info = classify_error(exc)
    print(
        json.dumps({"error": info.category, "type": info.original_type, "message": info.message}),
        file=sys.stderr,
    )
    if info.category in {"config", "parameter"}:
        return EXIT_USAGE
    return EXIT_REMOTE


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = _resolve_config(args)
    except ConfigError as exc:
        return _report_error(exc)
    configure_logging(json_logging=cfg.logging_json_enabled, level=cfg.logging_level)
    exporter = cfg.telemetry_exporter or os.environ.get("FIXI_OTEL_EXPORTER")
    if exporter:
        configure_telemetry(
            service_name=cfg.telemetry_service_name,
            exporter="otlp" if exporter.lower() == "otlp" else "console",
            endpoint=cfg.telemetry_endpoint,
        )
    try:
        result = asyncio.run(_run(cfg, args))
    except ValidationError as exc:
        # only --changes is validated before a request is sent
        print(f"Invalid --changes document: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except (ValueError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    except Exception as exc:
        return _report_error(exc)
    print(_render(result, args.pretty))
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
