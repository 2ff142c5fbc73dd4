from __future__ import annotations

import json
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

import httpx
import pytest
from conftest import RecordingTransport, issue_item, json_response, list_page

from fixi import cli
from fixi.client import open_client

_ENV_KEYS = ("FIXI_BASE_URL", "FIXI_TOKEN", "FIXI_OTEL_EXPORTER", "FIXI_LOG_JSON")


@pytest.fixture
def fixi_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FIXI_BASE_URL", "https://fixi.test/api")
    monkeypatch.setenv("FIXI_TOKEN", "cli-token")
    return tmp_path


def _serve(monkeypatch: pytest.MonkeyPatch, handler) -> RecordingTransport:
    transport = RecordingTransport(handler)

    def _open(cfg, **kwargs):
        return open_client(cfg, transport=transport)

    monkeypatch.setattr(cli, "open_client", _open)
    return transport


def _run(cmd: Sequence[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "fixi", *cmd],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )


def test_find_prints_page_as_json(fixi_env, monkeypatch, capsys):
    transport = _serve(
        monkeypatch, lambda request: json_response(list_page([issue_item()], total=1))
    )

    code = cli.main(["find", "-q", "pothole", "--category", "roads", "--status", "Open"])

    assert code == cli.EXIT_OK
    out = json.loads(capsys.readouterr().out)
    assert out["totalCount"] == 1
    assert out["items"][0]["id"] == "FX-1001"
    request = transport.requests[0]
    assert request.headers["Authorization"] == "Bearer cli-token"
    assert request.headers["User-Agent"].startswith("fixi-client/")
    assert request.url.params.get_list("status") == ["Open"]
    assert request.url.params["count"] == "20"


def test_map_uses_large_default_page(fixi_env, monkeypatch, capsys):
    transport = _serve(monkeypatch, lambda request: json_response(list_page([], count=200)))
    assert cli.main(["map", "52.2", "5.3", "51.9", "4.9"]) == cli.EXIT_OK
    assert transport.requests[0].url.params["count"] == "200"


def test_update_reads_changes_file(fixi_env, monkeypatch, capsys):
    changes = fixi_env / "changes.json"
    changes.write_text('{"status": "Closed"}')
    transport = _serve(
        monkeypatch, lambda request: json_response(issue_item("FX-7", status="Closed"))
    )

    assert cli.main(["--pretty", "update", "FX-7", "--changes", f"@{changes}"]) == cli.EXIT_OK

    assert json.loads(transport.requests[0].content) == {"status": "Closed"}
    assert json.loads(capsys.readouterr().out)["status"] == "Closed"


def test_invalid_changes_document_is_usage_error(fixi_env, monkeypatch, capsys):
    transport = _serve(monkeypatch, lambda request: json_response({}))
    code = cli.main(["update", "FX-7", "--changes", '{"status": "Sideways"}'])
    assert code == cli.EXIT_USAGE
    assert transport.requests == []
    assert "Invalid --changes" in capsys.readouterr().err


def test_export_writes_output_file(fixi_env, monkeypatch, capsys):
    transport = _serve(monkeypatch, lambda request: httpx.Response(200, content=b"xlsx"))
    target = fixi_env / "team.xlsx"

    assert cli.main(["export", "--team", "--output", str(target)]) == cli.EXIT_OK

    assert target.read_bytes() == b"xlsx"
    assert transport.requests[0].url.path == "/api/issues/team/export"
    assert json.loads(capsys.readouterr().out) == {"output": str(target), "bytes": 4}


def test_remote_failure_reports_category(fixi_env, monkeypatch, capsys):
    _serve(monkeypatch, lambda request: json_response({"message": "gone"}, status_code=404))

    assert cli.main(["get", "FX-404"]) == cli.EXIT_REMOTE

    err = capsys.readouterr().err.strip().splitlines()[-1]
    assert json.loads(err)["error"] == "http_status"


def test_bad_paging_is_usage_error(fixi_env, monkeypatch):
    transport = _serve(monkeypatch, lambda request: json_response({}))
    assert cli.main(["find", "--page", "0"]) == cli.EXIT_USAGE
    assert transport.requests == []


def test_missing_configuration_is_usage_error(monkeypatch, tmp_path, capsys):
    monkeypatch.delenv("FIXI_BASE_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    assert cli.main(["get", "FX-1"]) == cli.EXIT_USAGE
    assert json.loads(capsys.readouterr().err)["error"] == "config"


def test_config_file_is_preferred(fixi_env, monkeypatch):
    (fixi_env / "fixi.config.yaml").write_text("api:\n  base_url: https://yaml.test/v2\n")
    transport = _serve(monkeypatch, lambda request: json_response(issue_item()))
    assert cli.main(["get", "FX-1"]) == cli.EXIT_OK
    assert str(transport.requests[0].url) == "https://yaml.test/v2/issues/FX-1"
    assert "Authorization" not in transport.requests[0].headers


def test_cli_help_lists_commands(tmp_path):
    result = _run(["--help"], tmp_path)
    assert result.returncode == 0
    for command in ("find", "get", "nearby", "map", "team", "export", "update"):
        assert command in result.stdout


def test_cli_rejects_unknown_status(tmp_path):
    result = _run(["find", "--status", "Sideways"], tmp_path)
    assert result.returncode == 2
    assert "invalid Status value" in result.stderr


@pytest.mark.parametrize("status_code", [500, 404])
def test_failed_export_keeps_previous_file(fixi_env, monkeypatch, status_code):
    target = fixi_env / "out.xlsx"
    target.write_bytes(b"previous export")
    _serve(monkeypatch, lambda request: httpx.Response(status_code, content=b"oops"))

    assert cli.main(["export", "--output", str(target)]) == cli.EXIT_REMOTE

    assert target.read_bytes() == b"previous export"


def test_unreachable_server_keeps_previous_export(fixi_env, monkeypatch):
    target = fixi_env / "out.xlsx"
    target.write_bytes(b"previous export")

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _serve(monkeypatch, _refuse)

    assert cli.main(["export", "--output", str(target)]) == cli.EXIT_REMOTE
    assert target.read_bytes() == b"previous export"


def test_missing_changes_file_is_usage_error(fixi_env, monkeypatch, capsys):
    transport = _serve(monkeypatch, lambda request: json_response(issue_item()))
    missing = fixi_env / "missing.json"

    assert cli.main(["update", "FX-7", "--changes", f"@{missing}"]) == cli.EXIT_USAGE

    assert transport.requests == []
    assert "missing.json" in capsys.readouterr().err


def test_empty_id_is_usage_error(fixi_env, monkeypatch):
    transport = _serve(monkeypatch, lambda request: json_response(issue_item()))
    assert cli.main(["get", ""]) == cli.EXIT_USAGE
    assert transport.requests == []
