from pathlib import Path

import pytest

from fixi.config import ConfigError, FixiConfig, config_from_env, load_config

_ENV_KEYS = (
    "FIXI_BASE_URL",
    "FIXI_TOKEN",
    "FIXI_TIMEOUT",
    "FIXI_LOG_JSON",
    "FIXI_LOG_LEVEL",
    "FIXI_OTEL_EXPORTER",
    "FIXI_OTEL_ENDPOINT",
    "FIXI_SERVICE_NAME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in _ENV_KEYS:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    # keep a stray .env in the working directory from leaking in
    monkeypatch.chdir(tmp_path)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "fixi.config.yaml"
    path.write_text(text)
    return path


def test_load_config_reads_all_sections(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MY_FIXI_TOKEN", "tok-123")
    cfg = load_config(
        _write(
            tmp_path,
            """
api:
  base_url: https://fixi.example/api
  token: $MY_FIXI_TOKEN
  timeout: 12
logging:
  json_enabled: true
  level: DEBUG
telemetry:
  exporter: otlp
  endpoint: http://collector:4318
  service_name: fixi-tests
""",
        )
    )
    assert cfg == FixiConfig(
        base_url="https://fixi.example/api",
        token="tok-123",
        timeout=12.0,
        logging_json_enabled=True,
        logging_level="DEBUG",
        telemetry_exporter="otlp",
        telemetry_endpoint="http://collector:4318",
        telemetry_service_name="fixi-tests",
    )


def test_load_config_defaults(tmp_path: Path):
    cfg = load_config(_write(tmp_path, "api:\n  base_url: https://fixi.example/api\n"))
    assert cfg.token is None
    assert cfg.timeout == 30.0
    assert cfg.logging_json_enabled is False
    assert cfg.logging_level == "WARNING"
    assert cfg.telemetry_exporter is None


def test_unset_env_reference_resolves_to_none(tmp_path: Path):
    cfg = load_config(
        _write(tmp_path, "api:\n  base_url: https://fixi.example/api\n  token: $NOT_SET_ANYWHERE\n")
    )
    assert cfg.token is None


@pytest.mark.parametrize(
    "text",
    [
        "api: {}\n",
        "api:\n  base_url: '   '\n",
        "api:\n  base_url: https://x\n  timeout: 0\n",
        "api:\n  base_url: https://x\n  timeout: soon\n",
        "api: [unclosed\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, text))


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_config_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIXI_BASE_URL", "https://fixi.example/api")
    monkeypatch.setenv("FIXI_TOKEN", "abc")
    monkeypatch.setenv("FIXI_TIMEOUT", "5")
    monkeypatch.setenv("FIXI_LOG_JSON", "yes")
    cfg = config_from_env()
    assert cfg.base_url == "https://fixi.example/api"
    assert cfg.token == "abc"
    assert cfg.timeout == 5.0
    assert cfg.logging_json_enabled is True
    assert cfg.telemetry_service_name == "fixi-client"


def test_config_from_env_reads_dotenv(tmp_path: Path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("FIXI_BASE_URL=https://dotenv.example/api\nFIXI_LOG_LEVEL=INFO\n")
    cfg = config_from_env(env_file)
    assert cfg.base_url == "https://dotenv.example/api"
    assert cfg.logging_level == "INFO"


def test_config_from_env_requires_base_url():
    with pytest.raises(ConfigError, match="FIXI_BASE_URL"):
        config_from_env()
