from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

CONFIG_DEFAULT = "fixi.config.yaml"
DEFAULT_TIMEOUT = 30.0
DEFAULT_SERVICE_NAME = "fixi-client"


class ConfigError(RuntimeError):
    pass


@dataclass
class FixiConfig:
    base_url: str
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "WARNING"
    # Telemetry configuration
    telemetry_exporter: str | None = None
    telemetry_endpoint: str | None = None
    telemetry_service_name: str = DEFAULT_SERVICE_NAME


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:], None)
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 'on'}
    return bool(value)


def _as_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid timeout: {value!r}') from exc
    if timeout <= 0:
        raise ConfigError(f'Timeout must be positive, got {timeout}')
    return timeout


def _require_base_url(value: Any, source: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f'No API base URL configured ({source})')
    return value.strip()


def load_config(path: str | Path) -> FixiConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw = cast(dict[str, Any], yaml.safe_load(p.read_text()) or {})
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    api = cast(dict[str, Any], raw.get('api', {}) or {})
    logging_config = cast(dict[str, Any], raw.get('logging', {}) or {})
    telemetry = cast(dict[str, Any], raw.get('telemetry', {}) or {})

    return FixiConfig(
        base_url=_require_base_url(_resolve_env_var(api.get('base_url')), f'api.base_url in {p}'),
        token=_resolve_env_var(api.get('token')),
        timeout=_as_timeout(api.get('timeout', DEFAULT_TIMEOUT)),
        logging_json_enabled=_as_bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'WARNING')),
        telemetry_exporter=_resolve_env_var(telemetry.get('exporter')),
        telemetry_endpoint=_resolve_env_var(telemetry.get('endpoint')),
        telemetry_service_name=str(telemetry.get('service_name', DEFAULT_SERVICE_NAME)),
    )


def config_from_env(dotenv_path: str | Path | None = None) -> FixiConfig:
    """Build configuration from ``FIXI_*`` environment variables.

    A ``.env`` file (or ``dotenv_path``) is loaded first when present; values
    already in the environment win.
    """
    env_file = Path(dotenv_path) if dotenv_path else Path('.env')
    if env_file.exists():
        load_dotenv(env_file, override=False)
    return FixiConfig(
        base_url=_require_base_url(os.getenv('FIXI_BASE_URL'), 'FIXI_BASE_URL'),
        token=os.getenv('FIXI_TOKEN') or None,
        timeout=_as_timeout(os.getenv('FIXI_TIMEOUT', DEFAULT_TIMEOUT)),
        logging_json_enabled=_as_bool(os.getenv('FIXI_LOG_JSON', '0')),
        logging_level=os.getenv('FIXI_LOG_LEVEL', 'WARNING'),
        telemetry_exporter=os.getenv('FIXI_OTEL_EXPORTER') or None,
        telemetry_endpoint=os.getenv('FIXI_OTEL_ENDPOINT') or None,
        telemetry_service_name=os.getenv('FIXI_SERVICE_NAME', DEFAULT_SERVICE_NAME),
    )


__all__ = ["CONFIG_DEFAULT", "ConfigError", "FixiConfig", "config_from_env", "load_config"]
