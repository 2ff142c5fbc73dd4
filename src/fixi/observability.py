"""Lightweight helpers for configuring OpenTelemetry exporters."""

from __future__ import annotations

import importlib
import logging
from functools import lru_cache
from typing import Any, Final

from opentelemetry import trace

TRACER_NAME = "fixi"

_telemetry_configured: Final[dict[str, bool]] = {"configured": False}


@lru_cache(maxsize=1)
def _load_opentelemetry_sdk() -> dict[str, Any] | None:
    try:  # pragma: no cover - optional dependency
        exporter_module = importlib.import_module(
            "opentelemetry.exporter.otlp.proto.http.trace_exporter"
        )
        resources_module = importlib.import_module("opentelemetry.sdk.resources")
        trace_sdk_module = importlib.import_module("opentelemetry.sdk.trace")
        export_module = importlib.import_module("opentelemetry.sdk.trace.export")
    except ImportError:
        return None

    return {
        "TracerProvider": trace_sdk_module.TracerProvider,
        "Resource": resources_module.Resource,
        "BatchSpanProcessor": export_module.BatchSpanProcessor,
        "ConsoleSpanExporter": export_module.ConsoleSpanExporter,
        "OTLPSpanExporter": exporter_module.OTLPSpanExporter,
    }


def get_tracer() -> trace.Tracer:
    """Tracer for request spans; a no-op until a provider is installed."""
    return trace.get_tracer(TRACER_NAME)


def configure_telemetry(
    *,
    service_name: str,
    exporter: str = "console",
    endpoint: str | None = None,
) -> bool:
    """Install an SDK tracer provider once per process.

    Returns False when the SDK extra is not installed; spans then stay no-ops.
    """

    if _telemetry_configured["configured"]:
        return True

    runtime = _load_opentelemetry_sdk()
    if runtime is None:
        logging.getLogger(__name__).debug(
            "OpenTelemetry SDK not installed; request spans are not exported"
        )
        return False

    resource = runtime["Resource"].create({"service.name": service_name})
    provider = runtime["TracerProvider"](resource=resource)

    if exporter.lower() == "otlp":
        otlp_cls = runtime["OTLPSpanExporter"]
        span_exporter = otlp_cls(endpoint=endpoint) if endpoint else otlp_cls()
    else:
        span_exporter = runtime["ConsoleSpanExporter"]()

    provider.add_span_processor(runtime["BatchSpanProcessor"](span_exporter))
    trace.set_tracer_provider(provider)
    _telemetry_configured["configured"] = True
    return True


__all__ = ["configure_telemetry", "get_tracer"]
