"""Shared observability helpers."""

from athena_express.observability.context import run_id_var
from athena_express.observability.metrics import is_metrics_enabled, is_otel_exporter_configured

__all__ = ["is_metrics_enabled", "is_otel_exporter_configured", "run_id_var"]
