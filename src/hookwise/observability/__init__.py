"""OpenTelemetry-based observability for hookwise."""

from hookwise.observability.exporters import ObservabilityConfig, configure_exporters, shutdown
from hookwise.observability.metrics import (
    record_decision,
    record_hook_latency,
    record_hook_run,
    reset_instruments,
    timed_hook,
)
from hookwise.observability.tracing import extract_context, get_tracer, inject_context, span

__all__ = [
    "ObservabilityConfig",
    "configure_exporters",
    "extract_context",
    "get_tracer",
    "inject_context",
    "record_decision",
    "record_hook_latency",
    "record_hook_run",
    "reset_instruments",
    "shutdown",
    "span",
    "timed_hook",
]
