"""OTel provider setup for local debugging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

_tracer_provider: Any = None
_meter_provider: Any = None


@dataclass(frozen=True, slots=True)
class ObservabilityConfig:
    """Configuration for OTel exporters."""

    enabled: bool = False
    exporter: str = "console"  # console | none
    service_name: str = "hookwise"


def configure_exporters(config: ObservabilityConfig) -> bool:
    """Install SDK tracer and meter providers.

    Returns True if providers were installed, False if disabled.
    """
    global _tracer_provider, _meter_provider

    if not config.enabled or config.exporter == "none":
        return False
    if config.exporter != "console":
        logger.warning("Unknown exporter %r, using console", config.exporter)

    resource = Resource.create({"service.name": config.service_name})

    tp = TracerProvider(resource=resource)
    tp.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(tp)
    _tracer_provider = tp

    reader = PeriodicExportingMetricReader(ConsoleMetricExporter())
    mp = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(mp)
    _meter_provider = mp

    return True


def shutdown() -> None:
    """Flush and shut down the providers installed by :func:`configure_exporters`."""
    global _tracer_provider, _meter_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None

    if _meter_provider is not None:
        _meter_provider.shutdown()
        _meter_provider = None
