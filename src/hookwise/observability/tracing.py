"""Tracer and span context manager.

The OpenTelemetry API is a no-op until an SDK provider is installed (see
:mod:`hookwise.observability.exporters`).
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.propagate import extract, inject

TRACER_NAME = "hookwise"


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


@contextmanager
def span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the block inside a span that is current for its duration."""
    tracer = get_tracer()
    with tracer.start_as_current_span(name, attributes=attributes) as s:
        yield s


def inject_context(carrier: dict[str, str] | None = None) -> dict[str, str]:
    """Inject the current trace context into *carrier* (e.g. a hook's env)."""
    carrier = carrier if carrier is not None else {}
    inject(carrier)
    return carrier


def extract_context(carrier: dict[str, str]) -> Any:
    return extract(carrier)
