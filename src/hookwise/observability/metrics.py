"""Hook metrics: run counts, decisions, latency."""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from opentelemetry import metrics

# Lazily-created instruments
_meter: Any = None
_hook_run_counter: Any = None
_decision_counter: Any = None
_hook_latency_histogram: Any = None


def _ensure_instruments() -> None:
    """Create meter and instruments on first use."""
    global _meter, _hook_run_counter, _decision_counter, _hook_latency_histogram

    if _meter is not None:
        return

    _meter = metrics.get_meter("hookwise")
    _hook_run_counter = _meter.create_counter(
        "hookwise.hook_runs",
        description="Hooks executed, by event kind, hook type and outcome",
    )
    _decision_counter = _meter.create_counter(
        "hookwise.decisions",
        description="Merged pipeline decisions, by event kind and outcome",
    )
    _hook_latency_histogram = _meter.create_histogram(
        "hookwise.hook_latency",
        description="Wall-clock time of a single hook run",
        unit="ms",
    )


def record_hook_run(kind: str, hook_type: str, outcome: str) -> None:
    _ensure_instruments()
    _hook_run_counter.add(1, {"event": kind, "hook_type": hook_type, "outcome": outcome})


def record_decision(kind: str, outcome: str) -> None:
    _ensure_instruments()
    _decision_counter.add(1, {"event": kind, "outcome": outcome})


def record_hook_latency(latency_ms: float, *, kind: str = "", hook_type: str = "") -> None:
    _ensure_instruments()
    _hook_latency_histogram.record(latency_ms, {"event": kind, "hook_type": hook_type})


@contextmanager
def timed_hook(kind: str, hook_type: str) -> Generator[None, None, None]:
    """Measure the wall-clock time of the block and record it as hook latency."""
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed_ms = (time.monotonic() - start) * 1000
        record_hook_latency(elapsed_ms, kind=kind, hook_type=hook_type)


def reset_instruments() -> None:
    """Reset module-level instruments; useful for test isolation."""
    global _meter, _hook_run_counter, _decision_counter, _hook_latency_histogram
    _meter = None
    _hook_run_counter = None
    _decision_counter = None
    _hook_latency_histogram = None
