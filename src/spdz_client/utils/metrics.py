"""Minimal metrics and timing utilities for tests and lightweight instrumentation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Protocol, Sequence, Tuple


Labels = Tuple[Tuple[str, str], ...]


class MetricsSink(Protocol):
    """Anything that accepts counter, gauge and timer samples."""

    def emit_counter(self, name: str, value: float = 1.0, **labels: str) -> None: ...

    def emit_gauge(self, name: str, value: float, **labels: str) -> None: ...

    def emit_timer(self, name: str, value: float, **labels: str) -> None: ...


@dataclass
class MetricPoint:
    """Represents a single metric sample."""

    value: float
    labels: Labels


class InMemoryMetrics:
    """In-memory sink for counters, gauges, and timers."""

    def __init__(self) -> None:
        self.counters: Dict[str, List[MetricPoint]] = {}
        self.gauges: Dict[str, List[MetricPoint]] = {}
        self.timers: Dict[str, List[MetricPoint]] = {}

    def _emit(self, store: Dict[str, List[MetricPoint]], name: str, value: float, labels: Labels) -> None:
        store.setdefault(name, []).append(MetricPoint(value=value, labels=labels))

    def emit_counter(self, name: str, value: float = 1.0, **labels: str) -> None:
        self._emit(self.counters, name, value, tuple(sorted(labels.items())))

    def emit_gauge(self, name: str, value: float, **labels: str) -> None:
        self._emit(self.gauges, name, value, tuple(sorted(labels.items())))

    def emit_timer(self, name: str, value: float, **labels: str) -> None:
        self._emit(self.timers, name, value, tuple(sorted(labels.items())))

    def count(self, name: str, **labels: str) -> float:
        """Sum of counter samples whose labels include ``labels``."""
        wanted = set(labels.items())
        return sum(p.value for p in self.counters.get(name, []) if wanted.issubset(p.labels))

    def snapshot(self) -> Dict[str, Dict[str, List[MetricPoint]]]:
        return {
            "counters": {k: list(v) for k, v in self.counters.items()},
            "gauges": {k: list(v) for k, v in self.gauges.items()},
            "timers": {k: list(v) for k, v in self.timers.items()},
        }


class Timer:
    """Context manager that records elapsed time to a metrics sink."""

    def __init__(self, sink: MetricsSink, name: str, **labels: str) -> None:
        self.sink = sink
        self.name = name
        self.labels = labels
        self._start: float | None = None

    def __enter__(self) -> "Timer":
        self._start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if self._start is None:
            return
        elapsed = time.monotonic() - self._start
        self.sink.emit_timer(self.name, elapsed, **self.labels)


class CompositeMetrics:
    """Fan-out sink that emits to multiple underlying sinks."""

    def __init__(self, sinks: Sequence[MetricsSink]) -> None:
        self.sinks = list(sinks)

    def emit_counter(self, name: str, value: float = 1.0, **labels: str) -> None:
        for s in self.sinks:
            s.emit_counter(name, value, **labels)

    def emit_gauge(self, name: str, value: float, **labels: str) -> None:
        for s in self.sinks:
            s.emit_gauge(name, value, **labels)

    def emit_timer(self, name: str, value: float, **labels: str) -> None:
        for s in self.sinks:
            s.emit_timer(name, value, **labels)
