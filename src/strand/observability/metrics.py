"""In-process Prometheus-style metrics registry.

Pipelines report through the :class:`~strand.pipeline.emitter.MetricsEmitter`
capability.  ``RegistryEmitter`` records those reports here so a service can
inspect them locally or expose them on ``/metrics`` without running a
StatsD collector.

Metric names carry all dimensions (``handlers.auth.401``), so every metric
holds exactly one series.

Metric types:
- Counter: Monotonically increasing value (``handlers.auth.200``, ``errors``)
- Histogram: Distribution of values (``handlers.auth.runtime`` in seconds)

Example:
    >>> from strand.observability.metrics import MetricsRegistry
    >>> registry = MetricsRegistry()
    >>> registry.counter("errors").inc()
    >>> registry.histogram("handlers.auth.runtime").observe(0.004)
    >>> print(registry.export_prometheus())  # doctest: +SKIP
"""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from typing import Any

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")


def prometheus_name(name: str) -> str:
    """Map a dotted metric name onto the Prometheus name charset."""
    cleaned = _INVALID_NAME_CHARS.sub("_", name)
    if cleaned and cleaned[0].isdigit():
        cleaned = "_" + cleaned
    return cleaned


class Metric(ABC):
    """Base class for metrics."""

    type_name: str = "untyped"

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._lock = threading.Lock()

    @abstractmethod
    def collect(self) -> dict[str, Any]:
        """Snapshot of the metric for export."""
        ...


class Counter(Metric):
    """A monotonically increasing counter."""

    type_name = "counter"

    def __init__(self, name: str, description: str = ""):
        super().__init__(name, description)
        self._value = 0.0

    def inc(self, value: float = 1.0) -> None:
        """Increment the counter."""
        if value < 0:
            raise ValueError("Counter can only increase")
        with self._lock:
            self._value += value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def collect(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type_name,
            "description": self.description,
            "value": self.value,
        }


class Histogram(Metric):
    """A distribution of values, bucketed for latency in seconds."""

    type_name = "histogram"

    DEFAULT_BUCKETS = (
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        float("inf"),
    )

    def __init__(
        self,
        name: str,
        description: str = "",
        buckets: tuple[float, ...] | None = None,
    ):
        super().__init__(name, description)
        bounds = sorted(set(buckets or self.DEFAULT_BUCKETS))
        if bounds[-1] != float("inf"):
            bounds.append(float("inf"))
        self._buckets = tuple(bounds)
        self._counts = dict.fromkeys(self._buckets, 0)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        """Record an observation."""
        with self._lock:
            self._sum += value
            self._count += 1
            for bucket in self._buckets:
                if value <= bucket:
                    self._counts[bucket] += 1

    @property
    def data(self) -> dict[str, Any]:
        """Cumulative bucket counts, sum and count."""
        with self._lock:
            return {"buckets": dict(self._counts), "sum": self._sum, "count": self._count}

    def collect(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type_name,
            "description": self.description,
            **self.data,
        }


class MetricsRegistry:
    """Registry of all metrics for collection and export.

    Two names that map onto the same Prometheus name (``a.b`` and ``a_b``)
    cannot both be registered.
    """

    def __init__(self):
        self._metrics: dict[str, Metric] = {}
        self._exported: dict[str, str] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, name: str, factory: type[Metric], **kwargs: Any) -> Metric:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                exported = prometheus_name(name)
                owner = self._exported.get(exported)
                if owner is not None:
                    raise ValueError(
                        f"Metric {name!r} collides with {owner!r} as {exported!r}"
                    )
                metric = factory(name, **kwargs)
                self._metrics[name] = metric
                self._exported[exported] = name
        if not isinstance(metric, factory):
            raise TypeError(
                f"Metric {name!r} is a {type(metric).__name__}, not a {factory.__name__}"
            )
        return metric

    def counter(self, name: str, description: str = "") -> Counter:
        """Get or create a counter."""
        return self._get_or_create(name, Counter, description=description)

    def histogram(
        self,
        name: str,
        description: str = "",
        buckets: tuple[float, ...] | None = None,
    ) -> Histogram:
        """Get or create a histogram."""
        return self._get_or_create(name, Histogram, description=description, buckets=buckets)

    def get(self, name: str) -> Metric | None:
        """Look up a registered metric without creating it."""
        with self._lock:
            return self._metrics.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def clear(self) -> None:
        """Drop every registered metric."""
        with self._lock:
            self._metrics.clear()
            self._exported.clear()

    def collect(self) -> list[dict[str, Any]]:
        """Snapshot every metric, ordered by name."""
        with self._lock:
            metrics = [self._metrics[name] for name in sorted(self._metrics)]
        return [metric.collect() for metric in metrics]

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format (version 0.0.4)."""
        lines = []

        for data in self.collect():
            name = prometheus_name(data["name"])
            if data["description"]:
                help_text = data["description"].replace("\\", r"\\").replace("\n", r"\n")
                lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {data['type']}")

            if data["type"] == "counter":
                lines.append(f"{name} {data['value']}")

            elif data["type"] == "histogram":
                for bucket, count in data["buckets"].items():
                    le = "+Inf" if bucket == float("inf") else bucket
                    lines.append(f'{name}_bucket{{le="{le}"}} {count}')

                lines.append(f"{name}_sum {data['sum']}")
                lines.append(f"{name}_count {data['count']}")

        return "\n".join(lines) + "\n" if lines else ""


# Global registry
_default_registry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the default metrics registry."""
    return _default_registry


__all__ = [
    "Metric",
    "Counter",
    "Histogram",
    "MetricsRegistry",
    "get_metrics_registry",
    "prometheus_name",
]
