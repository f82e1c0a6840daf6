"""Observability package for strand.

Key components:
- metrics: in-process counters and histograms with Prometheus export
- emitters live in :mod:`strand.pipeline.emitter`; structured logging in
  :mod:`strand.core.logging`
"""

from .metrics import (
    Counter,
    Histogram,
    MetricsRegistry,
    get_metrics_registry,
    prometheus_name,
)

__all__ = [
    "MetricsRegistry",
    "Counter",
    "Histogram",
    "get_metrics_registry",
    "prometheus_name",
]
