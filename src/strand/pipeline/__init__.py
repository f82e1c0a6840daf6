"""Pipeline engine: compose units into one HTTP request handler.

Public surface::

    from strand.pipeline import (
        Pipeline,
        PipelineConfig,
        PipelineRun,
        PipelineState,
        Outcome,
        Unit,
        unit,
        Context,
        PipelineRequest,
        MetricsEmitter,
        RegistryEmitter,
        QueuedEmitter,
    )
"""

from .context import Context, PipelineRequest
from .outcome import Outcome
from .unit_types import Unit, resolve_name, unit
from .emitter import MetricsEmitter, QueuedEmitter, RegistryEmitter
from .engine import Handler, Pipeline, PipelineConfig, PipelineRun, PipelineState

__all__ = [
    "Pipeline",
    "PipelineConfig",
    "PipelineRun",
    "PipelineState",
    "Handler",
    "Outcome",
    "Unit",
    "unit",
    "resolve_name",
    "Context",
    "PipelineRequest",
    "MetricsEmitter",
    "RegistryEmitter",
    "QueuedEmitter",
]
