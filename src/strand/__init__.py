"""
Strand - composable request pipelines for Starlette/FastAPI services.

- strand.pipeline: the engine, units, outcomes, context, emitters
- strand.http: response writer, endpoint adapters, ready-made units
- strand.observability: in-process metrics registry
- strand.core: errors, structured logging, settings
"""

__version__ = "0.1.0"

from strand.core.errors import PipelineConfigError, StrandError, UnitError
from strand.pipeline import (
    Context,
    MetricsEmitter,
    Outcome,
    Pipeline,
    PipelineConfig,
    PipelineRequest,
    QueuedEmitter,
    RegistryEmitter,
    Unit,
    unit,
)
from strand.http import ResponseWriter, as_endpoint

__all__ = [
    "Pipeline",
    "PipelineConfig",
    "Outcome",
    "Unit",
    "unit",
    "Context",
    "PipelineRequest",
    "MetricsEmitter",
    "RegistryEmitter",
    "QueuedEmitter",
    "ResponseWriter",
    "as_endpoint",
    "StrandError",
    "PipelineConfigError",
    "UnitError",
]
