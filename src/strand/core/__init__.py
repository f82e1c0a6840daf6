"""Core primitives shared by every strand module: errors, logging, settings."""

from strand.core.errors import ErrorCategory, PipelineConfigError, StrandError, UnitError
from strand.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    "ErrorCategory",
    "StrandError",
    "PipelineConfigError",
    "UnitError",
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
