"""
Structured error types for strand.

Two families of errors exist:

- **Configuration errors** raised while a pipeline is being built
  (bad sample rate, a non-callable unit).  These surface at startup and
  are meant to crash loudly.
- **Unit errors** raised (or wrapped into an ``Outcome``) by units while a
  request is being handled.  These never escape a compiled handler; the
  engine turns them into an HTTP response plus metrics.

Manifesto:
    - **Typed over generic:** a ``UnitError`` carries its HTTP status
    - **Fail at build time:** configuration mistakes raise before the
      first request is served
    - **Serialization-ready:** ``to_dict()`` for structured logging

Architecture:
    ::

        StrandError
        ├── PipelineConfigError    (build/compile time)
        └── UnitError              (request time, carries status_code)

Examples:
    >>> err = UnitError("token expired", status_code=401)
    >>> err.status_code
    401
    >>> err.to_dict()["error_type"]
    'UnitError'

Tags:
    error-handling, exception-hierarchy, strand, http-status

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification used when logging errors."""

    CONFIG = "CONFIG"  # Invalid pipeline or engine configuration
    UNIT = "UNIT"  # A unit reported or raised a failure
    INTERNAL = "INTERNAL"  # Unexpected exception inside a unit


class StrandError(Exception):
    """Base class for all strand errors.

    Attributes:
        message: Human-readable message (also ``str(error)``)
        category: :class:`ErrorCategory` for log routing
        cause: Optional chained exception
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class PipelineConfigError(StrandError):
    """Raised when a pipeline or its units are configured incorrectly."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UNIT ERRORS
# =============================================================================


class UnitError(StrandError):
    """A unit failure that knows which HTTP status it maps to.

    Units may either raise it or return it inside ``Outcome.fail(...)``.
    When the outcome itself carries no status code the engine uses
    ``status_code`` from the error.
    """

    default_category = ErrorCategory.UNIT

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        *,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


__all__ = [
    "ErrorCategory",
    "StrandError",
    "PipelineConfigError",
    "UnitError",
]
