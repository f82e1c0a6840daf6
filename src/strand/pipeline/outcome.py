"""Outcome — the value a unit hands back to the engine.

Manifesto:
    Every unit tells the engine what happened through one envelope so the
    engine alone decides whether to continue, stop, or fail the request.
    Units never raise to signal control flow.

ARCHITECTURE
────────────
::

    Outcome
      ├── .ok(status_code, payload)          → success, keep going
      ├── .fail(err, status_code)            → failure, respond and stop
      ├── .stop(status_code)                 → success, stop silently
      └── .with_context(ctx, **values)       → success, swap context

    None (no outcome)                        → success, keep going

Example::

    from strand.pipeline import Outcome

    async def require_json(rw, request):
        if request.headers.get("content-type") != "application/json":
            return Outcome.fail("expected JSON body", status_code=415)
        return Outcome.with_context(request.context, body=await request.json())

Tags:
    strand, pipeline, outcome, envelope, success-failure

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from strand.pipeline.context import Context


@dataclass(frozen=True)
class Outcome:
    """Result of running one unit.

    Attributes:
        status_code: HTTP status; ``0`` means no explicit status
        err: Failure value (exception or message); presence fails the unit
        stop_execution: No further unit runs when True
        context: Replacement context seen by every later unit
        payload: Optional structured data, not interpreted by the engine
    """

    status_code: int = 0
    err: BaseException | str | None = None
    stop_execution: bool = False
    context: Context | None = None
    payload: Any = None

    def __post_init__(self):
        # Accept plain mappings for convenience
        if self.context is not None and not isinstance(self.context, Context):
            object.__setattr__(self, "context", Context.coerce(self.context))

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def ok(cls, status_code: int = 200, payload: Any = None) -> Outcome:
        """Successful outcome, execution continues.

        The status must stay non-zero: an outcome with no status, error, stop
        flag or context is treated as a failure by the engine.
        """
        return cls(status_code=status_code, payload=payload)

    @classmethod
    def fail(cls, err: BaseException | str, status_code: int = 0) -> Outcome:
        """Failed outcome; the engine writes ``status_code`` and the error text.

        With ``status_code=0`` the status comes from ``err.status_code`` when
        the error has one, else the engine's failure status.
        """
        return cls(status_code=status_code, err=err)

    @classmethod
    def stop(cls, status_code: int = 0) -> Outcome:
        """Successful outcome that ends the traversal without an engine write."""
        return cls(status_code=status_code, stop_execution=True)

    @classmethod
    def with_context(
        cls,
        context: Context | Mapping[str, Any] | None = None,
        /,
        **values: Any,
    ) -> Outcome:
        """Successful outcome replacing the context for all later units.

        ``Outcome.with_context(ctx)`` replaces the context wholesale;
        ``Outcome.with_context(ctx, key=value)`` layers *values* over *ctx*.
        """
        ctx = Context.coerce(context)
        if values:
            ctx = ctx.with_values(values)
        return cls(context=ctx)

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def failed(self) -> bool:
        return self.err is not None

    @property
    def is_empty(self) -> bool:
        """True when no field the engine acts on is set.

        ``payload`` does not count; a payload-only outcome is empty.
        """
        return (
            self.status_code == 0
            and self.err is None
            and not self.stop_execution
            and self.context is None
        )

    def error(self) -> str:
        """Display text of the wrapped error, ``""`` when there is none."""
        if self.err is None:
            return ""
        return str(self.err)


__all__ = ["Outcome"]
