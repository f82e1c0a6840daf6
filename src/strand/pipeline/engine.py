"""Pipeline Engine — compiles an ordered unit sequence into one handler.

The compiled handler walks its units in order.  After each unit it
inspects the returned :class:`~strand.pipeline.outcome.Outcome`:

- ``None``                      → continue unchanged
- outcome with a context        → later units see the new context
- outcome with an error         → write status + error text, stop
- outcome with ``stop_execution`` → stop, write nothing
- outcome with no status, error, stop flag or context → implicit failure (failure status), stop

When an emitter is configured every unit completion emits::

    handlers.<unit>.<status>   count     (always)
    errors                     count     (failures only)
    handlers.<unit>.runtime    duration  (always)

With no emitter, nothing is timed and nothing is emitted.

Example::

    from strand.pipeline import Pipeline, PipelineConfig, RegistryEmitter

    pipeline = Pipeline(PipelineConfig(emitter=RegistryEmitter(), sample_rate=1.0))
    app.add_route("/orders", pipeline.endpoint([cors(), ("auth", check_token), create_order]))
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from starlette.requests import Request
from starlette.routing import Route

from strand.core.errors import PipelineConfigError, UnitError
from strand.core.logging import get_logger
from strand.http.adapters import as_endpoint
from strand.http.writer import ResponseWriter, write_text
from strand.pipeline.context import Context, PipelineRequest, initial_context, transport_request
from strand.pipeline.emitter import MetricsEmitter, QueuedEmitter
from strand.pipeline.outcome import Outcome
from strand.pipeline.unit_types import Unit, UnitFunc

if TYPE_CHECKING:
    from strand.core.settings import StrandSettings

logger = get_logger(__name__)

Handler = Callable[[ResponseWriter, "PipelineRequest | Request"], Awaitable[None]]
UnitLike = Union[Unit, tuple[str, UnitFunc], UnitFunc]


class PipelineState(str, Enum):
    """Terminal state of one request traversal."""

    COMPLETED = "completed"
    STOPPED_BY_FLAG = "stopped_by_flag"
    STOPPED_BY_ERROR = "stopped_by_error"


@dataclass(frozen=True)
class PipelineRun:
    """Summary of one traversal, returned by :meth:`Pipeline.run`."""

    state: PipelineState
    context: Context
    units_run: int
    stopped_at: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class PipelineConfig:
    """Engine configuration.

    Attributes:
        emitter: Metrics capability; ``None`` disables all emission
        sample_rate: Sampling rate attached to every emission
        failure_status: Status for failures that carry none
        success_status: Status reported in metrics for successes that carry none
    """

    emitter: MetricsEmitter | None = None
    sample_rate: float = 1.0
    failure_status: int = 500
    success_status: int = 200

    def __post_init__(self):
        if not 0.0 <= self.sample_rate <= 1.0:
            raise PipelineConfigError(f"sample_rate must be within [0, 1], got {self.sample_rate}")
        if self.emitter is not None and not isinstance(self.emitter, MetricsEmitter):
            raise PipelineConfigError(
                f"emitter must provide increment() and record_duration(), got {self.emitter!r}"
            )

    @classmethod
    def from_settings(
        cls,
        settings: StrandSettings,
        emitter: MetricsEmitter | None = None,
    ) -> PipelineConfig:
        """Build a config from environment settings.

        ``metrics_enabled=False`` drops the emitter; ``metrics_queue_size > 0``
        wraps it in a :class:`QueuedEmitter`.  The caller owns that emitter's
        background thread and must call :meth:`close` at shutdown, or events
        still queued are lost::

            @contextlib.asynccontextmanager
            async def lifespan(app):
                yield
                config.close()

            app = FastAPI(lifespan=lifespan)
        """
        if not settings.metrics_enabled:
            emitter = None
        elif emitter is not None and settings.metrics_queue_size > 0:
            emitter = QueuedEmitter(emitter, maxsize=settings.metrics_queue_size)
        return cls(
            emitter=emitter,
            sample_rate=settings.sample_rate,
            failure_status=settings.failure_status,
        )

    def close(self, timeout: float = 5.0) -> None:
        """Close the emitter if it has a ``close()``, delivering queued events.

        A no-op for emitters without one.  Safe to call more than once.
        """
        close = getattr(self.emitter, "close", None)
        if callable(close):
            close(timeout=timeout)


class Pipeline:
    """Immutable engine that compiles unit sequences into request handlers.

    One instance can compile any number of handlers; handlers share no
    mutable state and are safe to run concurrently.
    """

    def __init__(self, config: PipelineConfig | None = None):
        self._config = config or PipelineConfig()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # =========================================================================
    # Compilation
    # =========================================================================

    @staticmethod
    def bind(units: Iterable[UnitLike]) -> tuple[Unit, ...]:
        """Resolve units and their names once, ahead of any request."""
        return tuple(Unit.of(u) for u in units)

    def compile(self, units: Iterable[UnitLike]) -> Handler:
        """Compile *units* into an ``async (writer, request) -> None`` handler."""
        bound = self.bind(units)

        async def handler(rw: ResponseWriter, request: PipelineRequest | Request) -> None:
            await self._traverse(bound, rw, request)

        handler.units = bound  # type: ignore[attr-defined]
        logger.debug("pipeline.compiled", units=[u.name for u in bound])
        return handler

    def endpoint(self, units: Iterable[UnitLike]) -> Callable[[Request], Awaitable[Any]]:
        """Compile *units* into a Starlette endpoint ``(Request) -> Response``."""
        return as_endpoint(self.compile(units))

    def route(
        self,
        path: str,
        units: Iterable[UnitLike],
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Route:
        """Compile *units* into a Starlette ``Route`` for *path*."""
        return Route(path, self.endpoint(units), methods=methods, name=name)

    async def run(
        self,
        units: Iterable[UnitLike],
        rw: ResponseWriter,
        request: PipelineRequest | Request,
    ) -> PipelineRun:
        """Run *units* once and report how the traversal ended."""
        return await self._traverse(self.bind(units), rw, request)

    # =========================================================================
    # Execution
    # =========================================================================

    async def _traverse(
        self,
        units: tuple[Unit, ...],
        rw: ResponseWriter,
        request: PipelineRequest | Request,
    ) -> PipelineRun:
        ctx = initial_context(request)
        transport = transport_request(request)
        emitting = self._config.emitter is not None

        for index, u in enumerate(units):
            started = time.perf_counter() if emitting else 0.0

            try:
                outcome = await u(rw, PipelineRequest(transport, ctx))
            except UnitError as e:
                outcome = Outcome.fail(e)
            except Exception as e:
                logger.exception("unit.exception", unit=u.name, error=str(e))
                outcome = Outcome.fail(
                    UnitError("internal server error", self._config.failure_status, cause=e)
                )

            elapsed = timedelta(seconds=time.perf_counter() - started) if emitting else None

            if outcome is not None:
                if outcome.context is not None:
                    ctx = outcome.context
                if outcome.is_empty:
                    outcome = Outcome.fail(f"{u.name} returned an empty outcome")

            if outcome is not None and outcome.failed:
                status = self._failure_status(outcome)
                if emitting:
                    self._emit("increment", f"handlers.{u.name}.{status}", 1)
                    self._emit("increment", "errors", 1)
                    self._emit("record_duration", f"handlers.{u.name}.runtime", elapsed)

                message = outcome.error()
                logger.warning("unit.failed", unit=u.name, status=status, error=message)
                write_text(rw, status, message)
                return PipelineRun(PipelineState.STOPPED_BY_ERROR, ctx, index + 1, u.name, message)

            status = (outcome.status_code if outcome is not None else 0) or self._config.success_status
            if emitting:
                self._emit("increment", f"handlers.{u.name}.{status}", 1)
                self._emit("record_duration", f"handlers.{u.name}.runtime", elapsed)

            if outcome is not None and outcome.stop_execution:
                logger.debug("unit.stopped", unit=u.name, remaining=len(units) - index - 1)
                return PipelineRun(PipelineState.STOPPED_BY_FLAG, ctx, index + 1, u.name)

        return PipelineRun(PipelineState.COMPLETED, ctx, len(units))

    def _failure_status(self, outcome: Outcome) -> int:
        if outcome.status_code:
            return outcome.status_code
        status = getattr(outcome.err, "status_code", None)
        if isinstance(status, int) and status > 0:
            return status
        return self._config.failure_status

    def _emit(self, method: str, name: str, value: int | timedelta | None) -> None:
        # Emitter failures never affect the response
        try:
            getattr(self._config.emitter, method)(name, value, self._config.sample_rate)
        except Exception as e:
            logger.debug("emitter.failed", metric=name, error=str(e))


__all__ = [
    "Handler",
    "Pipeline",
    "PipelineConfig",
    "PipelineRun",
    "PipelineState",
]
