"""Units — named stages of a request pipeline.

A unit is any callable ``(ResponseWriter, PipelineRequest) -> Outcome | None``.
It may be a coroutine function (awaited on the event loop) or a plain
function (run in Starlette's threadpool so it cannot block the loop).

Each unit carries a stable name used verbatim in metric names
(``handlers.<name>.200``).  Names are given explicitly where possible::

    Unit("auth", check_token)
    ("auth", check_token)

    @unit("auth")
    async def check_token(rw, request): ...

A bare function is named after its ``__name__``; lambdas and other
anonymous callables must be named explicitly.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from starlette.concurrency import run_in_threadpool

from strand.core.errors import PipelineConfigError
from strand.pipeline.outcome import Outcome

if TYPE_CHECKING:
    from strand.http.writer import ResponseWriter
    from strand.pipeline.context import PipelineRequest

UnitFunc = Callable[
    ["ResponseWriter", "PipelineRequest"],
    Union[Outcome, None, Awaitable[Union[Outcome, None]]],
]


def _is_async_callable(func: Any) -> bool:
    while isinstance(func, functools.partial):
        func = func.func
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)
    return inspect.iscoroutinefunction(call)


def resolve_name(func: Any) -> str:
    """Derive a stable metric name from a callable's identity.

    Raises:
        PipelineConfigError: If the callable has no usable name
    """
    target = func
    while isinstance(target, functools.partial):
        target = target.func

    name = getattr(target, "__name__", None)
    if name is None and callable(target):
        # Callable instance: name after its class
        name = type(target).__name__

    if not name or name == "<lambda>":
        raise PipelineConfigError(
            f"Cannot derive a unit name from {func!r}; register it as (name, callable)"
        )
    return name


@dataclass(frozen=True)
class Unit:
    """A named pipeline stage.

    Attributes:
        name: Stable identifier used in metric names
        func: The callable doing the work
    """

    name: str
    func: UnitFunc
    is_async: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise PipelineConfigError("Unit name must be a non-empty string")
        if not callable(self.func):
            raise PipelineConfigError(f"Unit {self.name!r} is not callable: {self.func!r}")
        object.__setattr__(self, "is_async", _is_async_callable(self.func))

    @classmethod
    def of(cls, value: Unit | tuple[str, UnitFunc] | UnitFunc) -> Unit:
        """Coerce a Unit, ``(name, callable)`` pair or bare callable."""
        if isinstance(value, Unit):
            return value
        if isinstance(value, tuple):
            if len(value) != 2:
                raise PipelineConfigError(f"Expected a (name, callable) pair, got {value!r}")
            name, func = value
            return cls(name, func)
        if not callable(value):
            raise PipelineConfigError(f"Unit is not callable: {value!r}")
        return cls(resolve_name(value), value)

    async def __call__(self, rw: ResponseWriter, request: PipelineRequest) -> Outcome | None:
        if self.is_async:
            result = await self.func(rw, request)
        else:
            result = await run_in_threadpool(self.func, rw, request)

        if result is not None and not isinstance(result, Outcome):
            raise TypeError(
                f"Unit {self.name!r} returned {type(result).__name__}, expected Outcome or None"
            )
        return result


def unit(name: str | Callable | None = None) -> Any:
    """Decorator turning a function into a :class:`Unit`.

    Usable bare (``@unit``) or with an explicit name (``@unit("auth")``).
    """
    if callable(name):
        return Unit.of(name)

    def decorator(func: UnitFunc) -> Unit:
        return Unit(name or resolve_name(func), func)

    return decorator


__all__ = ["Unit", "UnitFunc", "resolve_name", "unit"]
