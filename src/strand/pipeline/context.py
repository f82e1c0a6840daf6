"""Execution Context and the request view that carries it.

A :class:`Context` is an immutable key/value mapping created fresh for every
request.  Units never mutate it; a unit that wants later units to see new
values returns ``Outcome.with_context(...)`` and the engine swaps the
context for every remaining unit.

:class:`PipelineRequest` pairs the transport request (a Starlette
``Request``) with the current context.  The transport request itself is
never modified; a new view is created whenever the context changes.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from starlette.requests import Request


class Context(Mapping[str, Any]):
    """Immutable per-request key/value state.

    Example:
        >>> ctx = Context(user="ada")
        >>> ctx2 = ctx.with_values(role="admin")
        >>> dict(ctx), dict(ctx2)
        ({'user': 'ada'}, {'user': 'ada', 'role': 'admin'})
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, /, **kwargs: Any):
        merged = dict(values or {})
        merged.update(kwargs)
        self._values = MappingProxyType(merged)

    @classmethod
    def coerce(cls, value: Context | Mapping[str, Any] | None) -> Context:
        """Return *value* as a Context (``None`` becomes an empty one)."""
        if isinstance(value, Context):
            return value
        return cls(value)

    def with_values(self, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Context:
        """Return a new context with *values* layered over this one."""
        merged = dict(self._values)
        merged.update(values or {})
        merged.update(kwargs)
        return Context(merged)

    def without(self, *keys: str) -> Context:
        """Return a new context with *keys* removed."""
        return Context({k: v for k, v in self._values.items() if k not in keys})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Context({dict(self._values)!r})"


@dataclass(frozen=True)
class PipelineRequest:
    """The request a unit receives: transport request plus current context.

    Attribute access falls through to the wrapped Starlette request, so units
    can read ``request.method``, ``request.headers`` or ``await
    request.json()`` directly.
    """

    request: Request
    context: Context = field(default_factory=Context)

    def with_context(self, context: Context | Mapping[str, Any]) -> PipelineRequest:
        """Return a view of the same transport request carrying *context*."""
        return PipelineRequest(self.request, Context.coerce(context))

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not defined on the dataclass itself
        if name.startswith("__") or name in ("request", "context"):
            raise AttributeError(name)
        return getattr(self.request, name)


def initial_context(request: PipelineRequest | Request) -> Context:
    """Context a traversal starts from: the caller's, or an empty one."""
    if isinstance(request, PipelineRequest):
        return request.context
    return Context()


def transport_request(request: PipelineRequest | Request) -> Request:
    """Unwrap a :class:`PipelineRequest` to its Starlette request."""
    if isinstance(request, PipelineRequest):
        return request.request
    return request


__all__ = [
    "Context",
    "PipelineRequest",
    "initial_context",
    "transport_request",
]
