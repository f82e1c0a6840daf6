"""Starlette glue: run a compiled handler as an ordinary endpoint.

A compiled pipeline handler has the shape ``async (writer, request) ->
None``.  :func:`as_endpoint` wraps it into the ``async (request) ->
Response`` shape Starlette and FastAPI expect::

    app.add_route("/orders", as_endpoint(handler), methods=["POST"])
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.requests import Request
from starlette.responses import Response

from strand.http.writer import ResponseWriter

Endpoint = Callable[[Request], Awaitable[Response]]


def as_endpoint(
    handler: Callable[[ResponseWriter, Any], Awaitable[None]],
    default_status: int = 200,
) -> Endpoint:
    """Wrap a compiled handler into a Starlette endpoint."""

    async def endpoint(request: Request) -> Response:
        rw = ResponseWriter(default_status=default_status)
        await handler(rw, request)
        return rw.to_response()

    endpoint.__name__ = getattr(handler, "__name__", "pipeline")
    return endpoint


__all__ = ["Endpoint", "as_endpoint"]
