"""
Ready-made units for common cross-cutting concerns.

Each factory returns a named :class:`~strand.pipeline.unit_types.Unit` that can be
dropped into any pipeline::

    pipeline.endpoint([
        request_id(),
        route_logger(),
        cors(allow_origin="https://app.example.com"),
        access_token("X-Access-Token", ["s3cret"]),
        create_order,
    ])

Manifesto:
    Cross-cutting concerns (CORS, auth, correlation ids, access logs)
    belong in small reusable units so endpoint units stay focused on
    business logic.

Tags:
    strand, http, units, cors, authentication, request-id, logging

Doc-Types:
    api-reference
"""

from __future__ import annotations

import hmac
import uuid
from collections.abc import Iterable

from strand.core.errors import PipelineConfigError, UnitError
from strand.core.logging import get_logger
from strand.http.writer import ResponseWriter
from strand.observability.metrics import MetricsRegistry, get_metrics_registry
from strand.pipeline.context import PipelineRequest
from strand.pipeline.outcome import Outcome
from strand.pipeline.unit_types import Unit

logger = get_logger(__name__)

DEFAULT_CORS_METHODS = "POST, GET, OPTIONS, PUT, DELETE"
DEFAULT_CORS_HEADERS = (
    "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization"
)

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def cors(
    allow_origin: str = "*",
    allow_methods: str = DEFAULT_CORS_METHODS,
    allow_headers: str = DEFAULT_CORS_HEADERS,
    name: str = "cors",
) -> Unit:
    """Set CORS headers; answer ``OPTIONS`` preflights by stopping the pipeline."""

    async def cors_unit(rw: ResponseWriter, request: PipelineRequest) -> Outcome | None:
        rw.headers["Access-Control-Allow-Origin"] = allow_origin
        rw.headers["Access-Control-Allow-Methods"] = allow_methods
        rw.headers["Access-Control-Allow-Headers"] = allow_headers

        if request.method == "OPTIONS":
            return Outcome.stop()
        return None

    return Unit(name, cors_unit)


def access_token(
    header: str,
    tokens: Iterable[str],
    name: str = "access_token",
) -> Unit:
    """Reject requests whose *header* does not carry one of *tokens* (401)."""
    allowed = tuple(t for t in tokens if t)
    if not allowed:
        raise PipelineConfigError("access_token requires at least one non-empty token")

    async def access_token_unit(rw: ResponseWriter, request: PipelineRequest) -> Outcome | None:
        provided = request.headers.get(header)
        if not provided:
            return Outcome.fail(UnitError(f"No access token found; expected header {header}", 401))

        # Compare against every token so timing does not reveal a match position
        matched = False
        for token in allowed:
            matched |= hmac.compare_digest(provided.encode(), token.encode())
        if not matched:
            return Outcome.fail(UnitError("Invalid access token", 401))
        return None

    return Unit(name, access_token_unit)


def header_to_context(
    header: str,
    key: str | None = None,
    name: str = "header_to_context",
) -> Unit:
    """Copy the value of *header* into the context under *key* (default: the header name)."""
    context_key = key or header

    async def header_to_context_unit(rw: ResponseWriter, request: PipelineRequest) -> Outcome | None:
        value = request.headers.get(header)
        if value is None:
            return None
        return Outcome.with_context(request.context, **{context_key: value})

    return Unit(name, header_to_context_unit)


def request_id(
    header: str = "X-Request-ID",
    key: str = "request_id",
    name: str = "request_id",
) -> Unit:
    """Reuse the caller's request id or mint one; expose it in context and response."""

    async def request_id_unit(rw: ResponseWriter, request: PipelineRequest) -> Outcome:
        rid = request.headers.get(header) or str(uuid.uuid4())
        rw.headers[header] = rid
        return Outcome.with_context(request.context, **{key: rid})

    return Unit(name, request_id_unit)


def route_logger(name: str = "route_logger") -> Unit:
    """Log method, path and query of every request."""

    async def route_logger_unit(rw: ResponseWriter, request: PipelineRequest) -> None:
        logger.info(
            "request.route",
            method=request.method,
            path=request.url.path,
            query=request.url.query or None,
            request_id=request.context.get("request_id"),
        )
        return None

    return Unit(name, route_logger_unit)


def metrics_exposition(
    registry: MetricsRegistry | None = None,
    name: str = "metrics_exposition",
) -> Unit:
    """Write the registry in Prometheus text format and stop the pipeline."""

    async def metrics_exposition_unit(rw: ResponseWriter, request: PipelineRequest) -> Outcome:
        reg = registry or get_metrics_registry()
        rw.headers["Content-Type"] = PROMETHEUS_CONTENT_TYPE
        rw.write_header(200)
        rw.write(reg.export_prometheus())
        return Outcome.stop(200)

    return Unit(name, metrics_exposition_unit)


__all__ = [
    "cors",
    "access_token",
    "header_to_context",
    "request_id",
    "route_logger",
    "metrics_exposition",
]
