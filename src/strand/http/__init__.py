"""HTTP surface: the response sink, Starlette glue, and ready-made units."""

from strand.http.writer import ResponseWriter, write_json, write_json_status, write_text
from strand.http.adapters import Endpoint, as_endpoint
from strand.http.units import (
    access_token,
    cors,
    header_to_context,
    metrics_exposition,
    request_id,
    route_logger,
)

__all__ = [
    "ResponseWriter",
    "write_json",
    "write_json_status",
    "write_text",
    "Endpoint",
    "as_endpoint",
    "access_token",
    "cors",
    "header_to_context",
    "metrics_exposition",
    "request_id",
    "route_logger",
]
