"""ResponseWriter — the response sink units write into.

Units do not return Starlette responses; they write status, headers and
body into a shared :class:`ResponseWriter`.  Once the pipeline finishes,
the adapter renders the writer into a single Starlette ``Response``.

The status behaves like a classic HTTP writer: the first
``write_header`` wins, and writing a body without a status implies 200.
"""

from __future__ import annotations

import json
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from strand.core.logging import get_logger

logger = get_logger(__name__)


class ResponseWriter:
    """Mutable, per-request response sink."""

    def __init__(self, default_status: int = 200):
        self.headers = MutableHeaders()
        self._default_status = default_status
        self._status: int | None = None
        self._body = bytearray()

    @property
    def status_code(self) -> int:
        """Status written so far, or the default when none was written."""
        return self._status if self._status is not None else self._default_status

    @property
    def written(self) -> bool:
        """True once a status has been committed."""
        return self._status is not None

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status_code: int) -> None:
        """Commit the response status. Later calls are ignored."""
        if self._status is not None:
            logger.debug(
                "writer.superfluous_write_header",
                committed=self._status,
                ignored=status_code,
            )
            return
        self._status = status_code

    def write(self, data: bytes | str) -> int:
        """Append to the body, committing status 200 if none was written."""
        if self._status is None:
            self.write_header(200)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)
        return len(data)

    def to_response(self) -> Response:
        """Render into a Starlette ``Response``."""
        return Response(
            content=bytes(self._body),
            status_code=self.status_code,
            headers=self.headers,
        )

    def __repr__(self) -> str:
        return f"ResponseWriter(status={self.status_code}, written={self.written}, bytes={len(self._body)})"


def write_json(rw: ResponseWriter, status_code: int, payload: Any) -> None:
    """Write *payload* as a JSON body with *status_code*."""
    rw.headers["Content-Type"] = "application/json"
    rw.write_header(status_code)
    rw.write(
        json.dumps(payload, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    )


def write_json_status(rw: ResponseWriter, status_code: int, message: str) -> None:
    """Write a ``{"status": ..., "message": ...}`` JSON body."""
    write_json(rw, status_code, {"status": status_code, "message": message})


def write_text(rw: ResponseWriter, status_code: int, text: str) -> None:
    """Write a plain-text body with *status_code*."""
    rw.headers["Content-Type"] = "text/plain; charset=utf-8"
    rw.write_header(status_code)
    rw.write(text)


__all__ = ["ResponseWriter", "write_json", "write_json_status", "write_text"]
