"""
Shared pytest fixtures and configuration for strand tests.

This module provides:
- Starlette request construction without a running server
- Fresh response writers and metrics registries per test
- A MagicMock emitter satisfying the MetricsEmitter capability
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from starlette.requests import Request

# Ensure strand package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from strand.http.writer import ResponseWriter
from strand.observability.metrics import MetricsRegistry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything that is not explicitly integration as unit."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# HTTP Fixtures
# =============================================================================


def build_request(
    method: str = "GET",
    path: str = "/",
    headers: dict[str, str] | None = None,
    query_string: str = "",
) -> Request:
    """Build a Starlette request from a bare ASGI scope."""
    raw_headers = [
        (k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": query_string.encode(),
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("testclient", 50000),
    }
    return Request(scope)


@pytest.fixture
def make_request():
    """Factory fixture for Starlette requests."""
    return build_request


@pytest.fixture
def request_():
    """A plain GET / request."""
    return build_request()


@pytest.fixture
def writer() -> ResponseWriter:
    return ResponseWriter()


# =============================================================================
# Metrics Fixtures
# =============================================================================


@pytest.fixture
def fake_emitter() -> MagicMock:
    """Emitter double recording increment/record_duration calls."""
    return MagicMock(spec=["increment", "record_duration"])


@pytest.fixture
def registry() -> MetricsRegistry:
    return MetricsRegistry()
