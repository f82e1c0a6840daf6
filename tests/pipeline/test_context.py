"""Tests for the immutable Context and the PipelineRequest view."""

from __future__ import annotations

import pytest

from strand.pipeline import Context, PipelineRequest
from strand.pipeline.context import initial_context, transport_request


class TestContext:
    def test_empty(self):
        ctx = Context()
        assert len(ctx) == 0
        assert ctx.get("missing") is None

    def test_from_mapping_and_kwargs(self):
        ctx = Context({"a": 1}, b=2)
        assert dict(ctx) == {"a": 1, "b": 2}

    def test_with_values_returns_new_context(self):
        base = Context(a=1)
        derived = base.with_values(b=2)

        assert dict(base) == {"a": 1}
        assert dict(derived) == {"a": 1, "b": 2}

    def test_with_values_overrides(self):
        assert Context(a=1).with_values({"a": 2})["a"] == 2

    def test_without(self):
        assert dict(Context(a=1, b=2).without("a")) == {"b": 2}

    def test_cannot_be_mutated(self):
        ctx = Context(a=1)
        with pytest.raises(TypeError):
            ctx["a"] = 2  # type: ignore[index]

    def test_source_mapping_changes_do_not_leak(self):
        source = {"a": 1}
        ctx = Context(source)
        source["a"] = 99
        assert ctx["a"] == 1

    def test_coerce(self):
        ctx = Context(a=1)
        assert Context.coerce(ctx) is ctx
        assert Context.coerce(None) == Context()
        assert Context.coerce({"a": 1}) == ctx

    def test_equality_with_dict(self):
        assert Context(a=1) == {"a": 1}


class TestPipelineRequest:
    def test_delegates_to_transport_request(self, make_request):
        request = make_request(method="POST", path="/orders", headers={"X-Token": "t"})
        view = PipelineRequest(request, Context())

        assert view.method == "POST"
        assert view.url.path == "/orders"
        assert view.headers["x-token"] == "t"

    def test_with_context_keeps_transport(self, request_):
        view = PipelineRequest(request_)
        updated = view.with_context({"k": "v"})

        assert updated.request is request_
        assert updated.context == Context(k="v")
        assert view.context == Context()

    def test_unknown_attribute_raises(self, request_):
        with pytest.raises(AttributeError):
            PipelineRequest(request_).definitely_not_an_attribute

    def test_initial_context(self, request_):
        assert initial_context(request_) == Context()
        assert initial_context(PipelineRequest(request_, Context(a=1))) == Context(a=1)

    def test_transport_request(self, request_):
        assert transport_request(request_) is request_
        assert transport_request(PipelineRequest(request_)) is request_
