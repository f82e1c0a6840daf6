"""Tests for Outcome construction and inspection."""

from __future__ import annotations

import dataclasses

import pytest

from strand.core.errors import UnitError
from strand.pipeline import Context, Outcome


class TestOutcomeDefaults:
    def test_zero_value_is_empty(self):
        outcome = Outcome()
        assert outcome.status_code == 0
        assert outcome.err is None
        assert outcome.stop_execution is False
        assert outcome.context is None
        assert outcome.payload is None
        assert outcome.is_empty

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"status_code": 204},
            {"err": "x"},
            {"stop_execution": True},
            {"context": Context()},
        ],
    )
    def test_any_field_makes_it_non_empty(self, kwargs):
        assert not Outcome(**kwargs).is_empty

    def test_payload_alone_is_empty(self):
        assert Outcome(payload={"id": 1}).is_empty

    def test_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Outcome().status_code = 200  # type: ignore[misc]


class TestError:
    def test_returns_wrapped_error_text(self):
        assert Outcome(err=Exception("some error")).error() == "some error"

    def test_string_error(self):
        assert Outcome(err="plain message").error() == "plain message"

    def test_no_error_returns_empty_string(self):
        assert Outcome().error() == ""
        assert Outcome(status_code=201).error() == ""

    def test_failed_flag(self):
        assert Outcome(err="x").failed
        assert not Outcome(stop_execution=True).failed


class TestFactories:
    def test_ok(self):
        outcome = Outcome.ok(status_code=201, payload={"id": 7})
        assert outcome.status_code == 201
        assert outcome.payload == {"id": 7}
        assert not outcome.failed

    def test_ok_defaults_to_200(self):
        outcome = Outcome.ok(payload={"id": 7})
        assert outcome.status_code == 200
        assert not outcome.is_empty

    def test_fail_keeps_error_and_status(self):
        err = UnitError("denied", status_code=403)
        outcome = Outcome.fail(err)
        assert outcome.err is err
        assert outcome.status_code == 0
        assert outcome.error() == "denied"

    def test_fail_with_explicit_status(self):
        assert Outcome.fail("teapot", status_code=418).status_code == 418

    def test_stop(self):
        outcome = Outcome.stop()
        assert outcome.stop_execution
        assert not outcome.failed
        assert not outcome.is_empty

    def test_with_context_replaces_wholesale(self):
        outcome = Outcome.with_context(Context(a=1))
        assert outcome.context == Context(a=1)

    def test_with_context_layers_values(self):
        outcome = Outcome.with_context(Context(a=1), b=2)
        assert dict(outcome.context) == {"a": 1, "b": 2}

    def test_with_context_from_nothing(self):
        outcome = Outcome.with_context(user="ada")
        assert outcome.context == Context(user="ada")
        assert not outcome.is_empty

    def test_plain_mapping_context_is_coerced(self):
        outcome = Outcome(context={"k": "v"})
        assert isinstance(outcome.context, Context)
        assert outcome.context["k"] == "v"
