"""Tests for the metrics emitters."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from strand.pipeline import MetricsEmitter, QueuedEmitter, RegistryEmitter


class TestMetricsEmitterProtocol:
    def test_registry_emitter_satisfies_protocol(self, registry):
        assert isinstance(RegistryEmitter(registry), MetricsEmitter)

    def test_queued_emitter_satisfies_protocol(self, registry):
        emitter = QueuedEmitter(RegistryEmitter(registry))
        try:
            assert isinstance(emitter, MetricsEmitter)
        finally:
            emitter.close()

    def test_plain_object_does_not(self):
        assert not isinstance(object(), MetricsEmitter)


class TestRegistryEmitter:
    def test_increment_full_rate(self, registry):
        emitter = RegistryEmitter(registry)
        emitter.increment("handlers.auth.200", 1, 1.0)
        emitter.increment("handlers.auth.200", 1, 1.0)
        assert registry.counter("handlers.auth.200").value == 2

    def test_record_duration_in_seconds(self, registry):
        emitter = RegistryEmitter(registry)
        emitter.record_duration("handlers.auth.runtime", timedelta(milliseconds=250), 1.0)

        data = registry.histogram("handlers.auth.runtime").data
        assert data["count"] == 1
        assert data["sum"] == pytest.approx(0.25)

    def test_sampled_in_counts_are_scaled(self, registry):
        emitter = RegistryEmitter(registry, rng=lambda: 0.1)
        emitter.increment("errors", 1, 0.5)
        assert registry.counter("errors").value == 2

    def test_sampled_out_is_dropped(self, registry):
        emitter = RegistryEmitter(registry, rng=lambda: 0.9)
        emitter.increment("errors", 1, 0.5)
        emitter.record_duration("handlers.x.runtime", timedelta(seconds=1), 0.5)
        assert registry.get("errors") is None
        assert registry.get("handlers.x.runtime") is None

    def test_zero_rate_records_nothing(self, registry):
        emitter = RegistryEmitter(registry, rng=lambda: 0.0)
        emitter.increment("errors", 1, 0.0)
        assert registry.names() == []

    def test_defaults_to_global_registry(self):
        from strand.observability.metrics import get_metrics_registry

        assert RegistryEmitter().registry is get_metrics_registry()


class TestQueuedEmitter:
    def test_forwards_to_target(self):
        target = MagicMock(spec=["increment", "record_duration"])
        emitter = QueuedEmitter(target, maxsize=16)

        emitter.increment("errors", 1, 1.0)
        emitter.record_duration("handlers.x.runtime", timedelta(seconds=1), 1.0)
        emitter.close()

        target.increment.assert_called_once_with("errors", 1, 1.0)
        target.record_duration.assert_called_once_with(
            "handlers.x.runtime", timedelta(seconds=1), 1.0
        )
        assert not emitter.is_running

    def test_does_not_block_on_slow_target(self):
        release = threading.Event()
        target = MagicMock(spec=["increment", "record_duration"])
        target.increment.side_effect = lambda *args: release.wait(5)

        emitter = QueuedEmitter(target, maxsize=1)
        try:
            # First event occupies the drain thread, second fills the queue
            for _ in range(10):
                emitter.increment("errors", 1, 1.0)
            assert emitter.dropped > 0
        finally:
            release.set()
            emitter.close()

    def test_close_with_full_queue_honours_timeout(self):
        release = threading.Event()
        target = MagicMock(spec=["increment", "record_duration"])
        target.increment.side_effect = lambda *args: release.wait(3)

        emitter = QueuedEmitter(target, maxsize=1)
        try:
            for _ in range(5):
                emitter.increment("errors", 1, 1.0)

            started = time.monotonic()
            emitter.close(timeout=0.2)
            assert time.monotonic() - started < 1.0
        finally:
            release.set()

    def test_close_delivers_queued_events(self):
        target = MagicMock(spec=["increment", "record_duration"])
        emitter = QueuedEmitter(target, maxsize=64)

        for _ in range(20):
            emitter.increment("errors", 1, 1.0)
        emitter.close()

        assert target.increment.call_count == 20
        assert not emitter.is_running

    def test_target_failures_are_swallowed(self):
        target = MagicMock(spec=["increment", "record_duration"])
        target.increment.side_effect = ConnectionError("collector down")
        emitter = QueuedEmitter(target, maxsize=4)

        emitter.increment("errors", 1, 1.0)
        emitter.increment("errors", 1, 1.0)
        emitter.flush()
        emitter.close()

        assert target.increment.call_count == 2

    def test_closed_emitter_raises(self):
        emitter = QueuedEmitter(MagicMock(spec=["increment", "record_duration"]))
        emitter.close()
        with pytest.raises(RuntimeError):
            emitter.increment("errors", 1, 1.0)

    def test_close_is_idempotent(self):
        emitter = QueuedEmitter(MagicMock(spec=["increment", "record_duration"]))
        emitter.close()
        emitter.close()

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            QueuedEmitter(MagicMock(), maxsize=0)
