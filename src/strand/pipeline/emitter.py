"""Metrics Emitter capability and its in-process implementations.

The engine only needs two capabilities from a metrics backend::

    increment(name, amount, sample_rate)          # counts
    record_duration(name, elapsed, sample_rate)   # timings

Any object with those two methods works (a StatsD client wrapper, a
DataDog adapter, a test double).  Failures are signalled by raising; the
engine logs and discards them, so a broken collector never changes an HTTP
response.

Implementations here:

- :class:`RegistryEmitter` — records into a
  :class:`~strand.observability.metrics.MetricsRegistry`
- :class:`QueuedEmitter` — decouples request latency from a slow target by
  draining a bounded queue on a background thread
"""

from __future__ import annotations

import queue
import random
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol, runtime_checkable

from strand.core.logging import get_logger
from strand.observability.metrics import MetricsRegistry, get_metrics_registry

logger = get_logger(__name__)


@runtime_checkable
class MetricsEmitter(Protocol):
    """Capability consumed by the pipeline engine."""

    def increment(self, name: str, amount: int, sample_rate: float) -> None:
        """Add *amount* to the counter *name*. Raise on transmission failure."""
        ...

    def record_duration(self, name: str, elapsed: timedelta, sample_rate: float) -> None:
        """Record one timing observation for *name*. Raise on transmission failure."""
        ...


class RegistryEmitter:
    """Emitter backed by an in-process :class:`MetricsRegistry`.

    Sampling follows StatsD semantics: an event is kept with probability
    ``sample_rate`` and kept counts are scaled by ``1 / sample_rate`` so
    totals stay unbiased.  Durations are stored in seconds.
    """

    def __init__(
        self,
        registry: MetricsRegistry | None = None,
        rng: Callable[[], float] = random.random,
    ):
        self.registry = registry or get_metrics_registry()
        self._rng = rng

    def _sampled(self, sample_rate: float) -> bool:
        if sample_rate >= 1.0:
            return True
        if sample_rate <= 0.0:
            return False
        return self._rng() < sample_rate

    def increment(self, name: str, amount: int, sample_rate: float) -> None:
        if not self._sampled(sample_rate):
            return
        scale = 1.0 / sample_rate if sample_rate < 1.0 else 1.0
        self.registry.counter(name).inc(amount * scale)

    def record_duration(self, name: str, elapsed: timedelta, sample_rate: float) -> None:
        if not self._sampled(sample_rate):
            return
        self.registry.histogram(name).observe(elapsed.total_seconds())


@dataclass(frozen=True)
class _Emission:
    method: str
    name: str
    value: int | timedelta
    sample_rate: float


class QueuedEmitter:
    """Fire-and-forget wrapper that emits on a background thread.

    Calls return immediately after enqueueing.  When the queue is full the
    event is dropped and counted in :attr:`dropped`; requests never wait on
    the collector.

    Example:
        >>> emitter = QueuedEmitter(RegistryEmitter(), maxsize=1000)
        >>> # ... serve requests ...
        >>> emitter.close()
    """

    #: How often the drain thread re-checks the stop event while idle
    poll_interval: float = 0.05

    def __init__(self, target: MetricsEmitter, maxsize: int = 1024):
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._target = target
        self._queue: queue.Queue[_Emission] = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._dropped = 0
        self._closed = False
        self._thread = threading.Thread(target=self._drain, daemon=True, name="strand-metrics")
        self._thread.start()

    @property
    def dropped(self) -> int:
        """Number of events discarded because the queue was full."""
        with self._lock:
            return self._dropped

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def increment(self, name: str, amount: int, sample_rate: float) -> None:
        self._put(_Emission("increment", name, amount, sample_rate))

    def record_duration(self, name: str, elapsed: timedelta, sample_rate: float) -> None:
        self._put(_Emission("record_duration", name, elapsed, sample_rate))

    def _put(self, emission: _Emission) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("QueuedEmitter is closed")
            try:
                self._queue.put_nowait(emission)
            except queue.Full:
                self._dropped += 1

    def _drain(self) -> None:
        # Exits only once stopped and empty, so flush() always returns
        while True:
            try:
                emission = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._stop_event.is_set():
                    return
                continue

            try:
                getattr(self._target, emission.method)(
                    emission.name, emission.value, emission.sample_rate
                )
            except Exception as e:
                logger.debug("emitter.target_failed", metric=emission.name, error=str(e))
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued event has been handed to the target."""
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        """Stop accepting events and wait up to *timeout* seconds for the drain.

        Events still queued when the timeout expires keep draining on the
        daemon thread but are lost if the process exits first.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning(
                "emitter.close_timeout",
                timeout=timeout,
                pending=self._queue.qsize(),
            )


__all__ = ["MetricsEmitter", "RegistryEmitter", "QueuedEmitter"]
