"""Metrics collected by the hub."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from .subscriber import Subscriber
from .update import Update

__all__ = ["Counter", "Gauge", "Metrics", "NopMetrics", "PrometheusMetrics", "Registry"]


class Metrics(ABC):
    """Collects metrics about subscribers and updates."""

    @abstractmethod
    def subscriber_connected(self, subscriber: Subscriber) -> None:
        """Record a subscriber connection."""

    @abstractmethod
    def subscriber_disconnected(self, subscriber: Subscriber) -> None:
        """Record a subscriber disconnection."""

    @abstractmethod
    def update_published(self, update: Update) -> None:
        """Record an update publication."""


class NopMetrics(Metrics):
    """Metrics that collect nothing."""

    def subscriber_connected(self, subscriber: Subscriber) -> None:
        pass

    def subscriber_disconnected(self, subscriber: Subscriber) -> None:
        pass

    def update_published(self, update: Update) -> None:
        pass


class _Metric:
    kind = "untyped"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        self.name = name
        self.help = help
        self._value = 0.0
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def _add(self, amount: float) -> None:
        with self._lock:
            self._value += amount

    def render(self) -> str:
        value = self.value
        shown = str(int(value)) if value == int(value) else repr(value)
        return (
            f"# HELP {self.name} {self.help}\n"
            f"# TYPE {self.name} {self.kind}\n"
            f"{self.name} {shown}\n"
        )


class Counter(_Metric):
    """A value that only goes up."""

    kind = "counter"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        super().__init__(name, help)

    def inc(self) -> None:
        self._add(1.0)


class Gauge(_Metric):
    """A value that goes up and down."""

    kind = "gauge"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        super().__init__(name, help)

    def inc(self) -> None:
        self._add(1.0)

    def dec(self) -> None:
        self._add(-1.0)


class Registry:
    """Holds metrics under unique names and renders them in text exposition format."""

    def __init__(self) -> None:
        self._metrics: dict[str, _Metric] = {}
        self._lock = threading.Lock()

    def register(self, metric: _Metric) -> None:
        """Register a metric; raise ValueError if its name is already taken."""
        with self._lock:
            if metric.name in self._metrics:
                raise ValueError(f"duplicate metrics collector registration attempted: {metric.name}")
            self._metrics[metric.name] = metric

    def render(self) -> str:
        """Return every metric, sorted by name."""
        with self._lock:
            metrics = sorted(self._metrics.values(), key=lambda m: m.name)
        return "".join(metric.render() for metric in metrics)


class PrometheusMetrics(Metrics):
    """Counts subscribers and updates in a registry."""

    def __init__(self, registry: Registry | None = None) -> None:
        self.registry = registry if registry is not None else Registry()
        self.subscribers_total = Counter("mercure_subscribers_total", "Total number of handled subscribers")
        self.subscribers = Gauge("mercure_subscribers_connected", "The current number of running subscribers")
        self.updates_total = Counter("mercure_updates_total", "Total number of handled updates")
        for metric in (self.subscribers, self.subscribers_total, self.updates_total):
            self.registry.register(metric)

    def subscriber_connected(self, subscriber: Subscriber) -> None:
        self.subscribers_total.inc()
        self.subscribers.inc()

    def subscriber_disconnected(self, subscriber: Subscriber) -> None:
        self.subscribers.dec()

    def update_published(self, update: Update) -> None:
        self.updates_total.inc()