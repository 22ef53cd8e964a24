"""Transports dispatch updates to subscribers and may keep a history."""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable
from urllib.parse import SplitResult, urlsplit

from .subscriber import Subscriber
from .subscriber_list import SubscriberList
from .update import Update

EARLIEST_LAST_EVENT_ID = "earliest"


class Transport(ABC):
    """Dispatches and persists updates."""

    @abstractmethod
    def dispatch(self, update: Update) -> None:
        """Dispatch an update to every subscriber."""

    @abstractmethod
    def add_subscriber(self, subscriber: Subscriber) -> None:
        """Add a new subscriber to the transport."""

    @abstractmethod
    def remove_subscriber(self, subscriber: Subscriber) -> None:
        """Remove a subscriber from the transport."""

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""


class TransportSubscribers(ABC):
    """Gives access to the active subscribers."""

    @abstractmethod
    def get_subscribers(self) -> tuple[str, list[Subscriber]]:
        """Return the last event ID and the subscribers active at this time."""


TransportFactory = Callable[[SplitResult, logging.Logger], Transport]

_factories: dict[str, TransportFactory] = {}
_factories_lock = threading.Lock()


class ClosedTransportError(Exception):
    """Raised by dispatch and add_subscriber once the transport is closed."""

    def __init__(self, message: str = "hub: read/write on closed Transport") -> None:
        super().__init__(message)


class TransportError(Exception):
    """Raised when a transport's DSN is invalid."""

    def __init__(self, dsn: str, msg: str = "", err: BaseException | None = None) -> None:
        super().__init__(dsn, msg, err)
        self.dsn, self.msg, self.err = dsn, msg, err
        self.__cause__ = err

    def __str__(self) -> str:
        dsn = json.dumps(self.dsn, ensure_ascii=False)
        prefix = f"{dsn}: {self.msg}" if self.msg and self.err is not None else dsn
        detail = self.err if self.err is not None else self.msg
        return f"{prefix}: invalid transport" + (f": {detail}" if detail else "")


def _redacted(url: SplitResult) -> str:
    if url.password is None:
        return url.geturl()
    userinfo, _, host = url.netloc.rpartition("@")
    return url._replace(netloc=f"{userinfo.partition(':')[0]}:xxxxx@{host}").geturl()


def register_transport_factory(scheme: str, factory: TransportFactory) -> None:
    """Make ``factory`` build the transports for URLs with ``scheme``."""
    with _factories_lock:
        _factories[scheme] = factory


def new_transport(url: str | SplitResult, logger: logging.Logger | None = None) -> Transport:
    """Build a transport with the factory registered for the URL's scheme."""
    parsed = urlsplit(url) if isinstance(url, str) else url
    with _factories_lock:
        factory = _factories.get(parsed.scheme)
    if factory is None:
        raise TransportError(_redacted(parsed), "no such transport available")
    return factory(parsed, logger or logging.getLogger(__name__))


def get_subscribers(subscriber_list: SubscriberList) -> list[Subscriber]:
    """Return every subscriber of the list, in order."""
    subscribers: list[Subscriber] = []
    subscriber_list.walk(0, lambda s: subscribers.append(s) is None)
    return subscribers