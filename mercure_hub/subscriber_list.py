"""A set of subscribers filtered by topic."""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from .subscriber import Subscriber
from .update import Update

# A delimiter and an escape character which are unlikely to be used in topics.
ESCAPE = "\x00"
DELIM = "\x01"


def encode(topics: Iterable[str], private: bool) -> str:
    """Encode sorted topics and the private flag as a single filter key."""
    escaped = (t.replace(ESCAPE, ESCAPE * 2).replace(DELIM, ESCAPE + DELIM) for t in sorted(topics))
    return DELIM.join(["1" if private else "0", *escaped])


def decode(encoded: str) -> tuple[list[str], bool]:
    """Decode a filter key produced by ``encode``."""
    parts: list[str] = []
    current: list[str] = []
    in_escape = False
    for char in encoded:
        if in_escape:
            current.append(char)
            in_escape = False
        elif char == ESCAPE:
            in_escape = True
        elif char == DELIM:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    if len(parts) == 1:
        return parts, False
    return parts[1:], parts[0] == "1"


class SubscriberList:
    """Subscribers kept in insertion order, each at a fixed position."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._lock = threading.Lock()
        self._by_position: dict[int, Subscriber] = {}
        self._positions: dict[Subscriber, int] = {}
        self._next = 0

    def add(self, subscriber: Subscriber) -> None:
        """Add a subscriber; adding it twice has no effect."""
        with self._lock:
            if subscriber not in self._positions:
                self._positions[subscriber] = self._next
                self._by_position[self._next] = subscriber
                self._next += 1

    def remove(self, subscriber: Subscriber) -> None:
        """Remove a subscriber if present."""
        with self._lock:
            position = self._positions.pop(subscriber, None)
            if position is not None:
                del self._by_position[position]

    def match_any(self, update: Update) -> list[Subscriber]:
        """Return the subscribers allowed to receive the update."""
        topics, private = decode(encode(update.topics, update.private))
        with self._lock:
            subscribers = list(self._by_position.values())
        return [s for s in subscribers if s.match_topics(topics, private)]

    def walk(self, start: int, callback: Callable[[Subscriber], bool]) -> int:
        """Call ``callback`` on subscribers from position ``start`` until it returns False.

        Returns the position to resume from.
        """
        with self._lock:
            entries = [(p, s) for p, s in self._by_position.items() if p >= start]
        resume = start
        for position, subscriber in entries:
            resume = position + 1
            if not callback(subscriber):
                break
        return resume

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_position)