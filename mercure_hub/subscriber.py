"""Clients subscribed to a list of topics."""

from __future__ import annotations

import logging
import queue
import re
import threading
import uuid
from collections import deque
from typing import Any, Iterable
from urllib.parse import quote_plus

from .subscription import DEFAULT_HUB_URL, Subscription
from .templates import TemplateError, template_regexp
from .update import Update

OUT_BUFFER_LENGTH = 1000


def _query_escape(value: str) -> str:
    return quote_plus(value, safe="")


def escape_topics(topics: Iterable[str]) -> list[str]:
    """Return the topics escaped for use in a URL path or query."""
    return [_query_escape(topic) for topic in topics]


def _compile(selectors: Iterable[str]) -> list[re.Pattern[str] | None]:
    patterns: list[re.Pattern[str] | None] = []
    for selector in selectors:
        try:
            patterns.append(template_regexp(selector))
        except TemplateError:
            patterns.append(None)
    return patterns


def _selects(topic: str, selectors: Iterable[str], patterns: Iterable[re.Pattern[str] | None]) -> bool:
    for selector, pattern in zip(selectors, patterns):
        if selector == "*" or selector == topic:
            return True
        if pattern is not None and pattern.match(topic):
            return True
    return False


class Subscriber:
    """A client subscribed to a list of topics.

    Updates are buffered up to OUT_BUFFER_LENGTH; a subscriber that cannot
    keep up is disconnected.  Live updates dispatched before ``ready`` is
    called are queued so that history is delivered first.
    """

    def __init__(self, last_event_id: str = "", logger: logging.Logger | None = None) -> None:
        self.id = f"urn:uuid:{uuid.uuid4()}"
        self.escaped_id = _query_escape(self.id)
        self.request_last_event_id = last_event_id
        self.remote_addr = ""
        self.debug = False
        self.payload: Any = None
        self.subscribed_topics: list[str] | None = None
        self.subscribed_topic_regexps: list[re.Pattern[str] | None] = []
        self.allowed_private_topics: list[str] | None = None
        self.allowed_private_regexps: list[re.Pattern[str] | None] = []
        self.escaped_topics: list[str] = []

        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._out: deque[Update] = deque()
        self._out_cond = threading.Condition()
        self._closed = False
        self._disconnected = False
        self._ready = False
        self._live_queue: list[Update] = []
        self._live_lock = threading.Lock()
        self._response_last_event_id: queue.Queue[str] = queue.Queue(maxsize=1)

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    @property
    def is_ready(self) -> bool:
        return self._ready

    def dispatch(self, update: Update, from_history: bool) -> bool:
        """Queue an update for the subscriber; return False if it was dropped.

        Topic matching must be checked beforehand, for instance with ``match``.
        """
        if self._disconnected:
            return False

        if not from_history and not self._ready:
            with self._live_lock:
                if not self._ready:
                    self._live_queue.append(update)
                    return True

        with self._out_cond:
            if self._disconnected:
                return False
            if len(self._out) >= OUT_BUFFER_LENGTH:
                self._handle_full_buffer()
                return False
            self._out.append(update)
            self._out_cond.notify_all()
        return True

    def ready(self) -> int:
        """Flush the queued live updates and mark the subscriber ready.

        Returns the number of updates flushed.
        """
        flushed = 0
        with self._live_lock, self._out_cond:
            for update in self._live_queue:
                if len(self._out) >= OUT_BUFFER_LENGTH:
                    self._handle_full_buffer()
                    self._out_cond.notify_all()
                    return flushed
                self._out.append(update)
                flushed += 1
            self._live_queue.clear()
            self._ready = True
            self._out_cond.notify_all()
        return flushed

    def receive(self, timeout: float | None = None) -> Update | None:
        """Return the next update, or None once disconnected and drained.

        Raises TimeoutError if nothing arrives within ``timeout`` seconds.
        """
        with self._out_cond:
            if not self._out_cond.wait_for(lambda: self._out or self._closed, timeout):
                raise TimeoutError("no update received in time")
            if self._out:
                return self._out.popleft()
            return None

    def history_dispatched(self, response_last_event_id: str) -> None:
        """Signal that every update from the history has been dispatched."""
        self._response_last_event_id.put(response_last_event_id)

    def response_last_event_id(self, timeout: float | None = None) -> str:
        """Wait for the last event ID reported once history is dispatched."""
        try:
            return self._response_last_event_id.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("history not dispatched in time") from None

    def disconnect(self) -> None:
        """Disconnect the subscriber; calling it again does nothing."""
        if self._disconnected:
            return
        with self._out_cond:
            self._disconnected = True
            self._closed = True
            self._out_cond.notify_all()

    def set_topics(
        self, subscribed_topics: Iterable[str], allowed_private_topics: Iterable[str] | None = None
    ) -> None:
        """Set the topic selectors and compile those that are URI templates."""
        self.subscribed_topics = list(subscribed_topics)
        self.subscribed_topic_regexps = _compile(self.subscribed_topics)
        if allowed_private_topics is None:
            self.allowed_private_topics = None
            self.allowed_private_regexps = []
        else:
            self.allowed_private_topics = list(allowed_private_topics)
            self.allowed_private_regexps = _compile(self.allowed_private_topics)
        self.escaped_topics = escape_topics(self.subscribed_topics)

    def match_topics(self, topics: Iterable[str], private: bool) -> bool:
        """Tell whether the subscriber may receive an update on these topics."""
        subscribed = False
        can_access = not private
        subscribed_topics = self.subscribed_topics or []
        allowed_topics = self.allowed_private_topics or []

        for topic in topics:
            if not subscribed:
                subscribed = _selects(topic, subscribed_topics, self.subscribed_topic_regexps)
            if not can_access:
                can_access = _selects(topic, allowed_topics, self.allowed_private_regexps)
            if subscribed and can_access:
                return True
        return False

    def match(self, update: Update) -> bool:
        """Tell whether the subscriber may receive the update."""
        return self.match_topics(update.topics, update.private)

    def get_subscriptions(self, topic: str, context: str, active: bool) -> list[Subscription]:
        """Return the subscriptions of this subscriber, optionally for one topic."""
        subscriptions: list[Subscription] = []
        for subscribed, escaped in zip(self.subscribed_topics or [], self.escaped_topics):
            if topic and not self.match_topics([topic], False):
                continue
            subscriptions.append(
                Subscription(
                    id=f"{DEFAULT_HUB_URL}/subscriptions/{escaped}/{self.escaped_id}",
                    subscriber=self.id,
                    topic=subscribed,
                    active=active,
                    context=context,
                    payload=self.payload,
                )
            )
        return subscriptions

    def to_log_dict(self) -> dict[str, Any]:
        """Return the fields worth logging."""
        fields: dict[str, Any] = {
            "id": self.id,
            "last_event_id": self.request_last_event_id,
        }
        if self.remote_addr:
            fields["remote_addr"] = self.remote_addr
        if self.allowed_private_topics is not None:
            fields["topic_selectors"] = list(self.allowed_private_topics)
        if self.subscribed_topics is not None:
            fields["topics"] = list(self.subscribed_topics)
        return fields

    def _handle_full_buffer(self) -> None:
        # Called with the output lock held.
        self._disconnected = True
        self._logger.error(
            "subscriber unable to receive updates fast enough",
            extra={"subscriber": self.to_log_dict()},
        )