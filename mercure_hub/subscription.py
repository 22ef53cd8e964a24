"""JSON-LD representations of subscriptions exposed by the hub."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

JSONLD_CONTEXT = "https://mercure.rocks/"
DEFAULT_HUB_URL = "/.well-known/mercure"
SUBSCRIPTION_URL = DEFAULT_HUB_URL + "/subscriptions/{topic}/{subscriber}"
SUBSCRIPTIONS_FOR_TOPIC_URL = DEFAULT_HUB_URL + "/subscriptions/{topic}"
SUBSCRIPTIONS_URL = DEFAULT_HUB_URL + "/subscriptions"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _dumps(document: Any) -> str:
    """Serialize to indented JSON, escaping HTML-sensitive characters."""
    text = json.dumps(document, indent=2, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


@dataclass
class Subscription:
    """A single subscription of a subscriber to a topic selector."""

    id: str
    subscriber: str
    topic: str
    active: bool
    context: str = ""
    type: str = "Subscription"
    last_event_id: str = ""
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-LD document, leaving out empty optional members."""
        document: dict[str, Any] = {}
        if self.context:
            document["@context"] = self.context
        document["id"] = self.id
        document["type"] = self.type
        document["subscriber"] = self.subscriber
        document["topic"] = self.topic
        document["active"] = self.active
        if self.last_event_id:
            document["lastEventID"] = self.last_event_id
        if self.payload is not None:
            document["payload"] = self.payload
        return document

    def to_json(self) -> str:
        """Return the document as indented JSON."""
        return _dumps(self.to_dict())


@dataclass
class SubscriptionCollection:
    """The list of active subscriptions at a given event ID."""

    id: str
    last_event_id: str = ""
    subscriptions: list[Subscription] = field(default_factory=list)
    context: str = JSONLD_CONTEXT
    type: str = "Subscriptions"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-LD document."""
        return {
            "@context": self.context,
            "id": self.id,
            "type": self.type,
            "lastEventID": self.last_event_id,
            "subscriptions": [s.to_dict() for s in self.subscriptions],
        }

    def to_json(self) -> str:
        """Return the document as indented JSON."""
        return _dumps(self.to_dict())