"""Updates published to a hub and dispatched to subscribers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Update:
    """An update to send to subscribers, carrying one server-sent event.

    The first topic is the canonical IRI, the next ones are alternates.
    Private updates only reach subscribers allowed to receive them.
    """

    topics: list[str] = field(default_factory=list)
    private: bool = False
    debug: bool = False
    id: str = ""
    data: str = ""
    type: str = ""
    retry: int = 0

    def __post_init__(self) -> None:
        if self.retry < 0:
            raise ValueError("retry must be a non-negative integer")

    def to_log_dict(self) -> dict[str, Any]:
        """Return the fields worth logging; the data only in debug mode."""
        fields: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "retry": self.retry,
            "topics": list(self.topics),
            "private": self.private,
        }
        if self.debug:
            fields["data"] = self.data
        return fields


def assign_uuid(update: Update) -> None:
    """Give the update a fresh URN UUID unless it already has an ID."""
    if not update.id:
        update.id = f"urn:uuid:{uuid.uuid4()}"