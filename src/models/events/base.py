from __future__ import annotations

import time
from dataclasses import dataclass, field, fields
from typing import Any, Dict

from models.events.types import EventType
from models.events.sources import EventSource

_ENVELOPE = ("type", "source", "timestamp")


@dataclass(init=False)
class Event:
    """
    Common envelope of bus events: what happened, who sent it and when
    (wall clock, seconds). Subclasses add their payload as dataclass fields.
    """

    type: EventType
    source: EventSource | None
    timestamp: float = field(default=0.0, compare=False)

    def __init__(self, *, type: EventType, source: EventSource | None):
        self.type = type
        self.source = source
        self.timestamp = time.time()

    def payload(self) -> Dict[str, Any]:
        """Subclass fields only, e.g. for logging an event."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in _ENVELOPE}
