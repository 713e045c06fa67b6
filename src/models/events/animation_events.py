from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource


@dataclass(frozen=True)
class FrameEventInfo:
    """Snapshot of one frame included in an animation event"""
    time: Optional[datetime]
    error: Optional[Any] = None


@dataclass(init=False)
class AnimationEvent(Event):
    """
    Load progress or frame change notification of an animation layer.

    layer: the AnimationLayer that emitted the event
    events: one FrameEventInfo per frame concerned (may be empty)
    """
    layer: Any
    events: List[FrameEventInfo]

    def __init__(self, type: EventType, layer: Any, events: List[FrameEventInfo]):
        super().__init__(type=type, source=EventSource.ANIMATION_LAYER)
        self.layer = layer
        self.events = events
