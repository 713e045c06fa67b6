"""Services layer"""

from .transition_service import TransitionService
from .event_bus import EventBus

__all__ = [
    "TransitionService",
    "EventBus",
]
