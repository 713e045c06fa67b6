"""
Event system for animation layers

Animation layers publish load progress and frame change events; a shared
controller publishes playback commands that keep several layers in sync.
"""

# Event type, base class, and sources
from models.events.types import EventType, CONTROLLER_COMMANDS
from models.events.base import Event
from models.events.sources import EventSource

# Animation layer notifications
from models.events.animation_events import AnimationEvent, FrameEventInfo

# Controller commands
from models.events.controller_events import (
    PeriodChangedEvent,
    TimeChangedEvent,
    FrameRateChangedEvent,
    ControllerCommandEvent,
)

__all__ = [
    # Type, base, and sources
    "EventType",
    "CONTROLLER_COMMANDS",
    "Event",
    "EventSource",

    # Animation layer
    "AnimationEvent",
    "FrameEventInfo",

    # Controller
    "PeriodChangedEvent",
    "TimeChangedEvent",
    "FrameRateChangedEvent",
    "ControllerCommandEvent",
]
