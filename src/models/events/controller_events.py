from dataclasses import dataclass
from typing import Optional

from models.events.base import Event
from models.events.types import EventType, CONTROLLER_COMMANDS
from models.events.sources import EventSource
from utils.time_utils import TimeValue


@dataclass(init=False)
class PeriodChangedEvent(Event):
    """Load frames for a new period (begin/end as datetime or epoch ms)"""
    begin: Optional[TimeValue]
    end: Optional[TimeValue]
    resolution: Optional[int]

    def __init__(self, begin: Optional[TimeValue], end: Optional[TimeValue], resolution: Optional[int]):
        super().__init__(type=EventType.PERIOD_CHANGED, source=EventSource.CONTROLLER)
        self.begin = begin
        self.end = end
        self.resolution = resolution


@dataclass(init=False)
class TimeChangedEvent(Event):
    """Show the frame of the given time"""
    time: TimeValue

    def __init__(self, time: TimeValue):
        super().__init__(type=EventType.TIME_CHANGED, source=EventSource.CONTROLLER)
        self.time = time


@dataclass(init=False)
class FrameRateChangedEvent(Event):
    """New frame rate in milliseconds (0 = as fast as possible)"""
    value: int

    def __init__(self, value: int):
        super().__init__(type=EventType.FRAME_RATE_CHANGED, source=EventSource.CONTROLLER)
        self.value = value


@dataclass(init=False)
class ControllerCommandEvent(Event):
    """Payload-less controller command: RELOAD, START, PAUSE, STOP, PREVIOUS, NEXT"""

    def __init__(self, type: EventType):
        if type not in CONTROLLER_COMMANDS:
            raise ValueError(f"Not a controller command: {type.name}")
        super().__init__(type=type, source=EventSource.CONTROLLER)
