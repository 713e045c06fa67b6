from enum import Enum, auto


class EventType(Enum):
    # Animation layer → listeners (load progress, presentation)
    ANIMATION_LOAD_STARTED = auto()
    FRAME_LOAD_STARTED = auto()
    FRAME_LOAD_COMPLETE = auto()
    ANIMATION_LOAD_GROUP_PROGRESS = auto()
    ANIMATION_LOAD_COMPLETE = auto()
    ANIMATION_FRAME_CONTENT_RELEASED = auto()
    FRAME_CHANGED = auto()

    # Controller → animation layers (shared playback control)
    PERIOD_CHANGED = auto()
    RELOAD = auto()
    TIME_CHANGED = auto()
    START = auto()
    PAUSE = auto()
    STOP = auto()
    PREVIOUS = auto()
    NEXT = auto()
    FRAME_RATE_CHANGED = auto()


# Controller commands without payload
CONTROLLER_COMMANDS = (
    EventType.RELOAD,
    EventType.START,
    EventType.PAUSE,
    EventType.STOP,
    EventType.PREVIOUS,
    EventType.NEXT,
)
