from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers for application events"""
    ANIMATION_LAYER = auto()    # Load progress / frame change notifications
    CONTROLLER = auto()         # Shared playback controller
    APPLICATION = auto()        # Generic application events
