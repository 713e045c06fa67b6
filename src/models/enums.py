"""
Enums for the frame animation state machine
"""

from enum import Enum, auto


class FrameState(Enum):
    """
    Load state of a single animation frame

    UNLOADED → PRE_LOADING → LOADING → READY, or back to UNLOADED on release.
    READY does not imply success, see Frame.error.
    """
    UNLOADED = auto()      # Never loaded or released
    PRE_LOADING = auto()   # Load requested, renderer has not started yet
    LOADING = auto()       # Renderer reported load start
    READY = auto()         # Renderer reported load end (with or without error)


class SourceType(Enum):
    """Tile service flavour of a frame source"""
    WMS = auto()
    WMTS = auto()


class RendererType(Enum):
    """Available render targets"""
    VIRTUAL = auto()
    HTTP = auto()


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()        # Configuration loading, validation
    SCHEDULER = auto()     # Frame creation and progressive loading
    PRESENTATION = auto()  # Fade stack, current frame, navigation
    TRANSITION = auto()    # Opacity transitions
    RENDER = auto()        # Render loop and render targets
    ANIMATION = auto()     # Run loop start/pause/stop
    EVENT = auto()         # Event bus events and handling
    SYSTEM = auto()        # Startup, shutdown, errors
    TASK = auto()          # Background task tracking

    GENERAL = auto()       # Default general category
