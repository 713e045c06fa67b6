"""
Animation observer - optional progress callbacks of an animation layer.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from utils.logger import get_category_logger, LogCategory

log = get_category_logger(LogCategory.ANIMATION)

FrameCallback = Callable[[Any], None]
FramesCallback = Callable[[List[Any]], None]


@dataclass
class AnimationObserver:
    """
    Seven independently optional callbacks.

    Frame arguments are engine Frame objects. A callback that raises is
    logged and skipped; it never interrupts loading or presentation.
    """
    on_load_started: Optional[Callable[[], None]] = None
    on_frame_load_started: Optional[FrameCallback] = None
    on_frame_load_complete: Optional[FrameCallback] = None
    on_group_progress: Optional[FramesCallback] = None
    on_animation_complete: Optional[FramesCallback] = None
    on_frame_content_released: Optional[FrameCallback] = None
    on_frame_changed: Optional[FrameCallback] = None

    def notify(self, name: str, *args) -> None:
        """Invoke callback `name` if it is set."""
        callback = getattr(self, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            log.error(f"Observer callback failed: {name}", error=e, error_type=type(e).__name__)
