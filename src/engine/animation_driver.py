"""
AnimationDriver - advances the animation on render loop ticks.
"""

from __future__ import annotations

import math
from typing import Optional

from engine.presentation_controller import PresentationController
from engine.render_loop import RenderLoop
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.ANIMATION)

DEFAULT_FRAME_RATE_MS = 500


class AnimationDriver:
    """
    Calls show_next_frame() at most once per frame-rate interval.

    The render loop ticks at its own (jittery) pace; a frame is advanced on
    the first tick strictly later than last_advance + frame_rate.
    start() does not advance immediately.
    """

    def __init__(
        self,
        presentation: PresentationController,
        render_loop: RenderLoop,
        frame_rate_ms: float = DEFAULT_FRAME_RATE_MS,
    ):
        self.presentation = presentation
        self.render_loop = render_loop
        self.frame_rate_ms = frame_rate_ms
        self._last_advance_ms: Optional[float] = None
        self.advances = 0

    def is_running(self) -> bool:
        return self._last_advance_ms is not None

    def start(self) -> None:
        if self.is_running():
            return
        self._last_advance_ms = self.render_loop.now()
        self.render_loop.add_tick_handler(self._on_tick)
        log.info("Animation started", frame_rate_ms=self.frame_rate_ms)

    def pause(self) -> None:
        """Stop advancing; the fade stack stays as it is."""
        if not self.is_running():
            return
        self._last_advance_ms = None
        self.render_loop.remove_tick_handler(self._on_tick)
        log.info("Animation paused")

    def stop(self) -> None:
        """Pause and fade out every shown frame; a restart begins from frame zero."""
        self.pause()
        self.presentation.fade_out_all()

    def set_frame_rate(self, frame_rate_ms: Optional[float]) -> bool:
        """Milliseconds between frames. Negative becomes 0; None and NaN are ignored."""
        if frame_rate_ms is None or isinstance(frame_rate_ms, bool) \
                or not isinstance(frame_rate_ms, (int, float)) or math.isnan(frame_rate_ms):
            log.warn("Rejected frame rate", value=frame_rate_ms)
            return False
        self.frame_rate_ms = max(0, frame_rate_ms)
        return True

    def _on_tick(self, now: float) -> None:
        if self._last_advance_ms is None:
            return
        if self._last_advance_ms + self.frame_rate_ms < now:
            self._last_advance_ms = now
            self.advances += 1
            self.presentation.show_next_frame()

    def __repr__(self) -> str:
        return f"<AnimationDriver running={self.is_running()} frame_rate_ms={self.frame_rate_ms}>"
