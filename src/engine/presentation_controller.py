"""
PresentationController - which frame is shown, and how it fades.

The fade stack lists the frames taking part in the current cross-fade,
oldest first; the last entry is the current frame. Its length never exceeds
max(1, len(fade_out_opacities)).

Fade-out opacities are configured most-recently-replaced first and stored
reversed, so stored[i] is the target of stack entry i. stored[0] is the
settled value a frame reaches just before it leaves the stack.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Optional, Sequence

from engine.frame import Frame
from engine.frame_scheduler import FrameScheduler
from models.frame_config import FadeSettings
from models.observer import AnimationObserver
from models.transition import Easing, resolve_easing
from services.transition_service import TransitionService
from utils.logger import get_logger, LogCategory
from utils.time_utils import TimeValue, to_epoch_ms

if TYPE_CHECKING:
    from engine.animation_driver import AnimationDriver

log = get_logger().for_category(LogCategory.PRESENTATION)

DEFAULT_FADE_OUT_MS = 200
DEFAULT_FADE_IN_MS = 50
DEFAULT_FADE_EASING = Easing.EASE_OUT


def _valid_fade_time(value) -> bool:
    return (
        not isinstance(value, bool)
        and isinstance(value, (int, float))
        and math.isfinite(value)
        and value >= 0
    )


class PresentationController:
    """
    Fade stack, frame navigation and layer-wide visibility / opacity.

    Frames are shown only once loaded and, while loading is incomplete, only
    at indices aligned to the coarsest group not yet complete.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        transitions: TransitionService,
        observer: Optional[AnimationObserver] = None,
    ):
        self.scheduler = scheduler
        self.transitions = transitions
        self.observer = observer or scheduler.observer
        self.driver: Optional["AnimationDriver"] = None

        self.fade_in = FadeSettings()
        self.fade_out = FadeSettings()
        self._fade_out_opacities: Optional[List[float]] = None
        self._opacity = 1.0
        self._stack: List[Frame] = []

    def attach_driver(self, driver: "AnimationDriver") -> None:
        self.driver = driver

    # ------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------

    def set_fade_settings(self, fade_in: Optional[FadeSettings] = None, fade_out: Optional[FadeSettings] = None) -> None:
        if fade_in is not None:
            self.fade_in = fade_in
        if fade_out is not None:
            self.fade_out = fade_out
            if fade_out.opacities is not None:
                self.set_fade_out_opacities(fade_out.opacities)

    def set_fade_out_opacities(self, opacities: Optional[Sequence[float]]) -> bool:
        """
        Opacity steps for frames leaving the current position, most recently
        replaced first. Empty or None clears the steps. Any value outside
        [0, 1] rejects the whole list.
        """
        if not opacities:
            self._fade_out_opacities = None
            self._trim_stack()
            return True

        for value in opacities:
            if isinstance(value, bool) or not isinstance(value, (int, float)) \
                    or math.isnan(value) or value < 0 or value > 1:
                log.warn("Rejected fade-out opacities", opacities=list(opacities))
                return False

        self._fade_out_opacities = [float(v) for v in reversed(opacities)]
        self._trim_stack()
        return True

    @property
    def fade_out_opacities(self) -> Optional[List[float]]:
        """Configured steps in the order they were given."""
        if self._fade_out_opacities is None:
            return None
        return list(reversed(self._fade_out_opacities))

    @property
    def max_stack_size(self) -> int:
        return len(self._fade_out_opacities) if self._fade_out_opacities else 1

    def _trim_stack(self) -> None:
        excess = len(self._stack) - self.max_stack_size
        if excess > 0:
            for frame in self._stack[:excess]:
                self._fade_out(frame, 0)
            del self._stack[:excess]

    # ------------------------------------------------------------
    # Fade stack
    # ------------------------------------------------------------

    @property
    def fade_stack(self) -> List[Frame]:
        return list(self._stack)

    @property
    def current_frame(self) -> Optional[Frame]:
        return self._stack[-1] if self._stack else None

    @property
    def current_index(self) -> int:
        return self.scheduler.index_of(self.current_frame)

    def clear_fade_stack(self) -> None:
        self._stack.clear()

    def reset(self) -> None:
        """Stop playback and forget every frame (used before frames are released)."""
        if self.driver is not None:
            self.driver.pause()
        for frame in self.scheduler.frames:
            self.transitions.cancel(frame)
        self._stack.clear()

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------

    def _fade(self, frame: Frame, opacity: float, settings: FadeSettings, default_ms: float) -> None:
        duration = settings.time_ms if _valid_fade_time(settings.time_ms) else default_ms
        easing = resolve_easing(settings.easing) or DEFAULT_FADE_EASING
        self.transitions.animate(frame, opacity, easing, duration)

    def _fade_in(self, frame: Frame, opacity: float) -> None:
        self._fade(frame, opacity, self.fade_in, DEFAULT_FADE_IN_MS)

    def _fade_out(self, frame: Frame, opacity: float) -> None:
        self._fade(frame, opacity, self.fade_out, DEFAULT_FADE_OUT_MS)

    def fade_out_all(self) -> None:
        """Fade every stack member out; the next animation starts from frame zero."""
        frames, self._stack = self._stack, []
        for frame in frames:
            self._fade_out(frame, 0)

    # ------------------------------------------------------------
    # Showing frames
    # ------------------------------------------------------------

    def allow_show_layer(self, index: int) -> bool:
        frame = self.scheduler.frame_at(index)
        if frame is None:
            return False
        group_step = self.scheduler.group_load_step
        if group_step and index % (group_step * 2) != 0:
            return False
        return frame.is_loaded()

    def show_layer(self, frame: Optional[Frame], force: bool = False) -> bool:
        """
        Make frame the current frame and cross-fade to it.

        force re-shows a frame that is not allowed by the load state (e.g. the
        reloaded current frame); the frame-changed callback fires only when
        the current frame actually changes.
        """
        if frame is None:
            return False
        next_index = self.scheduler.index_of(frame)
        if not (force or self.allow_show_layer(next_index)):
            return False

        current = self.current_frame
        is_new = frame is not current

        if is_new:
            current_index = self.current_index
            if frame in self._stack:
                self._stack.remove(frame)

            prev_index = self.scheduler.index_of(self._stack[-2]) if len(self._stack) > 1 else -1
            # Trajectory breaks its monotonic direction: animation is looping
            looping = prev_index != -1 and not (
                prev_index < current_index < next_index
                or prev_index > current_index > next_index
            )

            stack_size = len(self._stack)
            remove_count = stack_size if looping else stack_size - self.max_stack_size + 1
            remove_count = max(0, remove_count)

            for i, leaving in enumerate(self._stack):
                self._fade_out(leaving, self._fade_out_target(i, looping))
            del self._stack[:remove_count]

            self._stack.append(frame)

        self._fade_in(frame, self._opacity)

        if is_new:
            log.debug("Frame changed", time=frame.config.time, index=next_index, stack=len(self._stack))
            self.observer.notify("on_frame_changed", frame)
        return True

    def _fade_out_target(self, position: int, looping: bool) -> float:
        opacities = self._fade_out_opacities
        if not opacities:
            return 0.0
        if looping:
            return opacities[0]

        index = position
        # Stack still filling up: earlier rounds used the first steps
        if len(opacities) > len(self._stack):
            index += len(opacities) - len(self._stack)
        index = min(index, len(opacities) - 1)
        return self._opacity * opacities[index]

    def show_frame(self, time: TimeValue) -> bool:
        """
        Show the frame at exactly `time`.

        Times at least one resolution step outside the animation period, or
        beyond the period while the current frame sits at the opposite end
        (another synchronized animation has looped), fade everything out.
        """
        time_ms = to_epoch_ms(time)
        if time_ms is None:
            return False

        frames = self.scheduler.frames
        if not frames:
            return False

        last = len(frames) - 1
        current_index = self.current_index
        resolution = self.scheduler.resolution_ms or 0
        first_ms = frames[0].time_ms
        last_ms = frames[last].time_ms

        if (
            time_ms <= first_ms - resolution
            or time_ms >= last_ms + resolution
            or (current_index == 0 and time_ms > last_ms)
            or (current_index == last and time_ms < first_ms)
        ):
            self.fade_out_all()
            return False

        for frame in frames:
            if frame.time_ms == time_ms:
                return self.show_layer(frame)
        return False

    def _step(self) -> int:
        group_step = self.scheduler.group_load_step
        return group_step * 2 if group_step else 1

    def show_next_frame(self) -> bool:
        count = self.scheduler.frame_count
        step = self._step()
        if count == 0 or not (step < count or step == 1):
            return False

        index = self.current_index
        if index < 0 or index + step >= count:
            index = 0
        else:
            # Realign when the stride changed while the animation was running
            index += step - index % step
        return self.show_layer(self.scheduler.frame_at(index))

    def show_previous_frame(self) -> bool:
        count = self.scheduler.frame_count
        step = self._step()
        if count == 0 or not (step < count or step == 1):
            return False

        index = self.current_index - step if self.current_index >= 0 else -1
        if index < 0:
            index = ((count - 1) // step) * step
        elif index % step:
            index -= index % step
        return self.show_layer(self.scheduler.frame_at(index))

    # ------------------------------------------------------------
    # Layer-wide visibility / opacity
    # ------------------------------------------------------------

    def set_visibility(self, visible: bool) -> bool:
        if not isinstance(visible, bool):
            return False
        if visible == self.scheduler.visible:
            return True

        self.scheduler.visible = visible
        if visible:
            log.info("Animation shown, loading restarts")
            self.scheduler.load_all()
            return True

        if self.driver is not None:
            self.driver.pause()
        for frame in self.scheduler.frames:
            self.transitions.cancel(frame)
        self._stack.clear()
        self.scheduler.hide_all()
        log.info("Animation hidden")
        return True

    @property
    def visible(self) -> bool:
        return self.scheduler.visible

    def set_opacity(self, opacity: float) -> bool:
        """Layer-wide opacity; only frames currently visible (opacity > 0) are updated."""
        if isinstance(opacity, bool) or not isinstance(opacity, (int, float)) \
                or math.isnan(opacity) or not 0 <= opacity <= 1:
            log.warn("Rejected animation opacity", opacity=opacity)
            return False
        if opacity == self._opacity:
            return True

        self._opacity = float(opacity)
        for frame in self.scheduler.frames:
            current = frame.get_opacity()
            if current is not None and current > 0:
                frame.set_opacity(self._opacity)
        return True

    @property
    def opacity(self) -> float:
        return self._opacity

    def __repr__(self) -> str:
        return f"<PresentationController current={self.current_index} stack={len(self._stack)}>"
