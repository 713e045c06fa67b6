"""
FrameScheduler - builds the frames of a time window and loads them progressively.

Loading order ("binary subdivision"):
  load_step starts at the largest power of two <= len(frames) / 2. Each pass
  scans indices 0, step, 2*step, ... and starts every frame still in its
  default state until the concurrency budget runs out; a full pass with
  budget left halves the step. Frames are therefore requested coarse to fine
  and partial progress covers the whole period early.

Group tracking:
  group g = frames at indices ≡ 0 (mod g). group_load_step is the stride of
  the finest group not yet known to be complete. It only decreases, except on
  reset_load_step(). Completions may arrive in any order; every completion
  re-scans the coarser groups so the step reflects the finest complete group.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, List, Optional

from engine.frame import Frame
from models.frame_config import AnimationSettings, FrameConfig, specialize
from models.observer import AnimationObserver
from rendering.renderer_interface import ITileRenderer
from utils.logger import get_logger, LogCategory
from utils.time_utils import TimeValue, to_epoch_ms, to_iso

if TYPE_CHECKING:
    from engine.animation_driver import AnimationDriver
    from engine.presentation_controller import PresentationController

log = get_logger().for_category(LogCategory.SCHEDULER)

DEFAULT_GRID_BUFFER = 1


def initial_load_step(count: int) -> int:
    """Largest power of two <= count / 2, at least 1."""
    step = 1
    while step * 4 <= count:
        step *= 2
    return step


class FrameScheduler:
    """
    Owner of the frame sequence of one animation layer.

    Responsibilities:
    - Time window (begin, end, resolution) with validating setters
    - Frame construction with per-frame specialized configs
    - Concurrency-bounded, coarse-to-fine load scheduling
    - Group completion accounting and progress notifications
    - Reset / release of all frames at any time
    """

    def __init__(
        self,
        renderer: Optional[ITileRenderer] = None,
        observer: Optional[AnimationObserver] = None,
        grid_buffer: int = DEFAULT_GRID_BUFFER,
    ):
        self.renderer = renderer
        self.observer = observer or AnimationObserver()
        self.grid_buffer = grid_buffer

        self.base_config: Optional[FrameConfig] = None
        self.settings = AnimationSettings()

        self.begin_ms: Optional[int] = None
        self.end_ms: Optional[int] = None
        self.resolution_ms: Optional[int] = None

        self.max_async_load_count = -1
        self.z_index: Optional[int] = None
        self.visible = True

        self._frames: List[Frame] = []
        self._load_step = 1
        self._group_load_step = 1

        self.presentation: Optional["PresentationController"] = None
        self.driver: Optional["AnimationDriver"] = None

    def attach(self, presentation: "PresentationController", driver: Optional["AnimationDriver"] = None) -> None:
        self.presentation = presentation
        self.driver = driver

    # ------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------

    def set_config(self, base_config: Optional[FrameConfig], settings: Optional[AnimationSettings] = None) -> None:
        """Base frame config and animation settings used by the next load_animation()."""
        self.base_config = base_config
        self.settings = settings or AnimationSettings()

    def set_renderer(self, renderer: Optional[ITileRenderer]) -> None:
        self.renderer = renderer

    @staticmethod
    def _parse_time(value: TimeValue) -> Optional[int]:
        return to_epoch_ms(value)

    @staticmethod
    def _parse_resolution(value: Any) -> Optional[int]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value) or value < 1:
            return None
        return int(math.floor(value))

    def set_begin_time(self, value: Optional[TimeValue]) -> bool:
        return self.set_window(begin=value)

    def set_end_time(self, value: Optional[TimeValue]) -> bool:
        return self.set_window(end=value)

    def set_resolution_time(self, value: Optional[float]) -> bool:
        return self.set_window(resolution=value)

    def set_window(
        self,
        begin: Optional[TimeValue] = None,
        end: Optional[TimeValue] = None,
        resolution: Optional[float] = None,
    ) -> bool:
        """
        Update the time window. None parts are left unchanged.

        All supplied parts are validated before any is applied; on invalid
        input nothing changes and False is returned.
        """
        begin_ms = end_ms = resolution_ms = None
        invalid = {}

        if begin is not None:
            begin_ms = self._parse_time(begin)
            if begin_ms is None:
                invalid["begin"] = begin
        if end is not None:
            end_ms = self._parse_time(end)
            if end_ms is None:
                invalid["end"] = end
        if resolution is not None:
            resolution_ms = self._parse_resolution(resolution)
            if resolution_ms is None:
                invalid["resolution"] = resolution

        if invalid:
            log.warn("Rejected animation window", **invalid)
            return False

        if begin_ms is not None:
            self.begin_ms = begin_ms
        if end_ms is not None:
            self.end_ms = end_ms
        if resolution_ms is not None:
            self.resolution_ms = resolution_ms

        log.debug(
            "Animation window set",
            begin=to_iso(self.begin_ms) if self.begin_ms is not None else None,
            end=to_iso(self.end_ms) if self.end_ms is not None else None,
            resolution_ms=self.resolution_ms,
        )
        return True

    def set_max_async_load_count(self, count: Optional[int]) -> bool:
        """Concurrency cap for frame loads; None, 0 or negative means unbounded."""
        if not count:
            self.max_async_load_count = -1
            return True
        if isinstance(count, bool) or not isinstance(count, (int, float)) or not math.isfinite(count):
            log.warn("Rejected max async load count", value=count)
            return False
        self.max_async_load_count = int(count)
        return True

    def set_z_index(self, index: Optional[int]) -> None:
        """Z-index for current and future frames."""
        if index is None or isinstance(index, bool) or not isinstance(index, int):
            return
        self.z_index = index
        for frame in self._frames:
            frame.set_z_index(index)

    # ------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------

    @property
    def frames(self) -> List[Frame]:
        return list(self._frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    def index_of(self, frame: Optional[Frame]) -> int:
        for i, candidate in enumerate(self._frames):
            if candidate is frame:
                return i
        return -1

    def frame_at(self, index: int) -> Optional[Frame]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None

    @property
    def load_step(self) -> int:
        return self._load_step

    @property
    def group_load_step(self) -> int:
        return self._group_load_step

    # ------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------

    def can_load(self) -> bool:
        return (
            self.renderer is not None
            and self.base_config is not None
            and self.begin_ms is not None
            and self.end_ms is not None
            and bool(self.resolution_ms)
            and self.begin_ms <= self.end_ms
        )

    def load_animation(self) -> bool:
        """
        Rebuild the frame sequence for the current window and start loading.

        Returns:
            False (nothing changed) if the window, config or renderer is missing
        """
        if not self.can_load():
            log.warn(
                "Animation not loaded, window or render target incomplete",
                renderer=self.renderer is not None,
                config=self.base_config is not None,
                begin=self.begin_ms,
                end=self.end_ms,
                resolution_ms=self.resolution_ms,
            )
            return False

        self.reset()

        for time_ms in range(self.begin_ms, self.end_ms + 1, self.resolution_ms):
            config = specialize(self.base_config, self.settings, time_ms, self.grid_buffer)
            self._frames.append(Frame(config, self.renderer, listener=self))

        log.info(
            "Animation frames created",
            frames=len(self._frames),
            begin=to_iso(self.begin_ms),
            end=to_iso(self.end_ms),
            resolution_ms=self.resolution_ms,
        )
        self.load_all()
        return True

    def load_all(self) -> None:
        """Restart the load flow from the coarsest step (only while visible)."""
        if not self.visible:
            return
        self.observer.notify("on_load_started")
        self.reset_load_step()
        self.next_load()

    def reset_load_step(self) -> None:
        self._load_step = initial_load_step(len(self._frames))
        self._group_load_step = self._load_step

    def next_load(self) -> None:
        """Start as many frame loads as the concurrency budget allows."""
        if self._load_step <= 0:
            return

        budget = self.max_async_load_count if self.max_async_load_count > 0 else len(self._frames)
        budget -= sum(1 for frame in self._frames if frame.is_loading())

        while budget > 0 and self._load_step > 0:
            for i in range(0, len(self._frames), self._load_step):
                frame = self._frames[i]
                if not frame.is_default_state():
                    continue
                # A hidden frame is made visible again and reloaded here
                if frame.load() and self.z_index is not None:
                    frame.set_z_index(self.z_index)
                budget -= 1
                if budget == 0:
                    break
            if budget > 0:
                self._load_step //= 2

    def _collect_group(self, step: int) -> Optional[List[Frame]]:
        group = []
        for frame in self._frames[::step]:
            if not frame.is_loaded():
                return None
            group.append(frame)
        return group

    def group_load_step_check(self) -> None:
        """Move group_load_step past every coarser group already complete."""
        if self._group_load_step <= 1:
            return
        step = self._group_load_step
        while step and self._collect_group(step) is not None:
            step //= 2
        # step is now the first incomplete group (0 when all are complete)
        if step * 2 < self._group_load_step:
            self._group_load_step = 2 * step or 1

    # ------------------------------------------------------------
    # Frame load signals (FrameListener)
    # ------------------------------------------------------------

    def _current_frame(self) -> Optional[Frame]:
        return self.presentation.current_frame if self.presentation else None

    def on_frame_load_start(self, frame: Frame) -> None:
        # Only the current frame may show partially loaded content
        if self._current_frame() is not frame:
            frame.set_opacity(0)
        log.debug("Frame load started", time=frame.config.time)
        self.observer.notify("on_frame_load_started", frame)

    def on_frame_load_end(self, frame: Frame) -> None:
        if self.index_of(frame) < 0:
            return

        self.group_load_step_check()
        group = self._collect_group(self._group_load_step or 1)

        log.debug("Frame load complete", time=frame.config.time, error=frame.error)
        self.observer.notify("on_frame_load_complete", frame)

        if group is not None:
            self._group_load_step //= 2
            log.info("Frame group loaded", frames=len(group), group_load_step=self._group_load_step)
            self.observer.notify("on_group_progress", group)
            if not self._group_load_step:
                log.info("Animation loaded", frames=len(group))
                self.observer.notify("on_animation_complete", group)

        if self._current_frame() is frame:
            # Reloaded current frame is shown again, e.g. after a viewport change
            self.presentation.show_layer(frame, force=True)

        self.next_load()

        if not self._group_load_step and self.settings.auto_start and self.driver is not None:
            self.driver.start()

    # ------------------------------------------------------------
    # Viewport / reset
    # ------------------------------------------------------------

    def viewport_changed(self) -> None:
        """
        The render target moved: every frame except the current one is hidden
        (content released) and loading restarts from the coarsest step.
        """
        current = self._current_frame()
        for frame in self._frames:
            if frame is not current:
                frame.set_visibility(False)
            self.observer.notify("on_frame_content_released", frame)
        self.load_all()

    def hide_all(self) -> None:
        """Hide every frame without fading; content must be loaded again."""
        for frame in self._frames:
            frame.set_visibility(False)
            self.observer.notify("on_frame_content_released", frame)

    def reset(self) -> None:
        """Stop playback, clear the fade stack and release every frame. Safe at any time."""
        if self.presentation is not None:
            self.presentation.reset()
        frames, self._frames = self._frames, []
        for frame in frames:
            frame.release()
            self.observer.notify("on_frame_content_released", frame)
        self.reset_load_step()
        if frames:
            log.debug("Animation frames released", frames=len(frames))

    def __repr__(self) -> str:
        return (
            f"<FrameScheduler frames={len(self._frames)} load_step={self._load_step} "
            f"group_load_step={self._group_load_step}>"
        )
