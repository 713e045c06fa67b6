"""
AnimationLayer - time-ordered tile frame animation.

Composes the animation components around one render loop:

    RenderLoop ──ticks──> TransitionService, AnimationDriver
    FrameScheduler <──> PresentationController <── AnimationDriver

Progress and frame changes go to an optional AnimationObserver and, as
AnimationEvents, to an optional EventBus. Layers registered on a shared
controller bus follow its period, time and playback commands, which keeps
several layers in sync.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from engine.animation_driver import AnimationDriver
from engine.frame import Frame
from engine.frame_scheduler import FrameScheduler
from engine.presentation_controller import PresentationController
from engine.render_loop import RenderLoop
from lifecycle.task_registry import TaskCategory, create_tracked_task
from models.events import (
    AnimationEvent,
    ControllerCommandEvent,
    EventType,
    FrameEventInfo,
    FrameRateChangedEvent,
    PeriodChangedEvent,
    TimeChangedEvent,
)
from models.frame_config import AnimationSettings, FrameConfig
from models.observer import AnimationObserver
from rendering.renderer_interface import ITileRenderer
from services.event_bus import EventBus
from services.transition_service import TransitionService
from utils.logger import get_logger, LogCategory
from utils.time_utils import TimeValue

log = get_logger().for_category(LogCategory.ANIMATION)


def frame_info(frame: Frame) -> FrameEventInfo:
    return FrameEventInfo(time=frame.timestamp, error=frame.error)


class AnimationLayer:
    """
    Facade of one animated tile layer.

    Example:
        layer = AnimationLayer(FrameConfig.wms(url, "radar"), settings, renderer=VirtualRenderer())
        await layer.start()                 # render loop
        layer.set_window(begin, end, 5 * 60 * 1000)
        layer.load_animation()
        layer.start_animation()
    """

    def __init__(
        self,
        base_config: Optional[FrameConfig] = None,
        settings: Optional[AnimationSettings] = None,
        renderer: Optional[ITileRenderer] = None,
        observer: Optional[AnimationObserver] = None,
        event_bus: Optional[EventBus] = None,
        render_loop: Optional[RenderLoop] = None,
        name: Optional[str] = None,
    ):
        self.name = name or (base_config.name if base_config else None) or "animation"
        self.render_loop = render_loop or RenderLoop()
        self.transitions = TransitionService(self.render_loop)

        self.user_observer = observer or AnimationObserver()
        self.event_bus = event_bus
        self.observer = AnimationObserver(
            on_load_started=self._on_load_started,
            on_frame_load_started=self._on_frame_load_started,
            on_frame_load_complete=self._on_frame_load_complete,
            on_group_progress=self._on_group_progress,
            on_animation_complete=self._on_animation_complete,
            on_frame_content_released=self._on_frame_content_released,
            on_frame_changed=self._on_frame_changed,
        )

        self.scheduler = FrameScheduler(renderer, self.observer)
        self.presentation = PresentationController(self.scheduler, self.transitions, self.observer)
        self.driver = AnimationDriver(self.presentation, self.render_loop)
        self.scheduler.attach(self.presentation, self.driver)
        self.presentation.attach_driver(self.driver)

        self._controllers: List[EventBus] = []

        if base_config is not None:
            self.set_config(base_config, settings)

    # ------------------------------------------------------------
    # Configuration and render target
    # ------------------------------------------------------------

    def set_config(self, base_config: FrameConfig, settings: Optional[AnimationSettings] = None) -> None:
        """Apply base config and animation settings; loads when auto_load and a renderer is bound."""
        settings = settings or AnimationSettings()
        self.scheduler.set_config(base_config, settings)
        self.scheduler.set_window(settings.begin_time, settings.end_time, settings.resolution_time)
        self.scheduler.set_max_async_load_count(settings.max_async_load_count)
        if settings.frame_rate is not None:
            self.driver.set_frame_rate(settings.frame_rate)
        self.presentation.set_fade_settings(settings.fade_in, settings.fade_out)

        log.info("Animation config set", layer=base_config.layer, name=self.name)
        if settings.auto_load and self.scheduler.renderer is not None:
            self.load_animation()

    @property
    def settings(self) -> AnimationSettings:
        return self.scheduler.settings

    def set_renderer(self, renderer: Optional[ITileRenderer]) -> None:
        """Bind (or unbind with None) the render target."""
        if renderer is self.scheduler.renderer:
            return
        self.reset()
        self.scheduler.set_renderer(renderer)
        if renderer is not None and self.settings.auto_load:
            self.load_animation()

    @property
    def renderer(self) -> Optional[ITileRenderer]:
        return self.scheduler.renderer

    # ------------------------------------------------------------
    # Window and loading
    # ------------------------------------------------------------

    def set_window(self, begin: Optional[TimeValue] = None, end: Optional[TimeValue] = None,
                   resolution: Optional[float] = None) -> bool:
        return self.scheduler.set_window(begin, end, resolution)

    def set_begin_time(self, value: Optional[TimeValue]) -> bool:
        return self.scheduler.set_begin_time(value)

    def set_end_time(self, value: Optional[TimeValue]) -> bool:
        return self.scheduler.set_end_time(value)

    def set_resolution_time(self, value: Optional[float]) -> bool:
        return self.scheduler.set_resolution_time(value)

    def set_max_async_load_count(self, count: Optional[int]) -> bool:
        return self.scheduler.set_max_async_load_count(count)

    set_max_concurrent_loads = set_max_async_load_count

    def load_animation(self) -> bool:
        return self.scheduler.load_animation()

    def reset(self) -> None:
        self.scheduler.reset()

    def viewport_changed(self) -> None:
        """Call after the render target moved (pan / zoom)."""
        self.scheduler.viewport_changed()

    # ------------------------------------------------------------
    # Playback and navigation
    # ------------------------------------------------------------

    def start_animation(self) -> None:
        self.driver.start()

    def pause_animation(self) -> None:
        self.driver.pause()

    def stop_animation(self) -> None:
        self.driver.stop()

    def is_running(self) -> bool:
        return self.driver.is_running()

    def set_frame_rate(self, frame_rate_ms: Optional[float]) -> bool:
        return self.driver.set_frame_rate(frame_rate_ms)

    def show_frame(self, time: TimeValue) -> bool:
        return self.presentation.show_frame(time)

    def show_next_frame(self) -> bool:
        return self.presentation.show_next_frame()

    def show_previous_frame(self) -> bool:
        return self.presentation.show_previous_frame()

    # ------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------

    def set_fade_out_opacities(self, opacities: Optional[Sequence[float]]) -> bool:
        return self.presentation.set_fade_out_opacities(opacities)

    def set_visibility(self, visible: bool) -> bool:
        return self.presentation.set_visibility(visible)

    def set_opacity(self, opacity: float) -> bool:
        return self.presentation.set_opacity(opacity)

    def set_z_index(self, index: int) -> None:
        self.scheduler.set_z_index(index)

    @property
    def frames(self) -> List[Frame]:
        return self.scheduler.frames

    @property
    def current_frame(self) -> Optional[Frame]:
        return self.presentation.current_frame

    @property
    def current_index(self) -> int:
        return self.presentation.current_index

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------

    async def start(self) -> None:
        """Start the render loop that drives transitions and playback."""
        await self.render_loop.start()

    async def stop(self) -> None:
        await self.render_loop.stop()

    async def close(self) -> None:
        """Release every frame, leave controller buses and stop the render loop."""
        for bus in list(self._controllers):
            self.unregister_controller(bus)
        self.reset()
        self.transitions.cancel_all()
        await self.render_loop.stop()
        log.info("Animation layer closed", name=self.name)

    # ------------------------------------------------------------
    # Output events
    # ------------------------------------------------------------

    def _emit(self, event_type: EventType, callback: str, frames: List[Frame], *args) -> None:
        self.user_observer.notify(callback, *args)
        if self.event_bus is None:
            return

        event = AnimationEvent(event_type, self, [frame_info(f) for f in frames])
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            log.warn("No running event loop, animation event not published", event_type=event_type.name)
            return
        create_tracked_task(
            self.event_bus.publish(event),
            category=TaskCategory.EVENTBUS,
            description=f"Publish {event_type.name} ({self.name})",
        )

    def _on_load_started(self) -> None:
        self._emit(EventType.ANIMATION_LOAD_STARTED, "on_load_started", [])

    def _on_frame_load_started(self, frame: Frame) -> None:
        self._emit(EventType.FRAME_LOAD_STARTED, "on_frame_load_started", [frame], frame)

    def _on_frame_load_complete(self, frame: Frame) -> None:
        self._emit(EventType.FRAME_LOAD_COMPLETE, "on_frame_load_complete", [frame], frame)

    def _on_group_progress(self, frames: List[Frame]) -> None:
        self._emit(EventType.ANIMATION_LOAD_GROUP_PROGRESS, "on_group_progress", frames, frames)

    def _on_animation_complete(self, frames: List[Frame]) -> None:
        self._emit(EventType.ANIMATION_LOAD_COMPLETE, "on_animation_complete", frames, frames)

    def _on_frame_content_released(self, frame: Frame) -> None:
        self._emit(EventType.ANIMATION_FRAME_CONTENT_RELEASED, "on_frame_content_released", [frame], frame)

    def _on_frame_changed(self, frame: Frame) -> None:
        self._emit(EventType.FRAME_CHANGED, "on_frame_changed", [frame], frame)

    # ------------------------------------------------------------
    # Controller input
    # ------------------------------------------------------------

    def _controller_handlers(self) -> Dict[EventType, Any]:
        return {
            EventType.PERIOD_CHANGED: self._on_period_changed,
            EventType.RELOAD: self._on_reload,
            EventType.TIME_CHANGED: self._on_time_changed,
            EventType.START: self._on_start,
            EventType.PAUSE: self._on_pause,
            EventType.STOP: self._on_stop,
            EventType.PREVIOUS: self._on_previous,
            EventType.NEXT: self._on_next,
            EventType.FRAME_RATE_CHANGED: self._on_frame_rate_changed,
        }

    def register_controller(self, bus: EventBus) -> None:
        """Follow the commands published on a shared controller bus."""
        if bus in self._controllers:
            return
        for event_type, handler in self._controller_handlers().items():
            bus.subscribe(event_type, handler)
        self._controllers.append(bus)
        log.debug("Controller registered", name=self.name)

    def unregister_controller(self, bus: EventBus) -> None:
        if bus not in self._controllers:
            return
        for event_type, handler in self._controller_handlers().items():
            bus.unsubscribe(event_type, handler)
        self._controllers.remove(bus)
        log.debug("Controller unregistered", name=self.name)

    def _on_period_changed(self, event: PeriodChangedEvent) -> None:
        if self.set_window(event.begin, event.end, event.resolution) and self.renderer is not None:
            self.load_animation()

    def _on_reload(self, event: ControllerCommandEvent) -> None:
        self.load_animation()

    def _on_time_changed(self, event: TimeChangedEvent) -> None:
        self.show_frame(event.time)

    def _on_start(self, event: ControllerCommandEvent) -> None:
        self.start_animation()

    def _on_pause(self, event: ControllerCommandEvent) -> None:
        self.pause_animation()

    def _on_stop(self, event: ControllerCommandEvent) -> None:
        self.stop_animation()

    def _on_previous(self, event: ControllerCommandEvent) -> None:
        self.show_previous_frame()

    def _on_next(self, event: ControllerCommandEvent) -> None:
        self.show_next_frame()

    def _on_frame_rate_changed(self, event: FrameRateChangedEvent) -> None:
        self.set_frame_rate(event.value)

    def __repr__(self) -> str:
        return (
            f"<AnimationLayer {self.name} frames={self.scheduler.frame_count} "
            f"current={self.current_index} running={self.is_running()}>"
        )
