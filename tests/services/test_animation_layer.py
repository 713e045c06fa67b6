"""
Tests for the AnimationLayer facade: configuration, observer and event bus
output, controller synchronisation and lifecycle.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from conftest import BEGIN_MS, RESOLUTION_MS, window_end
from models.events import (
    ControllerCommandEvent,
    EventType,
    FrameRateChangedEvent,
    PeriodChangedEvent,
    TimeChangedEvent,
)
from models.frame_config import AnimationSettings, FadeSettings
from models.observer import AnimationObserver
from rendering.virtual_renderer import VirtualRenderer
from services.animation_layer import AnimationLayer
from services.event_bus import EventBus


def immediate_settings(count=5, **overrides):
    values = dict(
        begin_time=BEGIN_MS,
        end_time=window_end(count),
        resolution_time=RESOLUTION_MS,
        fade_in=FadeSettings(time_ms=0),
        fade_out=FadeSettings(time_ms=0),
    )
    values.update(overrides)
    return AnimationSettings(**values)


async def settle():
    """Let tracked publish tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


class TestConfiguration:

    def test_set_config_applies_settings(self, layer):
        layer.set_config(layer.scheduler.base_config, immediate_settings(
            max_async_load_count=2,
            frame_rate=250,
            fade_out=FadeSettings(time_ms=0, opacities=(0.5, 0.0)),
        ))

        assert layer.scheduler.begin_ms == BEGIN_MS
        assert layer.scheduler.max_async_load_count == 2
        assert layer.driver.frame_rate_ms == 250
        assert layer.presentation.fade_out_opacities == [0.5, 0.0]
        # auto_load is off
        assert layer.frames == []

    def test_auto_load(self, layer, renderer):
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True))

        assert len(layer.frames) == 5
        assert len(renderer.requests) == 5

    def test_auto_start_after_complete_load(self, layer, drain):
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True, auto_start=True))
        assert not layer.is_running()

        drain()

        assert layer.is_running()

    def test_set_renderer_reloads(self, layer, drain):
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True))
        drain()
        old_frames = layer.frames

        other = VirtualRenderer(auto_load=False)
        layer.set_renderer(other)

        assert all(f.handle is None for f in old_frames)
        assert len(other.requests) == 5
        assert layer.renderer is other

    def test_unbind_renderer(self, layer, drain, renderer):
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True))
        drain()

        layer.set_renderer(None)

        assert layer.frames == []
        assert renderer.layers == []
        assert not layer.load_animation()

    def test_z_index(self, layer, renderer, drain):
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True))
        layer.set_z_index(5)
        assert {h.z_index for h in renderer.layers} == {5}

    def test_repr(self, layer):
        assert "AnimationLayer test" in repr(layer)


class TestObserverOutput:

    def test_callbacks(self, base_config, renderer, render_loop, drain):
        observer = AnimationObserver(
            on_load_started=MagicMock(),
            on_frame_load_started=MagicMock(),
            on_frame_load_complete=MagicMock(),
            on_group_progress=MagicMock(),
            on_animation_complete=MagicMock(),
            on_frame_changed=MagicMock(),
        )
        layer = AnimationLayer(
            base_config, immediate_settings(count=4, auto_load=True),
            renderer=renderer, observer=observer, render_loop=render_loop,
        )
        drain()
        layer.show_next_frame()

        observer.on_load_started.assert_called_once_with()
        assert observer.on_frame_load_started.call_count == 4
        assert observer.on_frame_load_complete.call_count == 4
        assert observer.on_group_progress.call_count == 2
        observer.on_animation_complete.assert_called_once_with(layer.frames)
        observer.on_frame_changed.assert_called_once_with(layer.frames[0])

    def test_events_without_running_loop_only_reach_observer(self, base_config, renderer, render_loop, drain):
        bus = EventBus()
        observer = AnimationObserver(on_animation_complete=MagicMock())
        layer = AnimationLayer(
            base_config, immediate_settings(count=2, auto_load=True),
            renderer=renderer, observer=observer, event_bus=bus, render_loop=render_loop,
        )
        drain()

        observer.on_animation_complete.assert_called_once()
        assert bus.get_event_history() == []
        assert layer.frames

    @pytest.mark.asyncio
    async def test_events_on_bus(self, base_config, renderer, render_loop, drain):
        bus = EventBus()
        received = []
        for event_type in (
            EventType.ANIMATION_LOAD_STARTED,
            EventType.ANIMATION_LOAD_GROUP_PROGRESS,
            EventType.ANIMATION_LOAD_COMPLETE,
            EventType.FRAME_CHANGED,
        ):
            bus.subscribe(event_type, received.append)

        layer = AnimationLayer(
            base_config, immediate_settings(count=3, auto_load=True),
            renderer=renderer, event_bus=bus, render_loop=render_loop,
        )
        renderer.complete(layer.frames[0].handle, error="HTTP 503")
        drain()
        layer.show_next_frame()
        await settle()

        types = [e.type for e in received]
        assert types == [
            EventType.ANIMATION_LOAD_STARTED,
            EventType.ANIMATION_LOAD_GROUP_PROGRESS,
            EventType.ANIMATION_LOAD_COMPLETE,
            EventType.FRAME_CHANGED,
        ]
        complete = received[2]
        assert complete.layer is layer
        assert [info.time for info in complete.events] == [f.timestamp for f in layer.frames]
        assert complete.events[0].error == "HTTP 503"
        assert received[3].events[0].time == layer.frames[0].timestamp


class TestControllerSync:

    @pytest.fixture
    def controller(self):
        return EventBus()

    @pytest.fixture
    def pair(self, base_config, render_loop, controller):
        layers = []
        for name in ("radar", "lightning"):
            renderer = VirtualRenderer(auto_load=False)
            layer = AnimationLayer(
                base_config, immediate_settings(), renderer=renderer,
                render_loop=render_loop, name=name,
            )
            layer.register_controller(controller)
            layers.append(layer)
        return layers

    @staticmethod
    def finish_loading(layers):
        for layer in layers:
            renderer = layer.renderer
            while renderer.pending:
                renderer.complete(renderer.pending[0])

    @pytest.mark.asyncio
    async def test_period_changed_loads_every_layer(self, pair, controller):
        await controller.publish(PeriodChangedEvent(BEGIN_MS, window_end(7), RESOLUTION_MS))

        assert [len(layer.frames) for layer in pair] == [7, 7]

    @pytest.mark.asyncio
    async def test_invalid_period_is_ignored(self, pair, controller):
        await controller.publish(PeriodChangedEvent(BEGIN_MS, window_end(3), RESOLUTION_MS))
        await controller.publish(PeriodChangedEvent("soon", None, None))

        assert [len(layer.frames) for layer in pair] == [3, 3]

    @pytest.mark.asyncio
    async def test_time_changed_keeps_layers_in_sync(self, pair, controller):
        await controller.publish(ControllerCommandEvent(EventType.RELOAD))
        self.finish_loading(pair)

        await controller.publish(TimeChangedEvent(BEGIN_MS + 3 * RESOLUTION_MS))
        assert [layer.current_index for layer in pair] == [3, 3]

        await controller.publish(ControllerCommandEvent(EventType.NEXT))
        assert [layer.current_index for layer in pair] == [4, 4]

        await controller.publish(ControllerCommandEvent(EventType.NEXT))
        await controller.publish(ControllerCommandEvent(EventType.PREVIOUS))
        assert [layer.current_index for layer in pair] == [4, 4]

    @pytest.mark.asyncio
    async def test_playback_commands(self, pair, controller, render_loop):
        await controller.publish(ControllerCommandEvent(EventType.RELOAD))
        self.finish_loading(pair)

        await controller.publish(FrameRateChangedEvent(100))
        await controller.publish(ControllerCommandEvent(EventType.START))
        assert all(layer.is_running() for layer in pair)
        assert all(layer.driver.frame_rate_ms == 100 for layer in pair)

        render_loop.tick(101)
        assert [layer.current_index for layer in pair] == [0, 0]

        await controller.publish(ControllerCommandEvent(EventType.PAUSE))
        assert not any(layer.is_running() for layer in pair)
        assert [layer.current_index for layer in pair] == [0, 0]

        await controller.publish(ControllerCommandEvent(EventType.STOP))
        assert all(layer.current_frame is None for layer in pair)

    @pytest.mark.asyncio
    async def test_unregister(self, pair, controller):
        radar, lightning = pair
        lightning.unregister_controller(controller)

        await controller.publish(ControllerCommandEvent(EventType.RELOAD))

        assert len(radar.frames) == 5
        assert lightning.frames == []
        assert controller.handler_count(EventType.RELOAD) == 1

    def test_register_twice(self, pair, controller):
        pair[0].register_controller(controller)
        assert controller.handler_count(EventType.START) == 2


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_close(self, layer, drain, renderer):
        controller = EventBus()
        layer.register_controller(controller)
        layer.set_config(layer.scheduler.base_config, immediate_settings(auto_load=True))
        drain()
        layer.start_animation()
        await layer.start()

        await layer.close()

        assert not layer.render_loop.running
        assert not layer.is_running()
        assert layer.frames == []
        assert renderer.layers == []
        assert controller.handler_count(EventType.START) == 0

    @pytest.mark.asyncio
    async def test_runs_on_render_loop(self, base_config):
        complete = asyncio.Event()
        changed = []
        observer = AnimationObserver(
            on_animation_complete=lambda frames: complete.set(),
            on_frame_changed=changed.append,
        )
        layer = AnimationLayer(
            renderer=VirtualRenderer(auto_load=True, latency_ms=1),
            observer=observer,
        )
        layer.render_loop.set_fps(200)
        await layer.start()
        try:
            layer.set_config(base_config, immediate_settings(
                count=4, auto_load=True, auto_start=True, frame_rate=5,
            ))
            await asyncio.wait_for(complete.wait(), timeout=2.0)
            await asyncio.sleep(0.1)
        finally:
            await layer.close()

        assert len(changed) >= 2
        assert changed[0] is not changed[1]
