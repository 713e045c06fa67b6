import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from engine.render_loop import RenderLoop
from lifecycle.task_registry import TaskRegistry
from models.frame_config import AnimationSettings, FadeSettings, FrameConfig
from rendering.virtual_renderer import VirtualRenderer
from services.animation_layer import AnimationLayer

# 2024-05-01T12:00:00Z
BEGIN_MS = 1_714_564_800_000
RESOLUTION_MS = 5 * 60 * 1000


class FakeClock:
    """Millisecond clock moved by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


def window_end(frame_count: int) -> int:
    return BEGIN_MS + (frame_count - 1) * RESOLUTION_MS


@pytest.fixture(autouse=True)
def fresh_task_registry():
    TaskRegistry._instance = None
    yield
    TaskRegistry._instance = None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def render_loop(clock):
    return RenderLoop(fps=60, clock=clock)


@pytest.fixture
def renderer():
    """Virtual renderer whose loads are completed by the test."""
    return VirtualRenderer(auto_load=False)


@pytest.fixture
def base_config():
    return FrameConfig.wms("http://tiles.test/wms", "radar", name="Radar")


@pytest.fixture
def layer(base_config, renderer, render_loop):
    return AnimationLayer(base_config, renderer=renderer, render_loop=render_loop, name="test")


@pytest.fixture
def drain(renderer):
    """Complete pending loads in request order until nothing is pending."""
    def _drain(error=None):
        completed = 0
        while renderer.pending:
            renderer.complete(renderer.pending[0], error)
            completed += 1
        return completed
    return _drain


@pytest.fixture
def loaded_layer(layer, drain):
    """
    Factory: layer with `count` fully loaded frames and immediate fades.
    """
    def _load(count: int = 5, opacities=None, max_loads=None):
        layer.presentation.set_fade_settings(
            FadeSettings(time_ms=0),
            FadeSettings(time_ms=0, opacities=opacities),
        )
        layer.set_max_async_load_count(max_loads)
        layer.set_window(BEGIN_MS, window_end(count), RESOLUTION_MS)
        assert layer.load_animation()
        drain()
        return layer
    return _load


@pytest.fixture
def settings():
    return AnimationSettings(
        begin_time=BEGIN_MS,
        end_time=window_end(5),
        resolution_time=RESOLUTION_MS,
    )
