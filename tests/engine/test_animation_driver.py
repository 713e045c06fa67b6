"""
Tests for AnimationDriver: frame-rate gated advancing on render loop ticks.
"""

import math

import pytest


@pytest.fixture
def playing(loaded_layer):
    layer = loaded_layer(4)
    layer.set_frame_rate(100)
    return layer


class TestAnimationDriver:

    def test_start_does_not_advance_immediately(self, playing, render_loop):
        playing.start_animation()

        assert playing.is_running()
        assert playing.current_frame is None
        assert render_loop.has_tick_handler(playing.driver._on_tick)

    def test_advances_after_frame_rate(self, playing, render_loop, clock):
        playing.start_animation()

        render_loop.tick(100)
        assert playing.current_frame is None

        render_loop.tick(101)
        assert playing.current_index == 0

        render_loop.tick(150)
        assert playing.current_index == 0

        render_loop.tick(202)
        assert playing.current_index == 1
        assert playing.driver.advances == 2

    def test_loops(self, playing, render_loop):
        playing.start_animation()

        visited = []
        now = 0
        for _ in range(6):
            now += 101
            render_loop.tick(now)
            visited.append(playing.current_index)

        assert visited == [0, 1, 2, 3, 0, 1]

    def test_pause_keeps_frame(self, playing, render_loop):
        playing.start_animation()
        render_loop.tick(101)
        playing.pause_animation()

        render_loop.tick(1000)

        assert not playing.is_running()
        assert playing.current_index == 0
        assert not render_loop.has_tick_handler(playing.driver._on_tick)

    def test_stop_fades_everything_out(self, playing, render_loop):
        playing.start_animation()
        render_loop.tick(101)
        render_loop.tick(202)

        playing.stop_animation()

        assert not playing.is_running()
        assert playing.current_frame is None
        assert all(f.get_opacity() == 0.0 for f in playing.frames)

        # Restart begins from the first frame
        playing.start_animation()
        render_loop.tick(400)
        assert playing.current_index == 0

    def test_start_twice(self, playing, render_loop, clock):
        playing.start_animation()
        clock.advance(50)
        playing.start_animation()

        render_loop.tick(101)
        assert playing.current_index == 0

    def test_zero_frame_rate_advances_every_tick(self, playing, render_loop):
        playing.set_frame_rate(0)
        playing.start_animation()

        render_loop.tick(1)
        render_loop.tick(2)
        render_loop.tick(3)

        assert playing.driver.advances == 3
        assert playing.current_index == 2

    @pytest.mark.parametrize("value", [None, math.nan, True, "fast"])
    def test_invalid_frame_rate_ignored(self, playing, value):
        assert not playing.set_frame_rate(value)
        assert playing.driver.frame_rate_ms == 100

    def test_negative_frame_rate_becomes_zero(self, playing):
        assert playing.set_frame_rate(-20)
        assert playing.driver.frame_rate_ms == 0
