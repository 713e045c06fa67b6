"""
Tests for Frame: load state machine, renderer signals and presentation accessors.
"""

from unittest.mock import MagicMock

import pytest

from engine.frame import Frame
from models.enums import FrameState
from models.errors import ConfigurationError
from models.frame_config import specialize

T0 = 1_714_564_800_000


@pytest.fixture
def frame_config(base_config):
    return specialize(base_config, None, T0)


@pytest.fixture
def listener():
    return MagicMock()


@pytest.fixture
def frame(frame_config, renderer, listener):
    return Frame(frame_config, renderer, listener=listener)


class TestFrameConstruction:

    def test_requires_config(self, renderer):
        with pytest.raises(ConfigurationError):
            Frame(None, renderer)

    def test_requires_renderer(self, frame_config):
        with pytest.raises(ConfigurationError):
            Frame(frame_config, None)

    def test_initial_state(self, frame):
        assert frame.state == FrameState.UNLOADED
        assert frame.is_default_state()
        assert not frame.is_loading()
        assert not frame.is_loaded()
        assert frame.handle is None
        assert frame.time_ms == T0
        assert frame.timestamp.isoformat() == "2024-05-01T12:00:00+00:00"


class TestFrameLoading:

    def test_load_requests_content(self, frame, renderer):
        assert frame.load()

        assert frame.state == FrameState.PRE_LOADING
        assert frame.is_loading()
        assert renderer.pending == [frame.handle]
        assert frame.get_visibility() is True

    def test_load_is_idempotent_while_visible(self, frame, renderer):
        frame.load()
        frame.load()
        assert len(renderer.requests) == 1

    def test_successful_load(self, frame, renderer, listener):
        frame.load()
        renderer.begin_load(frame.handle)

        assert frame.state == FrameState.LOADING
        listener.on_frame_load_start.assert_called_once_with(frame)

        renderer.end_load(frame.handle)

        assert frame.is_loaded()
        assert frame.error is None
        listener.on_frame_load_end.assert_called_once_with(frame)

    def test_failed_load_is_loaded_with_error(self, frame, renderer):
        frame.load()
        renderer.complete(frame.handle, error="HTTP 500")

        assert frame.is_loaded()
        assert frame.error == "HTTP 500"
        assert frame.get_error() == "HTTP 500"
        assert not frame.is_default_state()

    def test_tile_error_without_info(self, frame, renderer):
        frame.load()
        frame.on_tile_error(frame.handle, None)
        assert frame.error == "tileerror"

    def test_renderer_without_handle(self, frame_config):
        renderer = MagicMock()
        renderer.create.return_value = None
        frame = Frame(frame_config, renderer)

        assert frame.load() is False
        assert frame.is_default_state()


class TestFrameRelease:

    def test_release_resets(self, frame, renderer):
        frame.load()
        renderer.complete(frame.handle, error="boom")
        frame.release()

        assert frame.handle is None
        assert frame.is_default_state()
        assert renderer.layers == []

    def test_late_signals_are_ignored(self, frame, renderer, listener):
        frame.load()
        old_handle = frame.handle
        renderer.begin_load(old_handle)
        frame.release()

        frame.on_load_end(old_handle)
        frame.on_tile_error(old_handle, "late")

        assert frame.is_default_state()
        listener.on_frame_load_end.assert_not_called()

    def test_hide_returns_to_default(self, frame, renderer):
        frame.load()
        renderer.complete(frame.handle)
        frame.set_visibility(False)

        assert frame.is_default_state()
        assert frame.get_visibility() is False

        # Shown again through load()
        assert frame.load()
        assert renderer.pending == [frame.handle]

    def test_load_end_after_hide_keeps_default_state(self, frame, renderer, listener):
        frame.load()
        frame.on_load_start(frame.handle)
        frame.set_visibility(False)
        frame.on_load_end(frame.handle)

        assert frame.is_default_state()
        listener.on_frame_load_end.assert_not_called()


class TestFramePresentation:

    def test_accessors_without_handle(self, frame):
        assert frame.get_opacity() is None
        assert frame.get_visibility() is None
        assert frame.get_z_index() is None
        frame.set_opacity(0.5)
        frame.set_z_index(3)

    def test_accessors_with_handle(self, frame):
        frame.load()
        frame.set_opacity(0.25)
        frame.set_z_index(7)

        assert frame.get_opacity() == 0.25
        assert frame.get_z_index() == 7

    @pytest.mark.parametrize("index", [None, True, 1.5, "2"])
    def test_invalid_z_index_ignored(self, frame, index):
        frame.load()
        frame.set_z_index(4)
        frame.set_z_index(index)
        assert frame.get_z_index() == 4
