"""
Tests for the in-process virtual renderer.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from models.frame_config import specialize
from rendering.virtual_renderer import VirtualRenderer

T0 = 1_714_564_800_000


@pytest.fixture
def config(base_config):
    return specialize(base_config, None, T0)


class TestManualLoads:

    def test_show_queues_load(self, renderer, config):
        handle = renderer.create(config, MagicMock())
        renderer.set_visibility(handle, True)

        assert renderer.pending == [handle]
        assert renderer.requests == [handle]

    def test_complete_in_any_order(self, renderer, config):
        listener = MagicMock()
        a = renderer.create(config, listener)
        b = renderer.create(config, listener)
        renderer.set_visibility(a, True)
        renderer.set_visibility(b, True)

        renderer.complete(b)
        renderer.complete(a, error="tileerror")

        assert renderer.pending == []
        listener.on_tile_error.assert_called_once_with(a, "tileerror")
        assert [c.args[0] for c in listener.on_load_end.call_args_list] == [b, a]

    def test_hide_drops_pending_load(self, renderer, config):
        handle = renderer.create(config, MagicMock())
        renderer.set_visibility(handle, True)
        renderer.set_visibility(handle, False)

        assert renderer.pending == []
        assert renderer.visible_layers == []

    def test_destroyed_handle_is_silent(self, renderer, config):
        listener = MagicMock()
        handle = renderer.create(config, listener)
        renderer.set_visibility(handle, True)
        renderer.destroy(handle)

        renderer.complete(handle)

        listener.on_load_start.assert_not_called()
        listener.on_load_end.assert_not_called()
        assert renderer.layers == []

    def test_pan_reloads_visible(self, renderer, config):
        shown = renderer.create(config, MagicMock())
        renderer.create(config, MagicMock())
        renderer.set_visibility(shown, True)
        renderer.complete(shown)

        renderer.pan()

        assert renderer.pending == [shown]
        assert not shown.loaded


class TestAutoLoads:

    @pytest.mark.asyncio
    async def test_loads_after_latency(self, config):
        renderer = VirtualRenderer(auto_load=True, latency_ms=5)
        listener = MagicMock()
        handle = renderer.create(config, listener)

        renderer.set_visibility(handle, True)
        listener.on_load_start.assert_not_called()

        await asyncio.sleep(0.05)

        listener.on_load_start.assert_called_once_with(handle)
        listener.on_load_end.assert_called_once_with(handle)
        assert handle.loaded

    @pytest.mark.asyncio
    async def test_fail_times(self, config):
        renderer = VirtualRenderer(auto_load=True, fail_times=[T0])
        listener = MagicMock()
        handle = renderer.create(config, listener)

        renderer.set_visibility(handle, True)
        await asyncio.sleep(0.01)

        listener.on_tile_error.assert_called_once_with(handle, "tileerror")
        listener.on_load_end.assert_called_once_with(handle)
