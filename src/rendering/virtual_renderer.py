"""
VirtualRenderer - render target without a map or network

Holds renderable units in memory and reports load signals either on a
timer (demo runs) or when the caller completes them (tests). Hidden content
is marked stale so showing it again starts a new load.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set

from lifecycle.task_registry import TaskCategory, create_tracked_task
from models.frame_config import FrameConfig
from rendering.renderer_interface import IRenderListener, ITileRenderer
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RENDER)


@dataclass(eq=False)
class VirtualLayer:
    """Renderable unit of the virtual renderer (one per frame)."""
    config: FrameConfig
    listener: IRenderListener
    opacity: float = 1.0
    visibility: bool = False
    z_index: int = 0
    loaded: bool = False
    destroyed: bool = False
    load_task: Optional[asyncio.Task] = field(default=None, repr=False)


class VirtualRenderer(ITileRenderer):
    """
    In-process render target.

    auto_load=True: every requested load runs as a tracked task that reports
    load start, waits latency_ms and reports load end. Frames whose time is in
    fail_times report a tile error first.

    auto_load=False: requested loads are queued in `pending` (request order) and
    the caller drives them with begin_load / end_load / complete, in any order.
    """

    def __init__(
        self,
        auto_load: bool = True,
        latency_ms: float = 0.0,
        fail_times: Optional[Iterable[int]] = None,
    ):
        self.auto_load = auto_load
        self.latency_ms = max(0.0, latency_ms)
        self.fail_times: Set[int] = set(fail_times or ())

        self.layers: List[VirtualLayer] = []
        self.pending: List[VirtualLayer] = []
        self.requests: List[VirtualLayer] = []  # Every load request, oldest first

    # === ITileRenderer ===

    def create(self, config: FrameConfig, listener: IRenderListener) -> Optional[VirtualLayer]:
        layer = VirtualLayer(config=config, listener=listener)
        self.layers.append(layer)
        return layer

    def destroy(self, handle: VirtualLayer) -> None:
        if handle.destroyed:
            return
        handle.destroyed = True
        handle.visibility = False
        if handle.load_task and not handle.load_task.done():
            handle.load_task.cancel()
        if handle in self.pending:
            self.pending.remove(handle)
        if handle in self.layers:
            self.layers.remove(handle)

    def get_opacity(self, handle: VirtualLayer) -> float:
        return handle.opacity

    def set_opacity(self, handle: VirtualLayer, value: float) -> None:
        handle.opacity = value

    def get_visibility(self, handle: VirtualLayer) -> bool:
        return handle.visibility

    def set_visibility(self, handle: VirtualLayer, visible: bool) -> None:
        if handle.destroyed or handle.visibility == visible:
            return
        handle.visibility = visible
        if not visible:
            # Hidden content goes stale and is fetched again when shown
            handle.loaded = False
            if handle in self.pending:
                self.pending.remove(handle)
            if handle.load_task and not handle.load_task.done():
                handle.load_task.cancel()
        elif not handle.loaded:
            self._request_load(handle)

    def get_z_index(self, handle: VirtualLayer) -> int:
        return handle.z_index

    def set_z_index(self, handle: VirtualLayer, index: int) -> None:
        handle.z_index = index

    # === Load simulation ===

    def _request_load(self, handle: VirtualLayer) -> None:
        self.requests.append(handle)
        if not self.auto_load:
            self.pending.append(handle)
            return
        handle.load_task = create_tracked_task(
            self._simulate_load(handle),
            category=TaskCategory.LOAD,
            description=f"Virtual load {handle.config.time}",
        )

    async def _simulate_load(self, handle: VirtualLayer) -> None:
        # Start is reported asynchronously, like a real tile fetch
        await asyncio.sleep(0)
        self.begin_load(handle)
        await asyncio.sleep(self.latency_ms / 1000)
        error = "tileerror" if handle.config.time_ms in self.fail_times else None
        self.end_load(handle, error)

    def begin_load(self, handle: VirtualLayer) -> None:
        """Report load start for handle."""
        if handle.destroyed:
            return
        handle.listener.on_load_start(handle)

    def end_load(self, handle: VirtualLayer, error: Any = None) -> None:
        """Report an optional tile error, then load end for handle."""
        if handle.destroyed:
            return
        if handle in self.pending:
            self.pending.remove(handle)
        if error is not None:
            log.debug("Virtual tile error", time=handle.config.time, error=error)
            handle.listener.on_tile_error(handle, error)
        handle.loaded = True
        handle.listener.on_load_end(handle)

    def complete(self, handle: VirtualLayer, error: Any = None) -> None:
        """begin_load + end_load in one call."""
        self.begin_load(handle)
        self.end_load(handle, error)

    def pan(self) -> None:
        """Viewport moved: every visible layer fetches its content again."""
        for layer in list(self.layers):
            if layer.visibility:
                layer.loaded = False
                self._request_load(layer)

    @property
    def visible_layers(self) -> List[VirtualLayer]:
        return [layer for layer in self.layers if layer.visibility]

    def __repr__(self) -> str:
        return (
            f"<VirtualRenderer layers={len(self.layers)} "
            f"pending={len(self.pending)} auto_load={self.auto_load}>"
        )
