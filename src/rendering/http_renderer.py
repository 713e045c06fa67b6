"""
HTTP tile renderer.

Fetches one image per frame for a fixed viewport: a WMS GetMap request or a
WMTS GetTile (KVP) request carrying the frame TIME. Each fetch runs as a
tracked task; an error status or transport failure is reported as a tile
error and the load still ends.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from lifecycle.task_registry import TaskCategory, create_tracked_task
from models.frame_config import FrameConfig, WmsSource, WmtsSource
from rendering.renderer_interface import IRenderListener, ITileRenderer
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RENDER)

DEFAULT_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class Viewport:
    """Map area requested for every frame."""
    bbox: Tuple[float, float, float, float] = (-20037508.34, -20037508.34, 20037508.34, 20037508.34)
    width: int = 256
    height: int = 256
    crs: str = "EPSG:3857"
    # WMTS tile address
    tile_matrix: str = "0"
    tile_row: int = 0
    tile_col: int = 0


@dataclass(eq=False)
class HttpLayer:
    """Renderer handle: one frame image and its presentation state."""
    config: FrameConfig
    listener: IRenderListener
    opacity: float = 1.0
    visibility: bool = False
    z_index: int = 0
    loaded: bool = False
    destroyed: bool = False
    image: Optional[bytes] = field(default=None, repr=False)
    status_code: Optional[int] = None
    load_task: Optional[asyncio.Task] = field(default=None, repr=False)


def _kvp_value(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def build_request(config: FrameConfig, viewport: Viewport) -> Tuple[str, Dict[str, str]]:
    """
    Build the KVP request of one frame.

    Returns:
        (url, query parameters); parameter names are upper case and source
        params override the generated ones
    """
    source = config.source
    if isinstance(source, WmsSource):
        params: Dict[str, Any] = {
            "SERVICE": "WMS",
            "VERSION": "1.3.0",
            "REQUEST": "GetMap",
            "STYLES": "",
            "CRS": viewport.crs,
            "BBOX": ",".join(str(v) for v in viewport.bbox),
            "WIDTH": viewport.width,
            "HEIGHT": viewport.height,
        }
    elif isinstance(source, WmtsSource):
        params = {
            "SERVICE": "WMTS",
            "VERSION": "1.0.0",
            "REQUEST": "GetTile",
            "LAYER": source.layer,
            "STYLE": source.style,
            "FORMAT": source.format,
            "TILEMATRIXSET": source.matrix_set,
            "TILEMATRIX": viewport.tile_matrix,
            "TILEROW": viewport.tile_row,
            "TILECOL": viewport.tile_col,
        }
    else:
        raise TypeError(f"Unsupported frame source: {type(source).__name__}")

    for key, value in source.params.items():
        params[key.upper()] = value
    if config.time is not None:
        params["TIME"] = config.time

    return source.url, {k: _kvp_value(v) for k, v in params.items()}


class HttpTileRenderer(ITileRenderer):
    """
    Render target backed by a WMS / WMTS server.

    Example:
        async with httpx.AsyncClient() as client:
            renderer = HttpTileRenderer(Viewport(width=512, height=512), client=client)
    """

    def __init__(
        self,
        viewport: Optional[Viewport] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self.viewport = viewport or Viewport()
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s
        self.layers: List[HttpLayer] = []

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._client

    async def close(self) -> None:
        for layer in list(self.layers):
            self.destroy(layer)
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # === ITileRenderer ===

    def create(self, config: FrameConfig, listener: IRenderListener) -> Optional[HttpLayer]:
        layer = HttpLayer(config=config, listener=listener)
        self.layers.append(layer)
        return layer

    def destroy(self, handle: HttpLayer) -> None:
        if handle.destroyed:
            return
        handle.destroyed = True
        handle.visibility = False
        handle.image = None
        self._cancel(handle)
        if handle in self.layers:
            self.layers.remove(handle)

    def get_opacity(self, handle: HttpLayer) -> float:
        return handle.opacity

    def set_opacity(self, handle: HttpLayer, value: float) -> None:
        handle.opacity = value

    def get_visibility(self, handle: HttpLayer) -> bool:
        return handle.visibility

    def set_visibility(self, handle: HttpLayer, visible: bool) -> None:
        if handle.destroyed or handle.visibility == visible:
            return
        handle.visibility = visible
        if not visible:
            handle.loaded = False
            self._cancel(handle)
        elif not handle.loaded:
            self._start_load(handle)

    def get_z_index(self, handle: HttpLayer) -> int:
        return handle.z_index

    def set_z_index(self, handle: HttpLayer, index: int) -> None:
        handle.z_index = index

    # === Viewport ===

    def set_viewport(self, viewport: Viewport) -> None:
        """Move the viewport; visible layers fetch their image again."""
        self.viewport = viewport
        for layer in list(self.layers):
            if layer.visibility:
                self._cancel(layer)
                layer.loaded = False
                self._start_load(layer)

    # === Loading ===

    def _cancel(self, handle: HttpLayer) -> None:
        if handle.load_task and not handle.load_task.done():
            handle.load_task.cancel()
        handle.load_task = None

    def _start_load(self, handle: HttpLayer) -> None:
        handle.load_task = create_tracked_task(
            self._fetch(handle),
            category=TaskCategory.LOAD,
            description=f"Tile fetch {handle.config.layer} @ {handle.config.time}",
        )

    async def _fetch(self, handle: HttpLayer) -> None:
        handle.listener.on_load_start(handle)
        url, params = build_request(handle.config, self.viewport)

        try:
            response = await self.client.get(url, params=params)
        except httpx.HTTPError as e:
            log.warn("Tile request failed", url=url, time=handle.config.time, error=type(e).__name__)
            handle.listener.on_tile_error(handle, str(e) or type(e).__name__)
        else:
            handle.status_code = response.status_code
            if response.is_success:
                handle.image = response.content
            else:
                log.warn("Tile request rejected", url=url, time=handle.config.time, status=response.status_code)
                handle.listener.on_tile_error(handle, f"HTTP {response.status_code}")

        if handle.destroyed:
            return
        handle.loaded = True
        handle.listener.on_load_end(handle)

    def __repr__(self) -> str:
        return f"<HttpTileRenderer layers={len(self.layers)} viewport={self.viewport.width}x{self.viewport.height}>"
