# rendering/renderer_interface.py
"""
ITileRenderer Protocol
======================
Render target abstraction for animation frames.
Minimal contract for any tile renderer (in-process, HTTP, map widget).
"""

from __future__ import annotations
from typing import Any, Optional, Protocol

from models.frame_config import FrameConfig


class IRenderListener(Protocol):
    """
    Receiver of load lifecycle signals for one renderer handle.

    Signals for a handle the listener no longer owns must be ignored.
    """

    def on_load_start(self, handle: Any) -> None:
        """Renderer started fetching content for handle."""
        ...

    def on_load_end(self, handle: Any) -> None:
        """Renderer finished (successfully or not) loading handle."""
        ...

    def on_tile_error(self, handle: Any, info: Any) -> None:
        """A tile of handle failed; the load still ends with on_load_end."""
        ...


class ITileRenderer(Protocol):
    """
    Protocol defining the render target of animation frames.

    All implementations must provide:
    - create: build an opaque renderable unit for one frame config
    - destroy: release it
    - opacity / visibility / z-index accessors on a handle

    Setting visibility True on a handle whose content is not loaded makes
    the renderer start a load and report it through the listener.
    """

    def create(self, config: FrameConfig, listener: IRenderListener) -> Optional[Any]:
        """Create the renderable unit. May return None if config is unusable."""
        ...

    def destroy(self, handle: Any) -> None:
        """Release the renderable unit and any in-flight load."""
        ...

    def get_opacity(self, handle: Any) -> float:
        ...

    def set_opacity(self, handle: Any, value: float) -> None:
        ...

    def get_visibility(self, handle: Any) -> bool:
        ...

    def set_visibility(self, handle: Any, visible: bool) -> None:
        ...

    def get_z_index(self, handle: Any) -> int:
        ...

    def set_z_index(self, handle: Any, index: int) -> None:
        ...
