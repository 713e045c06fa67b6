"""
Frame - one time-stamped renderable unit of an animation.

Wraps the immutable FrameConfig of its time and the renderer handle created
for it, and tracks the load state machine:

    UNLOADED → PRE_LOADING → LOADING → READY
        ↑___________ release() / hide ____|

READY is terminal for both outcomes; `error` tells a failed load apart.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from models.enums import FrameState
from models.errors import ConfigurationError
from models.frame_config import FrameConfig
from rendering.renderer_interface import ITileRenderer
from utils.logger import get_logger, LogCategory
from utils.time_utils import from_epoch_ms

log = get_logger().for_category(LogCategory.RENDER)


class FrameListener(Protocol):
    """Receives the load lifecycle of frames (implemented by FrameScheduler)."""

    def on_frame_load_start(self, frame: "Frame") -> None: ...

    def on_frame_load_end(self, frame: "Frame") -> None: ...


class Frame:
    """
    One frame of the animation.

    The renderer handle is created on the first load() and destroyed by
    release(). Renderer signals for a handle other than the current one
    (e.g. a late load end after release) are ignored.
    """

    def __init__(
        self,
        config: FrameConfig,
        renderer: ITileRenderer,
        listener: Optional[FrameListener] = None,
    ):
        if config is None:
            raise ConfigurationError("Frame requires a configuration")
        if renderer is None:
            raise ConfigurationError("Frame requires a renderer")

        self.config = config
        self.renderer = renderer
        self.listener = listener

        self.handle: Any = None
        self.state = FrameState.UNLOADED
        self._error: Any = None

        self._time_ms = config.time_ms
        self._timestamp = from_epoch_ms(self._time_ms) if self._time_ms is not None else None

    # === Lifecycle ===

    def load(self) -> bool:
        """
        Create the renderer handle if needed and make it visible, which starts
        loading its content. Idempotent while the handle is visible.

        Returns:
            False if the renderer could not create a handle for the config
        """
        if self.handle is None:
            self.handle = self.renderer.create(self.config, self)
            if self.handle is None:
                log.warn("Renderer did not create a frame handle", time=self.config.time)
                return False

        if not self.renderer.get_visibility(self.handle):
            self.state = FrameState.PRE_LOADING
            self.renderer.set_visibility(self.handle, True)
        return True

    def release(self) -> None:
        """Destroy the renderer handle and return to the default state."""
        handle = self.handle
        self.handle = None
        self._reset_state()
        if handle is not None:
            self.renderer.destroy(handle)

    def _reset_state(self) -> None:
        self.state = FrameState.UNLOADED
        self._error = None

    # === Renderer signals (IRenderListener) ===

    def on_load_start(self, handle: Any) -> None:
        if handle is not self.handle:
            return
        self._reset_state()
        self.state = FrameState.LOADING
        if self.listener:
            self.listener.on_frame_load_start(self)

    def on_load_end(self, handle: Any) -> None:
        # Content released while loading keeps the default state silently
        if handle is not self.handle or self.state == FrameState.UNLOADED:
            return
        self.state = FrameState.READY
        if self.listener:
            self.listener.on_frame_load_end(self)

    def on_tile_error(self, handle: Any, info: Any) -> None:
        if handle is not self.handle:
            return
        self._error = info if info is not None else "tileerror"
        log.warn("Frame tile error", time=self.config.time, error=self._error)

    # === State queries ===

    def is_default_state(self) -> bool:
        return self.state == FrameState.UNLOADED and self._error is None

    def is_loading(self) -> bool:
        return self.state in (FrameState.PRE_LOADING, FrameState.LOADING)

    def is_loaded(self) -> bool:
        """Loaded successfully or unsuccessfully, see error."""
        return self.state == FrameState.READY

    @property
    def error(self) -> Any:
        return self._error

    def get_error(self) -> Any:
        return self._error

    # === Presentation ===

    def get_opacity(self) -> Optional[float]:
        return self.renderer.get_opacity(self.handle) if self.handle is not None else None

    def set_opacity(self, value: float) -> None:
        if self.handle is not None:
            self.renderer.set_opacity(self.handle, value)

    def get_visibility(self) -> Optional[bool]:
        return self.renderer.get_visibility(self.handle) if self.handle is not None else None

    def set_visibility(self, visible: bool) -> None:
        if self.handle is None:
            return
        if not visible:
            # Hidden content has to be loaded again
            self._reset_state()
        self.renderer.set_visibility(self.handle, visible)

    def get_z_index(self) -> Optional[int]:
        return self.renderer.get_z_index(self.handle) if self.handle is not None else None

    def set_z_index(self, index: Optional[int]) -> None:
        if self.handle is None or index is None or isinstance(index, bool):
            return
        if not isinstance(index, int):
            return
        self.renderer.set_z_index(self.handle, index)

    # === Identity ===

    @property
    def time_ms(self) -> Optional[int]:
        return self._time_ms

    @property
    def timestamp(self) -> Optional[datetime]:
        return self._timestamp

    def __repr__(self) -> str:
        return f"<Frame {self.config.time} {self.state.name} error={self._error!r}>"
