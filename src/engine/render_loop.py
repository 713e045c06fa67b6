"""
RenderLoop - host per-frame callback mechanism for animation layers.

Architecture:
  - One asyncio task ticks at the target FPS
  - Every tick calls the registered handlers with the current clock value (ms)
  - Handlers are called in registration order; a failing handler is logged
    and does not stop the loop or the other handlers
  - The clock is injectable and tick() may be called directly, so transitions
    and frame advancing can be driven deterministically without the task
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from lifecycle.task_registry import TaskCategory, create_tracked_task
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.ANIMATION)

TickHandler = Callable[[float], None]


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.perf_counter() * 1000


class RenderLoop:
    """
    Fixed-rate tick source.

    Manages:
    - Tick handler registration
    - Start / stop of the background tick task
    - Pause / resume
    - Performance metrics
    """

    def __init__(self, fps: int = 60, clock: Optional[Callable[[], float]] = None):
        """
        Args:
            fps: Target tick frequency (1-240, default 60)
            clock: Millisecond clock (defaults to a monotonic clock)
        """
        self.fps = max(1, min(fps, 240))
        self.clock = clock or monotonic_ms

        self._handlers: List[TickHandler] = []

        # Runtime state
        self.running = False
        self.paused = False
        self.render_task: Optional[asyncio.Task] = None

        # Metrics
        self.tick_times: Deque[float] = deque(maxlen=300)
        self.ticks = 0
        self.handler_errors = 0

    # === Handler registration ===

    def add_tick_handler(self, handler: TickHandler) -> None:
        if handler in self._handlers:
            return
        self._handlers.append(handler)

    def remove_tick_handler(self, handler: TickHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def has_tick_handler(self, handler: TickHandler) -> bool:
        return handler in self._handlers

    def now(self) -> float:
        """Current clock value in milliseconds."""
        return self.clock()

    # === Control API ===

    def pause(self) -> None: self.paused = True

    def resume(self) -> None: self.paused = False

    def set_fps(self, fps: int) -> None:
        """Change FPS at runtime."""
        self.fps = max(1, min(fps, 240))
        log.info(f"RenderLoop FPS set to {self.fps}")

    # === Ticking ===

    def tick(self, now: Optional[float] = None) -> None:
        """Call every tick handler once with the given (or current) clock value."""
        now = self.clock() if now is None else now
        self.ticks += 1
        self.tick_times.append(now)

        # Handlers may register or remove handlers while running
        for handler in list(self._handlers):
            try:
                handler(now)
            except Exception as e:
                self.handler_errors += 1
                log.error(
                    f"Tick handler failed: {getattr(handler, '__name__', handler)}",
                    error=e,
                    error_type=type(e).__name__,
                )

    # === Lifecycle ===

    async def start(self) -> None:
        """Start the background tick task."""
        if self.running:
            log.warn("RenderLoop already running")
            return

        self.running = True
        self.render_task = create_tracked_task(
            self._run(),
            category=TaskCategory.RENDER,
            description=f"Render loop @ {self.fps} FPS",
        )
        log.info(f"RenderLoop started @ {self.fps} FPS")

    async def stop(self) -> None:
        """Stop the background tick task."""
        if not self.running:
            return
        self.running = False
        if self.render_task:
            self.render_task.cancel()
            try:
                await self.render_task
            except asyncio.CancelledError:
                pass
            self.render_task = None

        log.info("RenderLoop stopped", ticks=self.ticks, handler_errors=self.handler_errors)

    async def _run(self) -> None:
        while self.running:
            if not self.paused:
                self.tick()
            await asyncio.sleep(1.0 / self.fps)

    # === Metrics ===

    def get_actual_fps(self) -> float:
        """Measured tick rate over recent ticks."""
        if len(self.tick_times) < 2:
            return 0.0
        duration = self.tick_times[-1] - self.tick_times[0]
        if duration <= 0:
            return 0.0
        return (len(self.tick_times) - 1) * 1000 / duration

    def get_metrics(self) -> Dict:
        return {
            "fps_target": self.fps,
            "fps_actual": self.get_actual_fps(),
            "ticks": self.ticks,
            "handler_errors": self.handler_errors,
            "handlers": len(self._handlers),
        }

    def __repr__(self) -> str:
        return f"<RenderLoop fps={self.fps} running={self.running} handlers={len(self._handlers)}>"
