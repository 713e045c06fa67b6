"""
main_asyncio.py - Demo entry point for tile animations
------------------------------------------------------

Responsible for:
- loading config/animation.yaml
- wiring renderer, event bus and animation layer
- running the animation for the configured time
- graceful shutdown on Ctrl+C or fatal errors
"""

import asyncio
import signal
import sys
from typing import List

from engine.frame import Frame
from lifecycle.task_registry import TaskRegistry
from managers import ConfigManager
from models.enums import LogCategory, LogLevel, RendererType
from models.events import AnimationEvent, EventType
from models.observer import AnimationObserver
from rendering import HttpTileRenderer, VirtualRenderer, Viewport
from services import EventBus
from services.animation_layer import AnimationLayer
from utils.logger import get_logger, configure_logger

# ---------------------------------------------------------------------------
# UTF-8 ENCODING FIX
# ---------------------------------------------------------------------------

if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore

log = get_logger().for_category(LogCategory.SYSTEM)


def build_observer() -> AnimationObserver:
    def group_progress(frames: List[Frame]):
        log.info(f"Group loaded: {len(frames)} frames")

    def complete(frames: List[Frame]):
        failed = [f for f in frames if f.error is not None]
        log.info("Animation ready", frames=len(frames), failed=len(failed))

    def changed(frame: Frame):
        log.debug("Showing frame", time=frame.config.time, layer=frame.config.layer)

    return AnimationObserver(
        on_group_progress=group_progress,
        on_animation_complete=complete,
        on_frame_changed=changed,
    )


async def main():
    config = ConfigManager()
    config.load()
    runtime = config.runtime
    configure_logger(LogLevel[runtime.log_level])

    # ========================================================================
    # 1. RENDER TARGET
    # ========================================================================

    if RendererType[runtime.renderer.upper()] is RendererType.HTTP:
        renderer = HttpTileRenderer(Viewport(
            bbox=tuple(runtime.viewport.bbox),
            width=runtime.viewport.width,
            height=runtime.viewport.height,
            crs=runtime.viewport.crs,
        ))
    else:
        renderer = VirtualRenderer(auto_load=True, latency_ms=runtime.latency_ms)

    # ========================================================================
    # 2. EVENT BUS + ANIMATION LAYER
    # ========================================================================

    event_bus = EventBus()

    def on_complete(event: AnimationEvent):
        log.info("Load complete event", frames=len(event.events))

    event_bus.subscribe(EventType.ANIMATION_LOAD_COMPLETE, on_complete)

    layer = AnimationLayer(
        renderer=renderer,
        observer=build_observer(),
        event_bus=event_bus,
    )
    layer.render_loop.set_fps(runtime.fps)
    await layer.start()
    layer.set_config(config.frame_config, config.settings)

    # ========================================================================
    # 3. RUN UNTIL TIMEOUT OR SIGNAL
    # ========================================================================

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    log.info("🏁 Animation running", seconds=runtime.run_seconds, frames=len(layer.frames))
    try:
        await asyncio.wait_for(shutdown.wait(), timeout=runtime.run_seconds)
    except asyncio.TimeoutError:
        pass

    # ========================================================================
    # 4. SHUTDOWN
    # ========================================================================

    await layer.close()
    if isinstance(renderer, HttpTileRenderer):
        await renderer.close()
    await TaskRegistry.instance().cancel_all()
    log.info(TaskRegistry.instance().summary())
    log.info("👋 Animation demo shut down cleanly.")


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
    except Exception as e:
        log.error(f"Fatal error: {e}", error_type=type(e).__name__)
        sys.exit(1)
