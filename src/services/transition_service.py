"""
Transition Service

Animates one numeric property (frame opacity) of a target object from its
current value to an end value over time, shaped by an easing curve.

- One live transition per target: starting a new one marks the previous
  record removed, so no two transitions race on the same property
- Steps run on RenderLoop ticks; the first step runs immediately
- Once elapsed >= duration (or duration is 0) the exact end value is written
  and the record retires
- Invalid input (unknown easing, NaN/negative duration, non-numeric values)
  drops the transition without raising
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

from engine.render_loop import RenderLoop
from models.transition import Easing, TransitionRecord, apply_easing, resolve_easing
from utils.logger import get_category_logger, LogCategory

log = get_category_logger(LogCategory.TRANSITION)


class TransitionService:
    """
    Eased property transitions driven by a RenderLoop.

    Example:
        service = TransitionService(render_loop)

        # Fade frame out over 200ms
        service.animate(frame, 0.0, "ease-out", 200)

        # Any object, explicit accessors
        service.animate(obj, 1.0, Easing.LINEAR, 100,
                        getter=lambda: obj.value,
                        setter=lambda v: setattr(obj, "value", v))
    """

    DEFAULT_EASING = Easing.EASE_OUT

    def __init__(self, render_loop: RenderLoop):
        self.render_loop = render_loop
        self._records: Dict[int, TransitionRecord] = {}

    def animate(
        self,
        target: Any,
        end_value: float,
        easing: Union[Easing, str, None] = DEFAULT_EASING,
        duration_ms: float = 0,
        getter: Optional[Callable[[], float]] = None,
        setter: Optional[Callable[[float], None]] = None,
    ) -> Optional[TransitionRecord]:
        """
        Start (or restart) the transition of target toward end_value.

        Args:
            target: Animated object; by default its get_opacity/set_opacity are used
            end_value: Final property value
            easing: Easing member or name ("linear", "ease-out", "<>", ...)
            duration_ms: Transition length in milliseconds (0 = immediate)
            getter/setter: Property accessors overriding the opacity defaults

        Returns:
            The live TransitionRecord, or None if the transition was dropped
            or already finished during its first step
        """
        self.cancel(target)

        getter = getter or target.get_opacity
        setter = setter or target.set_opacity

        record = TransitionRecord(
            target=target,
            setter=setter,
            begin_value=getter(),
            end_value=end_value,
            easing=resolve_easing(easing),
            duration_ms=duration_ms,
            start_ms=self.render_loop.now(),
        )
        if not record.is_valid():
            log.debug("Transition dropped", record=record, easing=easing)
            return None

        self._records[id(target)] = record
        if self._step(record, record.start_ms):
            return None

        self.render_loop.add_tick_handler(self._on_tick)
        return record

    def cancel(self, target: Any) -> bool:
        """Stop the live transition of target (property keeps its current value)."""
        record = self._records.pop(id(target), None)
        if record is None:
            return False
        record.removed = True
        self._release_tick()
        return True

    def cancel_all(self) -> None:
        for record in self._records.values():
            record.removed = True
        self._records.clear()
        self._release_tick()

    def is_active(self, target: Any = None) -> bool:
        """True if target (or any target when None) has a live transition."""
        if target is None:
            return bool(self._records)
        return id(target) in self._records

    def active_records(self) -> List[TransitionRecord]:
        return list(self._records.values())

    async def wait_for_idle(self, poll_s: float = 0.01):
        """Wait until all transitions are complete"""
        while self._records:
            await asyncio.sleep(poll_s)

    # ============================================================
    # Stepping
    # ============================================================

    def _on_tick(self, now: float) -> None:
        for record in list(self._records.values()):
            self._step(record, now)
        self._release_tick()

    def _step(self, record: TransitionRecord, now: float) -> bool:
        """Advance one record; returns True once it is finished."""
        if record.removed:
            return True

        elapsed = now - record.start_ms
        if record.duration_ms == 0 or elapsed >= record.duration_ms:
            record.setter(record.end_value)
            record.writes += 1
            self._retire(record)
            return True

        progress = apply_easing(record.easing, max(0.0, elapsed / record.duration_ms))
        record.setter(record.begin_value + (record.end_value - record.begin_value) * progress)
        record.writes += 1
        return False

    def _retire(self, record: TransitionRecord) -> None:
        record.removed = True
        key = id(record.target)
        if self._records.get(key) is record:
            del self._records[key]

    def _release_tick(self) -> None:
        if not self._records:
            self.render_loop.remove_tick_handler(self._on_tick)

    def __repr__(self) -> str:
        return f"<TransitionService active={len(self._records)}>"
