"""
Transition Models

Easing catalogue and the record describing one live opacity transition.
Easing curves follow the Raphael easing formulas so fades look the same
as in browser-based map animations.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union


class Easing(Enum):
    """
    Supported easing (timing) functions

    Values are the canonical names used in configuration files.
    """
    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"
    BACK_IN = "back-in"
    BACK_OUT = "back-out"
    BOUNCE = "bounce"
    ELASTIC = "elastic"


# === Easing Functions ===
# t: normalized elapsed time (0.0-1.0) → normalized progress

def ease_linear(t: float) -> float:
    """
    Linear easing (constant speed)

    Args:
        t: Progress (0.0 = start, 1.0 = end)

    Returns:
        Factor (0.0 to 1.0) for the animated value
    """
    return t


def ease_in(t: float) -> float:
    """Power ease-in (slow start → fast end)"""
    return t ** 1.7


def ease_out(t: float) -> float:
    """Power ease-out (fast start → slow end)"""
    return t ** 0.48


def ease_in_out(t: float) -> float:
    """Cubic bezier ease-in-out solved analytically (slow start, slow end)"""
    q = 0.48 - t / 1.04
    big_q = math.sqrt(0.1734 + q * q)
    x = big_q - q
    y = -big_q - q
    x_root = math.copysign(abs(x) ** (1 / 3), x)
    y_root = math.copysign(abs(y) ** (1 / 3), y)
    s = x_root + y_root + 0.5
    return (1 - s) * 3 * s * s + s * s * s


def ease_back_in(t: float) -> float:
    """Back ease-in (pulls slightly below start before accelerating)"""
    s = 1.70158
    return t * t * ((s + 1) * t - s)


def ease_back_out(t: float) -> float:
    """Back ease-out (overshoots the end, then settles)"""
    t = t - 1
    s = 1.70158
    return t * t * ((s + 1) * t + s) + 1


def ease_elastic(t: float) -> float:
    """Elastic ease-out (damped oscillation around the end value)"""
    if t == 0 or t == 1:
        return t
    return 2 ** (-10 * t) * math.sin((t - 0.075) * (2 * math.pi) / 0.3) + 1


def ease_bounce(t: float) -> float:
    """Bounce ease-out (decaying bounces against the end value)"""
    s = 7.5625
    p = 2.75
    if t < 1 / p:
        return s * t * t
    if t < 2 / p:
        t -= 1.5 / p
        return s * t * t + 0.75
    if t < 2.5 / p:
        t -= 2.25 / p
        return s * t * t + 0.9375
    t -= 2.625 / p
    return s * t * t + 0.984375


EASING_FUNCTIONS: Mapping[Easing, Callable[[float], float]] = MappingProxyType({
    Easing.LINEAR: ease_linear,
    Easing.EASE_IN: ease_in,
    Easing.EASE_OUT: ease_out,
    Easing.EASE_IN_OUT: ease_in_out,
    Easing.BACK_IN: ease_back_in,
    Easing.BACK_OUT: ease_back_out,
    Easing.BOUNCE: ease_bounce,
    Easing.ELASTIC: ease_elastic,
})

# Short-hand names accepted in addition to the canonical values
_EASING_ALIASES: Mapping[str, Easing] = MappingProxyType({
    "<": Easing.EASE_IN,
    ">": Easing.EASE_OUT,
    "<>": Easing.EASE_IN_OUT,
    "easeIn": Easing.EASE_IN,
    "easeOut": Easing.EASE_OUT,
    "easeInOut": Easing.EASE_IN_OUT,
    "backIn": Easing.BACK_IN,
    "backOut": Easing.BACK_OUT,
})


def resolve_easing(value: Union[Easing, str, None]) -> Optional[Easing]:
    """
    Resolve an easing identifier.

    Accepts an Easing member, its canonical name ("ease-out"), the enum
    member name ("EASE_OUT") or one of the short aliases ("<", "easeIn", ...).

    Returns:
        Easing or None when the name is unknown
    """
    if isinstance(value, Easing):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Easing(value)
    except ValueError:
        pass
    if value in _EASING_ALIASES:
        return _EASING_ALIASES[value]
    return Easing.__members__.get(value)


def apply_easing(easing: Easing, t: float) -> float:
    """Evaluate the easing curve at normalized time t"""
    return EASING_FUNCTIONS[easing](t)


@dataclass(eq=False)
class TransitionRecord:
    """
    One live transition of a numeric property.

    Owned by TransitionService; a single live record per target object.
    A record marked removed is never stepped again.
    """
    target: Any
    setter: Callable[[float], None]
    begin_value: Optional[float]
    end_value: Optional[float]
    easing: Optional[Easing]
    duration_ms: Optional[float]
    start_ms: Optional[float] = None
    removed: bool = False
    writes: int = field(default=0, repr=False)

    def is_valid(self) -> bool:
        """True when every numeric input is usable and the easing is known"""
        return (
            not self.removed
            and self.setter is not None
            and _is_number(self.begin_value)
            and _is_number(self.end_value)
            and self.easing is not None
            and _is_number(self.duration_ms)
            and math.isfinite(self.duration_ms)
            and self.duration_ms >= 0
        )

    def __repr__(self):
        easing = self.easing.value if self.easing else None
        return (
            f"TransitionRecord({self.begin_value} → {self.end_value}, "
            f"{easing}, {self.duration_ms}ms)"
        )


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)
