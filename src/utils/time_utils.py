"""
Time helpers - normalization of frame timestamps

Frames are keyed by integer epoch milliseconds. Callers may pass datetimes,
integers/floats (epoch ms) or ISO-8601 strings; anything else is rejected
by returning None.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

TimeValue = Union[datetime, int, float, str]


def to_epoch_ms(value) -> Optional[int]:
    """
    Normalize a time value to epoch milliseconds.

    Naive datetimes are treated as UTC.

    Returns:
        int milliseconds, or None if the value is missing or not a valid time
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(round(value.timestamp() * 1000))

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            from_epoch_ms(value)
        except (OverflowError, ValueError, OSError):
            # outside the range datetime can represent
            return None
        return int(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_epoch_ms(datetime.fromisoformat(text))
        except ValueError:
            return None

    return None


def from_epoch_ms(ms: int) -> datetime:
    """Epoch milliseconds → aware UTC datetime"""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def to_iso(ms: int) -> str:
    """Epoch milliseconds → ISO-8601 UTC string with millisecond precision ("...Z")"""
    return from_epoch_ms(ms).isoformat(timespec="milliseconds").replace("+00:00", "Z")
