"""
Utility functions for tile animations
"""

from .time_utils import (
    to_epoch_ms,
    from_epoch_ms,
    to_iso,
)

__all__ = [
    'to_epoch_ms',
    'from_epoch_ms',
    'to_iso',
]
