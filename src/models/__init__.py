"""
Models package - Data models for tile animations
"""

from .enums import FrameState, SourceType, RendererType, LogLevel, LogCategory
from .errors import ConfigurationError
from .transition import Easing, TransitionRecord
from .frame_config import FrameConfig, WmsSource, WmtsSource, AnimationSettings, FadeSettings, TimeRangedLayer

__all__ = [
    'FrameState',
    'SourceType',
    'RendererType',
    'LogLevel',
    'LogCategory',
    'ConfigurationError',
    'Easing',
    'TransitionRecord',
    'FrameConfig',
    'WmsSource',
    'WmtsSource',
    'AnimationSettings',
    'FadeSettings',
    'TimeRangedLayer',
]
