"""
Render targets for animation frames
"""

from .renderer_interface import ITileRenderer, IRenderListener
from .virtual_renderer import VirtualRenderer, VirtualLayer
from .http_renderer import HttpTileRenderer, HttpLayer, Viewport

__all__ = [
    "ITileRenderer",
    "IRenderListener",
    "VirtualRenderer",
    "VirtualLayer",
    "HttpTileRenderer",
    "HttpLayer",
    "Viewport",
]
