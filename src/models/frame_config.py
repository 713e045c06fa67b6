"""
Frame configuration models

Immutable configuration values for animation frames:

✔ WmsSource / WmtsSource - tile service endpoint of a frame
✔ FrameConfig            - one frame (source + time + presentation hints)
✔ AnimationSettings      - period, loading and fading behaviour of the animation

Per-frame configs are produced once, at window-load time, by specialize().
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from models.enums import SourceType
from models.errors import ConfigurationError
from models.transition import Easing
from utils.time_utils import to_epoch_ms, to_iso

LegendFlag = Union[bool, str, None]


def _frozen_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


# =====================================================================
# Tile service sources
# =====================================================================

@dataclass(frozen=True)
class WmsSource:
    """
    WMS endpoint. params go to GetMap requests; "layers" is mandatory.
    """

    url: str
    params: Mapping[str, Any] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)

    type = SourceType.WMS

    def __post_init__(self):
        object.__setattr__(self, "params", _frozen_mapping(self.params))
        object.__setattr__(self, "options", _frozen_mapping(self.options))

    @property
    def layer(self) -> Optional[str]:
        return self.params.get("layers")


@dataclass(frozen=True)
class WmtsSource:
    """
    WMTS endpoint. params are extra KVP parameters for GetTile requests.
    """

    url: str
    layer: str
    style: str = "default"
    matrix_set: str = ""
    format: str = "image/png"
    params: Mapping[str, Any] = field(default_factory=dict)

    type = SourceType.WMTS

    def __post_init__(self):
        object.__setattr__(self, "params", _frozen_mapping(self.params))


FrameSource = Union[WmsSource, WmtsSource]


# =====================================================================
# Frame configuration
# =====================================================================

@dataclass(frozen=True)
class FrameConfig:
    """
    Configuration of one animation frame.

    Use FrameConfig.wms(...) or FrameConfig.wmts(...) to build one; the base
    config of an animation has time=None, per-frame clones carry their ISO time.
    """

    source: FrameSource
    name: Optional[str] = None
    has_legend: LegendFlag = None
    time: Optional[str] = None
    grid_buffer: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.source, (WmsSource, WmtsSource)):
            raise ConfigurationError("Frame source must be a WMS or WMTS source")
        if not self.source.url:
            raise ConfigurationError("Frame source URL is required")
        if not self.source.layer:
            raise ConfigurationError("Frame source layer is required")

    # ------------------------------------------------------------
    # Variant constructors
    # ------------------------------------------------------------

    @classmethod
    def wms(
        cls,
        url: str,
        layers: str,
        params: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        has_legend: LegendFlag = None,
    ) -> "FrameConfig":
        merged = dict(params or {})
        merged["layers"] = layers
        merged.setdefault("transparent", True)
        merged.setdefault("format", "image/png")
        return cls(
            source=WmsSource(url=url, params=merged, options=options or {}),
            name=name,
            has_legend=has_legend,
        )

    @classmethod
    def wmts(
        cls,
        url: str,
        layer: str,
        style: str = "default",
        matrix_set: str = "",
        format: str = "image/png",
        params: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        has_legend: LegendFlag = None,
    ) -> "FrameConfig":
        return cls(
            source=WmtsSource(
                url=url,
                layer=layer,
                style=style,
                matrix_set=matrix_set,
                format=format,
                params=params or {},
            ),
            name=name,
            has_legend=has_legend,
        )

    # ------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------

    @property
    def source_type(self) -> SourceType:
        return self.source.type

    @property
    def layer(self) -> Optional[str]:
        return self.source.layer

    @property
    def time_ms(self) -> Optional[int]:
        return to_epoch_ms(self.time)

    def with_layer(self, layer: Optional[str]) -> "FrameConfig":
        """Return a copy using another layer id (no-op for empty ids)"""
        if not layer:
            return self
        if isinstance(self.source, WmtsSource):
            return replace(self, source=replace(self.source, layer=layer))
        params = dict(self.source.params)
        params["layers"] = layer
        return replace(self, source=replace(self.source, params=params))


# =====================================================================
# Animation settings
# =====================================================================

@dataclass(frozen=True)
class TimeRangedLayer:
    """
    Layer override for a period of the animation.

    end_time None means every time after begin_time is included.
    """

    begin_time: int
    end_time: Optional[int] = None
    layer: Optional[str] = None
    name: Optional[str] = None
    has_legend: LegendFlag = None

    def contains(self, time_ms: int) -> bool:
        if self.begin_time > time_ms:
            return False
        return self.end_time is None or self.end_time >= time_ms


@dataclass(frozen=True)
class FadeSettings:
    """Opacity transition settings for fade in or fade out"""

    time_ms: Optional[float] = None
    easing: Optional[Easing] = None
    # Fade-out only: opacity steps, most recently replaced frame first
    opacities: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class AnimationSettings:
    """Animation period, loading and playback settings"""

    name: Optional[str] = None
    has_legend: LegendFlag = None
    layers: Tuple[TimeRangedLayer, ...] = ()

    begin_time: Optional[int] = None
    end_time: Optional[int] = None
    resolution_time: Optional[int] = None

    max_async_load_count: Optional[int] = None
    auto_load: bool = False

    frame_rate: Optional[int] = None
    auto_start: bool = False

    fade_in: FadeSettings = field(default_factory=FadeSettings)
    fade_out: FadeSettings = field(default_factory=FadeSettings)

    def layer_override(self, time_ms: int) -> Optional[TimeRangedLayer]:
        """First time-ranged override covering time_ms"""
        for info in self.layers:
            if info is not None and info.contains(time_ms):
                return info
        return None


def specialize(
    base: FrameConfig,
    settings: Optional[AnimationSettings],
    time_ms: int,
    grid_buffer: Optional[int] = 1,
) -> FrameConfig:
    """
    Build the config of the frame at time_ms from the animation base config.

    - time is set to the ISO-8601 UTC string of time_ms
    - grid buffer is filled in only when the base leaves it unset
    - layer id, name and legend flag come from the first matching
      time-ranged override, falling back to the animation level values
    """
    settings = settings or AnimationSettings()
    config = replace(base, time=to_iso(time_ms))

    if config.grid_buffer is None and grid_buffer is not None and grid_buffer >= 0:
        config = replace(config, grid_buffer=grid_buffer)

    name = settings.name if settings.name is not None else config.name
    has_legend = settings.has_legend if settings.has_legend is not None else config.has_legend

    override = settings.layer_override(time_ms)
    if override is not None:
        config = config.with_layer(override.layer)
        if override.name is not None:
            name = override.name
        if override.has_legend is not None:
            has_legend = override.has_legend

    return replace(config, name=name, has_legend=has_legend)
