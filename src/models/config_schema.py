"""
Config schemas - Pydantic models validating animation YAML documents
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from models.transition import resolve_easing

# YAML gives datetimes for unquoted ISO timestamps, ints for epoch milliseconds
ConfigTime = Union[int, datetime]
Opacity = Annotated[float, Field(ge=0, le=1)]


class WmsSchema(BaseModel):
    """WMS frame source"""
    url: str = Field(min_length=1, description="GetMap endpoint")
    layers: str = Field(min_length=1, description="WMS layer id(s), comma separated")
    params: Dict[str, Any] = Field(default_factory=dict, description="Extra GetMap parameters")
    options: Dict[str, Any] = Field(default_factory=dict, description="Render options")


class WmtsSchema(BaseModel):
    """WMTS frame source (KVP GetTile)"""
    url: str = Field(min_length=1)
    layer: str = Field(min_length=1)
    style: str = "default"
    matrix_set: str = ""
    format: str = "image/png"
    params: Dict[str, Any] = Field(default_factory=dict)


class TimeRangedLayerSchema(BaseModel):
    """Layer override for a period; missing end_time means open-ended"""
    begin_time: ConfigTime
    end_time: Optional[ConfigTime] = None
    layer: Optional[str] = None
    name: Optional[str] = None
    has_legend: Optional[Union[bool, str]] = None


class FadeSchema(BaseModel):
    """Fade in / fade out transition"""
    time: Optional[float] = Field(None, ge=0, description="Duration in milliseconds")
    easing: Optional[str] = Field(None, description="Easing name, e.g. 'ease-out'")
    opacities: Optional[List[Opacity]] = Field(
        None,
        description="Fade-out steps, most recently replaced frame first"
    )

    @field_validator("easing")
    @classmethod
    def known_easing(cls, value):
        if value is not None and resolve_easing(value) is None:
            raise ValueError(f"unknown easing '{value}'")
        return value


class AnimationSchema(BaseModel):
    """Animation period, loading and playback"""
    name: Optional[str] = None
    has_legend: Optional[Union[bool, str]] = None
    layers: List[TimeRangedLayerSchema] = Field(default_factory=list)

    begin_time: Optional[ConfigTime] = None
    end_time: Optional[ConfigTime] = None
    resolution_time: Optional[int] = Field(None, ge=1, description="Frame interval in milliseconds")

    max_async_load_count: Optional[int] = Field(None, description="Concurrent loads; <= 0 unbounded")
    auto_load: bool = False
    auto_start: bool = False
    frame_rate: Optional[int] = Field(None, ge=0, description="Milliseconds between frames")

    fade_in: FadeSchema = Field(default_factory=FadeSchema)
    fade_out: FadeSchema = Field(default_factory=FadeSchema)


class ViewportSchema(BaseModel):
    bbox: List[float] = Field(
        default_factory=lambda: [-20037508.34, -20037508.34, 20037508.34, 20037508.34],
        min_length=4,
        max_length=4,
    )
    width: int = Field(256, ge=1)
    height: int = Field(256, ge=1)
    crs: str = "EPSG:3857"


class RuntimeSchema(BaseModel):
    """Settings of the demo runner"""
    renderer: Literal["virtual", "http"] = "virtual"
    latency_ms: float = Field(50, ge=0)
    fps: int = Field(60, ge=1, le=240)
    run_seconds: float = Field(10, ge=0)
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"
    viewport: ViewportSchema = Field(default_factory=ViewportSchema)


class AnimationLayerSchema(BaseModel):
    """Complete animation layer document"""
    name: Optional[str] = None
    has_legend: Optional[Union[bool, str]] = None
    grid_buffer: Optional[int] = Field(None, ge=0)

    wms: Optional[WmsSchema] = None
    wmts: Optional[WmtsSchema] = None

    animation: AnimationSchema
    runtime: RuntimeSchema = Field(default_factory=RuntimeSchema)

    @model_validator(mode="after")
    def validate_source(self):
        if (self.wms is None) == (self.wmts is None):
            raise ValueError("exactly one of 'wms' or 'wmts' is required")
        return self
