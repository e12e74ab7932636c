"""
Render request models.

These mirror the job submission payload accepted by the (external) HTTP
surface. JSON keys are camelCase; Python attributes are snake_case. All
models are frozen: a request is read-only once parsed.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cuecast.domain.timeline import Cue, Timeline


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


def _check_hex(value: str) -> str:
    raw = value.removeprefix("#")
    if len(raw) != 6:
        raise ValueError(f"expected #RRGGBB, got {value!r}")
    int(raw, 16)
    return "#" + raw.upper()


class CueItem(_Model):
    idx: int
    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    sentence_id: Optional[int] = None


class CuesPayload(_Model):
    episode_id: Optional[int] = None
    lang: Optional[str] = None
    items: list[CueItem]
    total_ms: int = Field(default=0, ge=0)

    def to_timeline(self, lines: list[str]) -> Timeline:
        cues = [Cue(index=item.idx, start_ms=item.start_ms, end_ms=item.end_ms) for item in self.items]
        return Timeline.build(cues, lines, self.total_ms)


class Resolution(_Model):
    width: int = Field(default=1080, gt=0)
    height: int = Field(default=1920, gt=0)


class Align(str, Enum):
    LEFT = "LEFT"
    CENTER = "CENTER"


class LineStyle(_Model):
    color_hex: str = "#FFFFFF"
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    bold: bool = False

    @field_validator("color_hex")
    @classmethod
    def normalize_color(cls, value: str) -> str:
        return _check_hex(value)


class OverlayStyle(_Model):
    font_family: str = "Inter"
    font_size_px: int = Field(default=54, gt=0)
    line_spacing_px: int = Field(default=10, ge=0)
    padding_top: int = Field(default=64, ge=0)
    padding_right: int = Field(default=64, ge=0)
    padding_bottom: int = Field(default=220, ge=0)
    padding_left: int = Field(default=64, ge=0)
    outline_px: int = Field(default=2, ge=0)
    shadow: bool = True
    box_color: str = "#000000"
    box_opacity: float = Field(default=0.35, ge=0.0, le=1.0)
    align: Align = Align.CENTER
    previous: LineStyle = LineStyle(color_hex="#FFFFFF", opacity=0.55, bold=False)
    current: LineStyle = LineStyle(color_hex="#FFFFFF", opacity=1.0, bold=True)
    next: LineStyle = LineStyle(color_hex="#FFFFFF", opacity=0.7, bold=False)
    dimmed: LineStyle = LineStyle(color_hex="#FFFFFF", opacity=0.45, bold=False)

    @field_validator("box_color")
    @classmethod
    def normalize_box_color(cls, value: str) -> str:
        return _check_hex(value)


class BackgroundSpec(_Model):
    color_hex: Optional[str] = "#000000"
    image_url: Optional[str] = None

    @field_validator("color_hex")
    @classmethod
    def normalize_color(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_hex(value)


class BackgroundSpan(_Model):
    anchor_idx: int
    image_url: str


class TransitionSpec(_Model):
    type: str = "fade"
    duration_sec: float = Field(default=0.40, gt=0.0)
    center_on_boundary: bool = True


class MotionSpec(_Model):
    enabled: bool = False
    max_zoom: float = Field(default=1.10, ge=1.0)
    min_span_sec: float = Field(default=3.5, ge=0.0)


class RenderEffects(_Model):
    transition: TransitionSpec = TransitionSpec()
    motion: MotionSpec = MotionSpec()


class TextLayout(str, Enum):
    BLUR_UNDERLAY = "BLUR_UNDERLAY"
    PANEL_LEFT = "PANEL_LEFT"
    VERTICAL_ONE = "VERTICAL_ONE"


class ChangeMode(str, Enum):
    SHIFT = "SHIFT"
    REPLACE = "REPLACE"


class PanelBackground(_Model):
    color_hex: str = "#141416"
    opacity: float = Field(default=0.96, ge=0.0, le=1.0)
    divider_right: bool = True
    divider_color_hex: Optional[str] = None
    divider_opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("color_hex")
    @classmethod
    def normalize_color(cls, value: str) -> str:
        return _check_hex(value)

    @field_validator("divider_color_hex")
    @classmethod
    def normalize_divider_color(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_hex(value)


class PanelSpec(_Model):
    width_pct: float = Field(default=0.36, gt=0.0, lt=1.0)
    inner_padding_px: int = Field(default=48, ge=0)
    background: PanelBackground = PanelBackground()


class MetaHeaderSpec(_Model):
    visible: bool = True
    story_title: Optional[str] = None
    level: Optional[str] = None
    language_name: Optional[str] = None


class RenderRequest(_Model):
    audio_url: str
    cues_url: Optional[str] = None
    cues: Optional[CuesPayload] = None
    lines: list[str]
    resolution: Resolution = Resolution()
    fps: int = Field(default=30, gt=0)
    audio_bitrate_kbps: int = Field(default=192, gt=0)
    overlay_style: OverlayStyle = OverlayStyle()
    background: BackgroundSpec = BackgroundSpec()
    vertical: bool = False
    background_spans: list[BackgroundSpan] = Field(default_factory=list)
    effects: RenderEffects = RenderEffects()
    layout: Optional[TextLayout] = None
    change_mode: Optional[ChangeMode] = None
    visible_lines: Optional[int] = None
    panel: Optional[PanelSpec] = None
    meta_header: MetaHeaderSpec = MetaHeaderSpec()
