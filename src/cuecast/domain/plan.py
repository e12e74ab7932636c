"""
Resolved render plan.

A RenderRequest carries many optional knobs. `resolve_plan` settles every
one of them once, at job start, into a frozen RenderPlan that the layout
engines, the emitter and the compositor read without re-defaulting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cuecast.domain.request import (
    ChangeMode,
    MetaHeaderSpec,
    OverlayStyle,
    PanelSpec,
    RenderEffects,
    RenderRequest,
    TextLayout,
)
from cuecast.exceptions import InputValidationError

DEFAULT_VISIBLE_LINES_PANEL = 8
DEFAULT_VISIBLE_LINES_UNDERLAY = 3


class LayoutKind(str, Enum):
    TRIPTYCH = "triptych"
    SINGLE_LINE = "single_line"
    PAGINATED = "paginated"


@dataclass(frozen=True)
class Canvas:
    width: int
    height: int
    fps: int


@dataclass(frozen=True)
class Region:
    """Horizontal text band used by the paginated layout."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class RenderPlan:
    canvas: Canvas
    text_layout: TextLayout
    change_mode: ChangeMode
    layout: LayoutKind
    style: OverlayStyle
    effects: RenderEffects
    visible_lines: int
    panel: PanelSpec | None
    meta_header: MetaHeaderSpec
    background_color: str
    audio_bitrate_kbps: int
    min_wrap_chars: int = 12

    @property
    def text_width(self) -> int:
        """Usable width for free-standing (non-panel) text."""
        return max(1, self.canvas.width - self.style.padding_left - self.style.padding_right)

    def panel_width(self) -> int:
        if self.panel is None:
            return 0
        return int(round(self.canvas.width * self.panel.width_pct))

    def text_region(self) -> Region:
        """Region for paginated text: the left panel or the bottom band."""
        style = self.style
        if self.text_layout is TextLayout.PANEL_LEFT and self.panel is not None:
            pad = self.panel.inner_padding_px
            return Region(
                x=pad,
                y=style.padding_top,
                width=max(1, self.panel_width() - 2 * pad),
                height=max(1, self.canvas.height - style.padding_top - style.padding_bottom),
            )
        line_height = style.font_size_px + style.line_spacing_px
        band_height = line_height * self.visible_lines
        return Region(
            x=style.padding_left,
            y=max(0, self.canvas.height - style.padding_bottom - band_height),
            width=self.text_width,
            height=band_height,
        )


def _resolve_layout(request: RenderRequest) -> tuple[TextLayout, ChangeMode, LayoutKind]:
    text_layout = request.layout
    if text_layout is None:
        text_layout = TextLayout.VERTICAL_ONE if request.vertical else TextLayout.BLUR_UNDERLAY

    change_mode = request.change_mode
    if change_mode is None:
        change_mode = ChangeMode.SHIFT if text_layout is TextLayout.BLUR_UNDERLAY else ChangeMode.REPLACE

    if text_layout is TextLayout.VERTICAL_ONE:
        return text_layout, change_mode, LayoutKind.SINGLE_LINE
    if text_layout is TextLayout.PANEL_LEFT:
        if change_mode is ChangeMode.SHIFT:
            raise InputValidationError("changeMode SHIFT is only supported with the BLUR_UNDERLAY layout")
        return text_layout, change_mode, LayoutKind.PAGINATED
    if text_layout is TextLayout.BLUR_UNDERLAY:
        if change_mode is ChangeMode.SHIFT:
            return text_layout, change_mode, LayoutKind.TRIPTYCH
        return text_layout, change_mode, LayoutKind.PAGINATED
    raise InputValidationError(f"unsupported layout: {text_layout}")


def resolve_plan(request: RenderRequest, *, min_wrap_chars: int = 12) -> RenderPlan:
    text_layout, change_mode, kind = _resolve_layout(request)

    visible_lines = request.visible_lines
    if visible_lines is None:
        visible_lines = (
            DEFAULT_VISIBLE_LINES_PANEL
            if text_layout is TextLayout.PANEL_LEFT
            else DEFAULT_VISIBLE_LINES_UNDERLAY
        )
    if visible_lines <= 0:
        raise InputValidationError(f"visibleLines must be positive, got {visible_lines}")

    panel = request.panel
    if text_layout is TextLayout.PANEL_LEFT and panel is None:
        panel = PanelSpec()

    return RenderPlan(
        canvas=Canvas(
            width=request.resolution.width,
            height=request.resolution.height,
            fps=request.fps,
        ),
        text_layout=text_layout,
        change_mode=change_mode,
        layout=kind,
        style=request.overlay_style,
        effects=request.effects,
        visible_lines=visible_lines,
        panel=panel if text_layout is TextLayout.PANEL_LEFT else None,
        meta_header=request.meta_header,
        background_color=request.background.color_hex or "#000000",
        audio_bitrate_kbps=request.audio_bitrate_kbps,
        min_wrap_chars=min_wrap_chars,
    )
