from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OverlayStyle:
    position: str = "bottom"
    # Share of the player height between the overlay edge and the player edge.
    offset_pct: int = 23
    font_size: int = 18
    color: str = "#ffff00"
    bg_alpha: int = 204
    text_opacity: float = 1.0
    padding_px: int = 8
    border_radius: int = 4


def _clamp_pct(value: Any) -> int:
    return max(0, min(100, int(value)))


def overlay_style(settings: Any) -> OverlayStyle:
    """Derive the overlay look from settings; position is top 10% or bottom 23% of the player."""
    show_background = bool(getattr(settings, "show_background", True))
    bg_pct = _clamp_pct(getattr(settings, "bg_opacity", 80)) if show_background else 0
    position = "top" if getattr(settings, "position", "bottom") == "top" else "bottom"
    return OverlayStyle(
        position=position,
        offset_pct=10 if position == "top" else 23,
        font_size=max(8, int(getattr(settings, "translated_size", 18))),
        color=str(getattr(settings, "translated_color", "#ffff00")),
        bg_alpha=int(round(bg_pct / 100.0 * 255.0)),
        text_opacity=_clamp_pct(getattr(settings, "text_opacity", 100)) / 100.0,
        padding_px=8 if show_background else 0,
        border_radius=4 if show_background else 0,
    )


def render_translation_html(text: str) -> str:
    escaped = (text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return escaped.replace("\n", "<br>")


def panel_stylesheet(style: OverlayStyle) -> str:
    return (
        "QFrame {"
        f" background-color: rgba(0, 0, 0, {style.bg_alpha});"
        f" border-radius: {style.border_radius}px;"
        " }"
    )


def label_stylesheet(style: OverlayStyle) -> str:
    return (
        "QLabel {"
        " background: transparent;"
        f" color: {style.color};"
        f" font-size: {style.font_size}px;"
        " font-weight: bold;"
        f" padding: {style.padding_px}px {style.padding_px * 2}px;"
        " }"
    )
