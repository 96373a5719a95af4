"""Central theme tokens for the Kivy client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from kivy.metrics import dp

Color = Tuple[float, float, float, float]


def rgba(value: str, alpha: float = 1.0) -> Color:
    """Convert hex to normalized RGBA."""
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected 6 hex chars, got {value!r}")
    r = int(value[0:2], 16) / 255.0
    g = int(value[2:4], 16) / 255.0
    b = int(value[4:6], 16) / 255.0
    return (r, g, b, alpha)


@dataclass(frozen=True)
class Palette:
    background: Color
    surface: Color
    surface_alt: Color
    card: Color
    outline: Color
    accent: Color
    accent_muted: Color
    meter_low: Color
    meter_high: Color
    recording: Color
    paused: Color
    text_primary: Color
    text_secondary: Color
    text_muted: Color


@dataclass(frozen=True)
class Typography:
    clock: str
    title: str
    body: str
    caption: str


@dataclass(frozen=True)
class Spacing:
    grid: float
    section: float
    card_padding: float
    meter_height: float


@dataclass(frozen=True)
class BoothTheme:
    palette: Palette
    typography: Typography
    spacing: Spacing

    def meter_color(self, level: float) -> Color:
        """Blend from low to high meter colour for a 0-100 level."""
        t = max(0.0, min(float(level), 100.0)) / 100.0
        low, high = self.palette.meter_low, self.palette.meter_high
        return tuple(lo + (hi - lo) * t for lo, hi in zip(low, high))  # type: ignore[return-value]

    @staticmethod
    def default() -> "BoothTheme":
        palette = Palette(
            background=rgba("#10100E"),
            surface=rgba("#1A1915"),
            surface_alt=rgba("#24221C"),
            card=rgba("#2B2821"),
            outline=rgba("#4A4538"),
            accent=rgba("#D9A441"),
            accent_muted=rgba("#E8C27A"),
            meter_low=rgba("#5FB87A"),
            meter_high=rgba("#E0584B"),
            recording=rgba("#E0584B"),
            paused=rgba("#D9A441"),
            text_primary=rgba("#F6F1E7"),
            text_secondary=rgba("#CFC6B4"),
            text_muted=rgba("#8C8473"),
        )
        typography = Typography(
            clock="H3",
            title="H5",
            body="Body1",
            caption="Caption",
        )
        spacing = Spacing(
            grid=dp(12),
            section=dp(18),
            card_padding=dp(20),
            meter_height=dp(14),
        )
        return BoothTheme(palette=palette, typography=typography, spacing=spacing)


__all__ = ["BoothTheme", "Palette", "Typography", "Spacing", "rgba"]
