"""UI helpers (theme, reusable widgets)."""

from .theme import BoothTheme, Palette, Spacing, Typography, rgba

__all__ = ["BoothTheme", "Palette", "Spacing", "Typography", "rgba"]
