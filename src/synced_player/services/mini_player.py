"""Mini-player placement rules: default corner, drag and resize bounds."""

from __future__ import annotations

from dataclasses import dataclass

from synced_player.services.playback_state import Point, Size


@dataclass(frozen=True)
class MiniPlayerLayout:
    """Geometry policy in host units (pixels in a browser, cells in a TUI)."""

    default_width: int = 360
    default_height: int = 202
    min_width: int = 280
    max_width: int = 600
    margin: int = 20

    @property
    def aspect(self) -> float:
        return self.default_height / self.default_width

    def default_size(self) -> Size:
        return Size(self.default_width, self.default_height)

    def default_position(self, viewport: tuple[int, int], size: Size) -> Point:
        """Bottom-right corner inset by `margin`, never past the top-left margin."""
        view_w, view_h = viewport
        x = max(self.margin, view_w - size.width - self.margin)
        y = max(self.margin, view_h - size.height - self.margin)
        return Point(x, y)

    def clamp_position(self, x: int, y: int, viewport: tuple[int, int], size: Size) -> Point:
        view_w, view_h = viewport
        max_x = max(0, view_w - size.width)
        max_y = max(0, view_h - size.height)
        return Point(_clamp(int(x), 0, max_x), _clamp(int(y), 0, max_y))

    def resize(self, width: int) -> Size:
        """Clamp width to the allowed range and derive height from the aspect."""
        bounded = _clamp(int(width), self.min_width, self.max_width)
        return Size(bounded, max(1, round(bounded * self.aspect)))


def _clamp(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(value, max_value))
