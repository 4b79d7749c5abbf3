"""
Brush: where the paint goes next.

The joystick nudges the brush a few pixels per frame. Each frame paints the
segment from where the brush was to where it is now, so the previous position
must survive until that segment has been drawn:

    brush.advance(joystick, speed)
    surface.draw_segment(*brush.segment, ...)
    brush.commit()

Committing before drawing would paint zero-length segments.
"""

from dataclasses import dataclass

from .constants import (
    BRUSH_SIZE_DEFAULT, BRUSH_SIZE_MAX, BRUSH_SIZE_MIN,
    BRUSH_START_X, BRUSH_START_Y,
    CANVAS_HEIGHT, CANVAS_WIDTH, PALETTE_WIDTH,
)


def clamp(value: float, low: float, high: float) -> float:
    """Constrain value to [low, high]."""
    return max(low, min(high, value))


@dataclass(frozen=True)
class Bounds:
    """Rectangle the brush may occupy (edges included)."""
    left: float = PALETTE_WIDTH
    top: float = 0
    right: float = CANVAS_WIDTH
    bottom: float = CANVAS_HEIGHT

    def contain(self, x: float, y: float) -> tuple[float, float]:
        return clamp(x, self.left, self.right), clamp(y, self.top, self.bottom)


DRAWABLE_BOUNDS = Bounds()


@dataclass
class Brush:
    """Brush position, size, and the position it had before this frame."""
    x: float = BRUSH_START_X
    y: float = BRUSH_START_Y
    size: int = BRUSH_SIZE_DEFAULT
    previous_x: float = BRUSH_START_X
    previous_y: float = BRUSH_START_Y
    bounds: Bounds = DRAWABLE_BOUNDS

    def advance(self, joystick: tuple[int, int], speed: float) -> bool:
        """Move by joystick * speed, staying inside the bounds.

        Returns True if the joystick was deflected. A joystick at rest leaves
        the brush where it is.
        """
        dx, dy = joystick
        if dx == 0 and dy == 0:
            return False
        self.x, self.y = self.bounds.contain(self.x + dx * speed, self.y + dy * speed)
        return True

    def commit(self) -> None:
        """Remember the current position as the start of the next segment."""
        self.previous_x = self.x
        self.previous_y = self.y

    def set_size(self, value: float) -> int:
        """Set brush size, clamped to the potentiometer range."""
        self.size = int(clamp(round(value), BRUSH_SIZE_MIN, BRUSH_SIZE_MAX))
        return self.size

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def segment(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Stroke for this frame: previous position to current position."""
        return (self.previous_x, self.previous_y), (self.x, self.y)
