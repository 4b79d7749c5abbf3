"""
Paint Surface: the pixels, and how much of them has been painted.

The surface is a Pillow image at the fixed logical resolution. The terminal
view reads a small preview that is painted alongside the full image, so thin
strokes stay visible at any zoom. Exports are written at full size with the
palette strip composited on the left, the way it looks on screen.

Fill tracking is approximate. The default estimator adds a
fixed amount per frame of stroke activity; CoverageEstimator counts real
painted pixels instead. Either way filled_pixels only grows until reset().
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, ImageChops, ImageDraw

from .constants import (
    BACKGROUND_RGB, CANVAS_HEIGHT, CANVAS_WIDTH, EXPORT_NAME,
    FILL_INCREMENT, PALETTE_WIDTH, SWATCH_HEIGHT, TOTAL_PIXELS,
)
from .palette import COLORS, rgb_of

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# Selection outline drawn around the current swatch
SELECTION_INSET = 2
SELECTION_RGB = (255, 255, 255)


# =============================================================================
# PAINT SURFACE
# =============================================================================

class PaintSurface:
    """Fixed-size RGB canvas with round-capped line drawing."""

    def __init__(
        self,
        width: int = CANVAS_WIDTH,
        height: int = CANVAS_HEIGHT,
        background: tuple[int, int, int] = BACKGROUND_RGB,
    ) -> None:
        self.width = width
        self.height = height
        self.background = background
        self.image = Image.new("RGB", (width, height), background)
        self._draw = ImageDraw.Draw(self.image)
        # Low-resolution copy for the terminal view (created on first request)
        self._preview: Optional[Image.Image] = None
        self._preview_draw: Optional[ImageDraw.ImageDraw] = None
        # Bumped on every change so views know when to redraw
        self.revision = 0

    @staticmethod
    def _stroke(draw: ImageDraw.ImageDraw, start: Point, end: Point,
                rgb: tuple[int, int, int], width: float) -> None:
        """Line with round caps (a dot when start == end)."""
        w = max(1, int(round(width)))
        draw.line([start, end], fill=rgb, width=w)
        r = w / 2
        for x, y in (start, end):
            draw.ellipse([x - r, y - r, x + r, y + r], fill=rgb)

    def draw_segment(self, start: Point, end: Point, color: str, width: float) -> None:
        """Paint a stroke segment in a palette color."""
        rgb = rgb_of(color)
        self._stroke(self._draw, start, end, rgb, width)

        if self._preview is not None:
            sx = self._preview.width / self.width
            sy = self._preview.height / self.height
            self._stroke(
                self._preview_draw,
                (start[0] * sx, start[1] * sy),
                (end[0] * sx, end[1] * sy),
                rgb,
                max(1.0, width * min(sx, sy)),
            )
        self.revision += 1

    def clear(self) -> None:
        """Wipe everything back to the background color."""
        self._draw.rectangle([0, 0, self.width, self.height], fill=self.background)
        if self._preview is not None:
            self._preview_draw.rectangle(
                [0, 0, self._preview.width, self._preview.height], fill=self.background
            )
        self.revision += 1

    def preview(self, size: tuple[int, int]) -> Image.Image:
        """Scaled-down view of the surface, kept in sync with later strokes.

        A new size resamples from the full image; strokes after that are
        painted into the preview directly.
        """
        width, height = max(1, size[0]), max(1, size[1])
        if self._preview is None or self._preview.size != (width, height):
            self._preview = self.image.resize((width, height), Image.Resampling.NEAREST)
            self._preview_draw = ImageDraw.Draw(self._preview)
        return self._preview

    def snapshot(self, selected_index: Optional[int] = None) -> Image.Image:
        """Full-size copy with the palette strip drawn over the left edge."""
        image = self.image.copy()
        draw = ImageDraw.Draw(image)
        for i, name in enumerate(COLORS):
            top = i * SWATCH_HEIGHT
            draw.rectangle(
                [0, top, PALETTE_WIDTH - 1, top + SWATCH_HEIGHT - 1], fill=rgb_of(name)
            )
        if selected_index is not None:
            top = selected_index * SWATCH_HEIGHT + SELECTION_INSET
            draw.rectangle(
                [SELECTION_INSET, top,
                 PALETTE_WIDTH - SELECTION_INSET - 1, top + SWATCH_HEIGHT - 2 * SELECTION_INSET - 1],
                outline=SELECTION_RGB,
                width=2,
            )
        return image

    def export(self, directory: Path, selected_index: Optional[int] = None,
               name: str = EXPORT_NAME) -> Path:
        """Write the canvas as <directory>/<name>.png and return the path.

        Raises OSError if the file can't be written.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.png"
        self.snapshot(selected_index).save(path, format="PNG")
        logger.info(f"Exported canvas to {path}")
        return path

    def painted_pixels(self) -> int:
        """Count drawable-area pixels that differ from the background."""
        region = self.image.crop((PALETTE_WIDTH, 0, self.width, self.height))
        blank = Image.new("RGB", region.size, self.background)
        diff = ImageChops.difference(region, blank).convert("L")
        mask = diff.point(lambda v: 255 if v else 0)
        return mask.histogram()[255]


# =============================================================================
# FILL STATE
# =============================================================================

@dataclass
class FillState:
    """Approximate count of painted pixels, clamped to [0, total_pixels]."""
    filled_pixels: int = 0
    total_pixels: int = TOTAL_PIXELS

    def record(self, pixels: int) -> int:
        """Add painted pixels. Negative amounts are ignored."""
        if pixels > 0:
            self.filled_pixels = min(self.total_pixels, self.filled_pixels + pixels)
        return self.filled_pixels

    def record_stroke_activity(self, estimator: "FillEstimator", surface: PaintSurface) -> int:
        """Account for one frame of drawing using the given estimator."""
        return self.record(estimator.estimate(self, surface))

    def fill_ratio(self) -> float:
        """Fraction of the canvas painted, 0.0 to 1.0."""
        if self.total_pixels <= 0:
            return 0.0
        return self.filled_pixels / self.total_pixels

    def reset(self) -> None:
        self.filled_pixels = 0


class FillEstimator(Protocol):
    """Decides how many pixels one frame of stroke activity adds."""

    def estimate(self, fill: FillState, surface: PaintSurface) -> int:
        ...

    def reset(self) -> None:
        ...


class FixedIncrementEstimator:
    """Every frame of drawing counts as a fixed number of pixels."""

    def __init__(self, increment: int = FILL_INCREMENT) -> None:
        self.increment = increment

    def estimate(self, fill: FillState, surface: PaintSurface) -> int:
        return self.increment

    def reset(self) -> None:
        pass


@dataclass
class CoverageEstimator:
    """Counts painted pixels on the surface every `sample_every` frames.

    Painting white over color can lower the real count; the estimate never
    goes below what was already recorded.
    """
    sample_every: int = 30
    _frames: int = field(default=0, repr=False)

    def estimate(self, fill: FillState, surface: PaintSurface) -> int:
        self._frames += 1
        if self._frames % self.sample_every != 0:
            return 0
        return max(0, surface.painted_pixels() - fill.filled_pixels)

    def reset(self) -> None:
        self._frames = 0


def create_estimator(name: str) -> FillEstimator:
    """Estimator by config name: "fixed" (default) or "coverage"."""
    if name == "coverage":
        return CoverageEstimator()
    if name != "fixed":
        logger.warning(f"Unknown fill estimator {name!r}, using fixed")
    return FixedIncrementEstimator()
