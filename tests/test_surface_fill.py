"""
Tests for the paint surface, fill tracking and PNG export

Uses Pillow for real; nothing is shown on screen.
"""

import sys
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent))

from beat_painter.constants import TOTAL_PIXELS
from beat_painter.surface import (
    CoverageEstimator, FillState, FixedIncrementEstimator, PaintSurface, create_estimator,
)


@pytest.fixture
def surface():
    return PaintSurface()


class TestPaintSurface:
    """Drawing, clearing and previews."""

    def test_starts_blank(self, surface):
        assert surface.painted_pixels() == 0
        assert surface.image.getpixel((400, 300)) == (255, 255, 255)

    def test_segment_paints_its_color(self, surface):
        surface.draw_segment((100, 100), (200, 100), "red", 5)
        assert surface.image.getpixel((150, 100)) == (255, 0, 0)
        assert surface.painted_pixels() > 0

    def test_zero_length_segment_paints_a_dot(self, surface):
        surface.draw_segment((300, 300), (300, 300), "blue", 10)
        assert surface.image.getpixel((300, 300)) == (0, 0, 255)

    def test_revision_bumps_on_change(self, surface):
        before = surface.revision
        surface.draw_segment((100, 100), (110, 100), "red", 2)
        surface.clear()
        assert surface.revision == before + 2

    def test_clear_wipes_everything(self, surface):
        surface.draw_segment((100, 100), (300, 300), "green", 20)
        surface.clear()
        assert surface.painted_pixels() == 0

    def test_preview_follows_later_strokes(self, surface):
        preview = surface.preview((80, 60))
        assert preview.size == (80, 60)
        surface.draw_segment((400, 300), (400, 300), "black", 30)
        assert surface.preview((80, 60)).getpixel((40, 30)) == (0, 0, 0)

    def test_painting_in_palette_column_is_not_counted(self, surface):
        surface.draw_segment((10, 100), (10, 200), "red", 5)
        assert surface.painted_pixels() == 0


class TestExport:
    """Saving myPainting.png."""

    def test_export_writes_png(self, surface, tmp_path):
        surface.draw_segment((100, 100), (200, 200), "magenta", 5)
        path = surface.export(tmp_path, selected_index=0)
        assert path == tmp_path / "myPainting.png"
        with Image.open(path) as image:
            assert image.format == "PNG"
            assert image.size == (800, 600)
            # Palette strip is composited on the left
            assert image.getpixel((25, 125)) == (255, 255, 0)

    def test_export_creates_directory(self, surface, tmp_path):
        target = tmp_path / "nested" / "dir"
        path = surface.export(target)
        assert path.exists()

    def test_export_failure_raises_oserror(self, surface, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        with pytest.raises(OSError):
            surface.export(blocker)


class TestFillState:
    """Approximate fill accounting."""

    def test_record_accumulates(self):
        fill = FillState()
        fill.record(5)
        fill.record(5)
        assert fill.filled_pixels == 10

    def test_record_clamps_to_total(self):
        fill = FillState(total_pixels=100)
        fill.record(250)
        assert fill.filled_pixels == 100
        assert fill.fill_ratio() == 1.0

    def test_negative_amounts_are_ignored(self):
        fill = FillState(filled_pixels=10)
        fill.record(-20)
        assert fill.filled_pixels == 10

    def test_ratio_of_empty_canvas_is_zero(self):
        assert FillState().fill_ratio() == 0.0
        assert FillState(total_pixels=0).fill_ratio() == 0.0

    def test_total_is_drawable_area(self):
        assert FillState().total_pixels == TOTAL_PIXELS == 450000

    def test_reset(self):
        fill = FillState(filled_pixels=1234)
        fill.reset()
        assert fill.filled_pixels == 0


class TestEstimators:
    """How much one frame of stroke activity counts."""

    def test_fixed_increment_adds_five_per_frame(self, surface):
        fill = FillState()
        estimator = FixedIncrementEstimator()
        for _ in range(60):
            fill.record_stroke_activity(estimator, surface)
        assert fill.filled_pixels == 300

    def test_coverage_counts_real_pixels(self, surface):
        fill = FillState()
        estimator = CoverageEstimator(sample_every=1)
        surface.draw_segment((100, 100), (200, 100), "red", 4)
        fill.record_stroke_activity(estimator, surface)
        assert fill.filled_pixels == surface.painted_pixels()

    def test_coverage_never_goes_down(self, surface):
        fill = FillState()
        estimator = CoverageEstimator(sample_every=1)
        surface.draw_segment((100, 100), (300, 100), "red", 10)
        fill.record_stroke_activity(estimator, surface)
        before = fill.filled_pixels
        # Painting white erases, but the estimate stays
        surface.draw_segment((100, 100), (300, 100), "white", 12)
        fill.record_stroke_activity(estimator, surface)
        assert fill.filled_pixels == before

    def test_coverage_samples_only_every_n_frames(self, surface):
        fill = FillState()
        estimator = CoverageEstimator(sample_every=3)
        surface.draw_segment((100, 100), (200, 100), "red", 4)
        fill.record_stroke_activity(estimator, surface)
        fill.record_stroke_activity(estimator, surface)
        assert fill.filled_pixels == 0
        fill.record_stroke_activity(estimator, surface)
        assert fill.filled_pixels > 0

    def test_create_estimator_by_name(self):
        assert isinstance(create_estimator("fixed"), FixedIncrementEstimator)
        assert isinstance(create_estimator("coverage"), CoverageEstimator)
        assert isinstance(create_estimator("bogus"), FixedIncrementEstimator)
