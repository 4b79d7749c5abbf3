"""
Tests for the palette model and the brush controller

Pure data and geometry, no I/O.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from beat_painter.palette import (
    COLORS, COLOR_NOTES, DEFAULT_COLOR, color_at, index_of, next_index, note_at, row_at,
)
from beat_painter.brush import Brush, Bounds, clamp
from beat_painter.constants import BRUSH_SIZE_MAX, BRUSH_SIZE_MIN, PALETTE_WIDTH


class TestPalette:
    """Colors, notes and their order."""

    def test_ten_colors_in_strip_order(self):
        assert COLORS == [
            "red", "orange", "yellow", "green", "cyan",
            "blue", "magenta", "brown", "white", "black",
        ]

    def test_notes_match_colors(self):
        assert COLOR_NOTES == [60, 62, 64, 65, 67, 69, 71, 72, 74, 76]
        assert note_at(0) == 60
        assert note_at(9) == 76

    def test_default_color_is_black(self):
        assert DEFAULT_COLOR == "black"
        assert index_of(DEFAULT_COLOR) == 9

    def test_index_of_round_trips(self):
        for i, name in enumerate(COLORS):
            assert index_of(name) == i
            assert color_at(i) == name

    def test_index_of_unknown_color_raises(self):
        with pytest.raises(ValueError):
            index_of("purple")

    def test_next_index_wraps(self):
        assert next_index(0) == 1
        assert next_index(8) == 9
        assert next_index(9) == 0


class TestRowAt:
    """Palette hit-testing: strict bounds, nothing below the strip."""

    def test_middle_of_each_swatch(self):
        for i in range(10):
            assert row_at(i * 50 + 25) == i

    def test_click_at_175_is_green(self):
        assert color_at(row_at(175)) == "green"

    def test_swatch_edges_select_nothing(self):
        assert row_at(0) is None
        assert row_at(50) is None
        assert row_at(500) is None

    def test_below_the_strip_selects_nothing(self):
        assert row_at(550) is None
        assert row_at(599) is None


class TestBrush:
    """Movement, bounds and the segment it paints."""

    def test_starts_centered_in_drawable_area(self):
        brush = Brush()
        assert brush.position == (425, 300)
        assert brush.size == 5

    def test_at_rest_does_not_move(self):
        brush = Brush()
        assert brush.advance((0, 0), 5) is False
        assert brush.position == (425, 300)

    def test_moves_by_joystick_times_speed(self):
        brush = Brush()
        assert brush.advance((1, -1), 5) is True
        assert brush.position == (430, 295)

    def test_stays_inside_bounds(self):
        brush = Brush(x=52, y=2)
        brush.advance((-1, -1), 5)
        assert brush.position == (PALETTE_WIDTH, 0)

        brush = Brush(x=798, y=598)
        brush.advance((1, 1), 5)
        assert brush.position == (800, 600)

    def test_segment_spans_previous_to_current_until_commit(self):
        brush = Brush()
        brush.advance((1, 0), 5)
        assert brush.segment == ((425, 300), (430, 300))
        brush.commit()
        assert brush.segment == ((430, 300), (430, 300))

    def test_size_is_rounded_and_clamped(self):
        brush = Brush()
        assert brush.set_size(12.4) == 12
        assert brush.set_size(0) == BRUSH_SIZE_MIN
        assert brush.set_size(99) == BRUSH_SIZE_MAX

    def test_custom_bounds(self):
        bounds = Bounds(left=0, top=0, right=10, bottom=10)
        assert bounds.contain(-5, 20) == (0, 10)

    def test_clamp(self):
        assert clamp(5, 0, 3) == 3
        assert clamp(-1, 0, 3) == 0
        assert clamp(2, 0, 3) == 2
