#!/usr/bin/env python3
"""Tests for indicator outputs, tone synthesis and the panel text helpers.

Run with: pytest tests/test_outputs_sound.py -v

Synthesis is tested on raw samples; the mixer is never started.
"""

import sys
from array import array
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from beat_painter.outputs import OutputState, outputs_for
from beat_painter.palette import COLORS
from beat_painter.sound import (
    SoundEngine, finalize_samples, render_sine_loop, render_tone, to_buffer,
)
from beat_painter.modes.hardware_panel import brush_gauge, joystick_text


class TestOutputs:
    """LED and buzzer follow warm colors."""

    @pytest.mark.parametrize("color", ["red", "orange", "yellow"])
    def test_warm_colors_switch_both_on(self, color):
        assert outputs_for(color) == OutputState(led_on=True, buzzer_on=True)

    def test_other_colors_switch_both_off(self):
        for color in COLORS:
            if color not in ("red", "orange", "yellow"):
                assert outputs_for(color) == OutputState(False, False)

    def test_same_color_same_answer(self):
        assert outputs_for("green") == outputs_for("green")


class TestSynthesis:
    """Sample generation without audio hardware."""

    def test_tone_length(self):
        samples = render_tone(440.0, 0.2, sample_rate=8000)
        assert len(samples) == 1600

    def test_tone_fits_int16(self):
        samples = render_tone(261.63, 0.3, sample_rate=8000)
        assert max(abs(s) for s in samples) <= 32767
        assert max(abs(s) for s in samples) > 20000

    def test_tone_fades_to_silence(self):
        samples = render_tone(440.0, 0.2, sample_rate=8000)
        assert abs(samples[-1]) < 500

    def test_sine_loop_holds_whole_cycles(self):
        samples = render_sine_loop(500.0, sample_rate=8000, seconds=0.1)
        # 50 cycles of 16 samples each
        assert len(samples) == 800
        assert samples[0] == 0

    def test_finalize_normalizes(self):
        assert finalize_samples([0.0, 0.5, -1.0], peak_level=1.0) == [0, 16383, -32767]

    def test_finalize_silence(self):
        assert finalize_samples([0.0, 0.0]) == [0, 0]

    def test_to_buffer_interleaves(self):
        stereo = array('h')
        stereo.frombytes(to_buffer([1, 2], channels=2))
        assert list(stereo) == [1, 1, 2, 2]
        assert len(to_buffer([1, 2, 3], channels=1)) == 6


class TestSoundEngineWithoutMixer:
    """Before init (or when audio is unavailable) every call is a no-op."""

    def test_calls_are_safe(self):
        engine = SoundEngine()
        assert engine.available is False
        engine.play_note(60, 0.5, 0.3)
        engine.set_brush_tone(440.0, 0.1)
        engine.cleanup()


class TestPanelText:
    """Hardware panel helpers."""

    def test_brush_gauge(self):
        assert brush_gauge(30, width=10) == "██████████ 30"
        assert brush_gauge(1, width=10) == "█░░░░░░░░░ 1"

    def test_joystick_text(self):
        assert joystick_text((-1, 0)) == "X=-100, Y=0"
        assert joystick_text((1, 1)) == "X=100, Y=100"
