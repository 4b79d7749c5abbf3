"""
Tests for the beat sequencer and the scheduler it runs on

A ManualScheduler stands in for Textual's timers, so every beat happens at
an exact, injected time. A RecordingVoice collects the notes instead of
playing them.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from beat_painter.music import (
    MusicEngine, beat_interval, beat_volume, fill_decile, midi_to_freq,
    notes_to_play, tempo_for,
)
from beat_painter.scheduler import ManualScheduler


class RecordingVoice:
    def __init__(self):
        self.notes = []

    def play_note(self, note, volume, duration):
        self.notes.append((note, volume, duration))


class Fill:
    """Mutable fill ratio the engine can read."""
    def __init__(self, ratio=0.0):
        self.ratio = ratio

    def __call__(self):
        return self.ratio


@pytest.fixture
def rig():
    scheduler = ManualScheduler()
    voice = RecordingVoice()
    fill = Fill()
    engine = MusicEngine(scheduler, voice, fill)
    return scheduler, voice, fill, engine


class TestHelpers:
    """Pure music math."""

    def test_midi_to_freq(self):
        assert midi_to_freq(69) == pytest.approx(440.0)
        assert midi_to_freq(60) == pytest.approx(261.63, abs=0.01)

    def test_notes_to_play(self):
        assert notes_to_play(0.0) == 1
        assert notes_to_play(0.2) == 1
        assert notes_to_play(0.5) == 2
        assert notes_to_play(0.75) == 3
        assert notes_to_play(1.0) == 4

    def test_beat_volume(self):
        assert beat_volume(0.0) == pytest.approx(0.05)
        assert beat_volume(1.0) == pytest.approx(0.15)

    def test_tempo_for(self):
        assert tempo_for(0.0) == 80
        assert tempo_for(0.35) == pytest.approx(101)
        assert tempo_for(1.0) == 140

    def test_fill_decile(self):
        assert fill_decile(0.0) == 0
        assert fill_decile(0.099) == 0
        assert fill_decile(0.1) == 1
        assert fill_decile(1.0) == 10

    def test_beat_interval(self):
        assert beat_interval(80) == pytest.approx(0.75)
        assert beat_interval(120) == pytest.approx(0.5)


class TestMusicEngine:
    """Beat cycle, chord size and tempo changes."""

    def test_first_beat_after_one_interval(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        scheduler.advance(0.74)
        assert voice.notes == []
        scheduler.advance(0.01)
        assert voice.notes == [(60, pytest.approx(0.05), 0.2)]

    def test_cycle_walks_the_scale(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        scheduler.advance(0.75 * 9)
        played = [note for note, _, _ in voice.notes]
        assert played == [60, 62, 64, 65, 67, 69, 71, 72, 60]

    def test_beat_wraps_after_eight(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        scheduler.advance(0.75 * 8)
        assert engine.current_beat == 0

    def test_fuller_canvas_plays_chords(self, rig):
        scheduler, voice, fill, engine = rig
        engine.current_beat = 3
        assert engine.beat_notes(0.75) == [65, 69, 72]
        assert engine.beat_notes(1.0) == [65, 69, 72, 62]

    def test_beat_volume_follows_fill(self, rig):
        scheduler, voice, fill, engine = rig
        fill.ratio = 0.5
        engine.last_observed_fill = 0.5
        engine.start()
        scheduler.advance(0.75)
        assert all(volume == pytest.approx(0.1) for _, volume, _ in voice.notes)
        assert len(voice.notes) == 2

    def test_decile_crossing_changes_tempo(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        fill.ratio = 0.35
        scheduler.advance(0.75)
        assert engine.bpm == pytest.approx(101)
        assert engine.last_observed_fill == 0.35
        assert engine.interval == pytest.approx(60 / 101)

    def test_same_decile_keeps_tempo(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        fill.ratio = 0.35
        scheduler.advance(0.75)
        fill.ratio = 0.39
        scheduler.advance(engine.interval)
        assert engine.bpm == pytest.approx(101)
        assert engine.last_observed_fill == 0.35

    def test_only_one_pending_tick_after_tempo_change(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        fill.ratio = 0.5
        scheduler.advance(0.75)
        assert len(scheduler.pending) == 1
        # Next beat comes at the new interval, not the old one
        count = len(voice.notes)
        scheduler.advance(60 / 110 - 0.01)
        assert len(voice.notes) == count
        scheduler.advance(0.02)
        assert len(voice.notes) > count

    def test_reset_restores_opening_state(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        fill.ratio = 0.5
        scheduler.advance(0.75 * 3)
        engine.reset()
        assert engine.bpm == 80
        assert engine.current_beat == 0
        assert engine.last_observed_fill == 0.5
        assert len(scheduler.pending) == 1

    def test_tempo_after_reset_waits_for_previous_tenth(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        fill.ratio = 0.55
        scheduler.advance(0.75)
        assert engine.bpm == pytest.approx(113)

        engine.reset()
        fill.ratio = 0.15
        scheduler.advance(0.75)
        assert engine.bpm == 80
        assert engine.last_observed_fill == 0.55

        fill.ratio = 0.65
        scheduler.advance(0.75)
        assert engine.bpm == pytest.approx(119)
        assert engine.last_observed_fill == 0.65

    def test_stop_silences(self, rig):
        scheduler, voice, fill, engine = rig
        engine.start()
        engine.stop()
        assert not engine.running
        scheduler.advance(5.0)
        assert voice.notes == []


class TestManualScheduler:
    """The deterministic clock."""

    def test_every_repeats(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.every(0.5, lambda: calls.append(scheduler.now))
        scheduler.advance(1.6)
        assert calls == [pytest.approx(0.5), pytest.approx(1.0), pytest.approx(1.5)]

    def test_after_runs_once(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.after(0.2, lambda: calls.append(1))
        scheduler.advance(1.0)
        assert calls == [1]
        assert not task.active
        assert scheduler.pending == []

    def test_zero_delay_runs_on_next_advance(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.after(0, lambda: calls.append(1))
        scheduler.advance(0)
        assert calls == [1]

    def test_cancel(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.every(0.1, lambda: calls.append(1))
        task.cancel()
        task.cancel()
        scheduler.advance(1.0)
        assert calls == []

    def test_reschedule_replaces_pending_run(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.every(1.0, lambda: calls.append(scheduler.now))
        scheduler.advance(0.5)
        task.reschedule(0.25)
        scheduler.advance(0.3)
        assert calls == [pytest.approx(0.75)]
        assert len(scheduler.pending) == 1

    def test_runs_in_due_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.after(0.3, lambda: order.append("c"))
        scheduler.after(0.1, lambda: order.append("a"))
        scheduler.after(0.2, lambda: order.append("b"))
        scheduler.advance(1.0)
        assert order == ["a", "b", "c"]
