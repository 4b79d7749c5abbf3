"""
Music Engine: a beat loop that grows with the painting.

An eight-beat cycle runs on its own timer, independent of the frame loop.
Every beat it looks at how full the canvas is:

- emptier canvas: one quiet note per beat
- fuller canvas: up to four notes, louder
- each time the fill crosses into a new tenth, the tempo is recalculated
  (80 bpm empty, up to 140 bpm full) and the timer is rescheduled right away

Notes are handed to a Voice (see sound.py); this module never touches audio.
"""

import logging
import math
from typing import Callable, Optional, Protocol, Sequence

from .constants import (
    BASE_BPM, BEAT_BASE_VOLUME, BEAT_NOTE_DURATION, BEAT_VOLUME_RANGE,
    BEATS_PER_CYCLE, BPM_RANGE, MAX_CHORD_NOTES, SCALE_NOTES,
)
from .scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class Voice(Protocol):
    """Anything that can play a note (MIDI number) for a while."""

    def play_note(self, note: int, volume: float, duration: float) -> None:
        ...


# =============================================================================
# PURE HELPERS
# =============================================================================

def midi_to_freq(note: float) -> float:
    """MIDI note number to frequency in Hz (A4 = 69 = 440 Hz)."""
    return 440.0 * math.pow(2, (note - 69) / 12)


def notes_to_play(fill: float) -> int:
    """Chord size for a fill ratio: at least one note, four when full."""
    return max(1, math.floor(fill * MAX_CHORD_NOTES))


def beat_volume(fill: float) -> float:
    """Volume for beat notes: 0.05 on an empty canvas, 0.15 when full."""
    return BEAT_BASE_VOLUME + fill * BEAT_VOLUME_RANGE


def tempo_for(fill: float) -> float:
    """Tempo in bpm for a fill ratio: 80 empty, 140 full."""
    return BASE_BPM + fill * BPM_RANGE


def fill_decile(fill: float) -> int:
    """Which tenth of the canvas the fill ratio is in (0-10)."""
    return math.floor(fill * 10)


def beat_interval(bpm: float) -> float:
    """Seconds between beats."""
    return 60.0 / bpm


# =============================================================================
# ENGINE
# =============================================================================

class MusicEngine:
    """
    Beat sequencer driven by a cancellable repeating task.

    Usage:
        engine = MusicEngine(scheduler, voice, fill.fill_ratio)
        engine.start()
        ...
        engine.reset()   # canvas cleared
        engine.stop()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        voice: Voice,
        fill_ratio: Callable[[], float],
        notes: Sequence[int] = SCALE_NOTES,
    ) -> None:
        self._scheduler = scheduler
        self._voice = voice
        self._fill_ratio = fill_ratio
        self.notes = list(notes)
        self.bpm: float = BASE_BPM
        self.current_beat = 0
        self.last_observed_fill = 0.0
        self._task: Optional[ScheduledTask] = None

    @property
    def interval(self) -> float:
        return beat_interval(self.bpm)

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.active

    def start(self) -> None:
        """Start (or restart) the beat timer at the current tempo.

        Any pending tick is cancelled first: there is never more than one.
        """
        if self._task is None:
            self._task = self._scheduler.every(self.interval, self.tick)
        else:
            self._task.reschedule(self.interval)
        logger.debug(f"Music loop at {self.bpm:.1f} bpm")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()

    def beat_notes(self, fill: float) -> list[int]:
        """Notes for the current beat at this fill ratio."""
        count = notes_to_play(fill)
        return [
            self.notes[(self.current_beat + i * 2) % len(self.notes)]
            for i in range(count)
        ]

    def tick(self) -> None:
        """Play one beat, advance the cycle, and retune on a decile crossing."""
        fill = self._fill_ratio()

        volume = beat_volume(fill)
        for note in self.beat_notes(fill):
            self._voice.play_note(note, volume, BEAT_NOTE_DURATION)

        self.current_beat = (self.current_beat + 1) % BEATS_PER_CYCLE

        if fill_decile(fill) > fill_decile(self.last_observed_fill):
            self.bpm = tempo_for(fill)
            self.last_observed_fill = fill
            self.start()

    def reset(self) -> None:
        """Back to the opening tempo, from the top of the cycle.

        The last observed fill is kept: the tempo only rises again once the
        new painting passes the tenth that last changed it.
        """
        self.bpm = BASE_BPM
        self.current_beat = 0
        self.start()
