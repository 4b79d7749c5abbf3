"""
Painter: the application state and everything that changes it.

One AppState record holds the whole drawing session (color, brush, fill,
indicators, debug flags). The Painter owns it and is the only thing that
mutates it, from two kinds of callers:

- the frame loop, ~60 times a second: frame(now)
- discrete events: key presses, palette clicks (toggle_debug, clear, save, ...)

The music engine runs on its own timer and only reads the fill state.

Frame order matters and is fixed:
    sample input → move brush → button edge → draw → brush tone
    → indicators → fill accounting → commit brush position
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from .brush import Brush
from .constants import (
    BRUSH_PITCH_BOTTOM, BRUSH_PITCH_TOP, BRUSH_TONE_AMPLITUDE,
    BRUSH_WOBBLE_MAX, BRUSH_WOBBLE_RATE,
    CANVAS_HEIGHT, CANVAS_WIDTH, PALETTE_WIDTH,
    CLEAR_NOTE_DURATION, CLEAR_NOTE_SPACING, CLEAR_NOTE_VOLUME, CLEAR_NOTES,
    COLOR_NOTE_DURATION, COLOR_NOTE_VOLUME, JOYSTICK_SPEED,
    SAVE_NOTE_DURATION, SAVE_NOTE_SPACING, SAVE_NOTE_VOLUME, SAVE_NOTES,
)
from .keyboard import (
    BUTTON_KEY, JOYSTICK_KEYS, ButtonEdge, CombinedInputSource, Debouncer,
    InputSource, InputState, KeyboardInputSource,
)
from .music import MusicEngine
from .outputs import OutputState, outputs_for
from .palette import DEFAULT_COLOR, color_at, index_of, next_index, note_at, row_at
from .scheduler import Scheduler
from .surface import FillEstimator, FillState, FixedIncrementEstimator, PaintSurface

logger = logging.getLogger(__name__)


class PainterVoice(Protocol):
    """Audio the painter needs: single notes and the brush hum."""

    def play_note(self, note: int, volume: float, duration: float) -> None:
        ...

    def set_brush_tone(self, frequency: float, amplitude: float) -> None:
        ...


# =============================================================================
# STATE
# =============================================================================

@dataclass
class AppState:
    """Everything about the current drawing session."""
    color: str = DEFAULT_COLOR
    brush: Brush = field(default_factory=Brush)
    fill: FillState = field(default_factory=FillState)
    outputs: OutputState = field(default_factory=OutputState)
    debug_mode: bool = False
    panel_visible: bool = False
    frame_count: int = 0

    @property
    def color_index(self) -> int:
        return index_of(self.color)


@dataclass(frozen=True)
class BrushTone:
    frequency: float
    amplitude: float


@dataclass(frozen=True)
class FrameReport:
    """What one frame did, for the widgets to show."""
    segment: tuple[tuple[float, float], tuple[float, float]]
    color: str
    size: int
    tone: BrushTone
    outputs: OutputState
    input: InputState
    color_changed: bool


def remap(value: float, start1: float, stop1: float, start2: float, stop2: float) -> float:
    """Re-map a number from one range to another (not clamped)."""
    return start2 + (value - start1) * (stop2 - start2) / (stop1 - start1)


def brush_tone(x: float, y: float, frame: int) -> BrushTone:
    """Brush hum: pitch from height, a wobble that widens toward the right."""
    pitch = remap(y, 0, CANVAS_HEIGHT, BRUSH_PITCH_TOP, BRUSH_PITCH_BOTTOM)
    wobble = remap(x, PALETTE_WIDTH, CANVAS_WIDTH, 0, BRUSH_WOBBLE_MAX)
    return BrushTone(
        frequency=pitch + math.sin(frame * BRUSH_WOBBLE_RATE) * wobble,
        amplitude=BRUSH_TONE_AMPLITUDE,
    )


# =============================================================================
# PAINTER
# =============================================================================

class Painter:
    """
    Owns AppState and runs the frame loop and event handlers.

    Usage:
        painter = Painter(surface, voice, scheduler, KeyboardInputSource())
        painter.start()              # music loop
        painter.frame(now)           # every tick
        painter.key_down('c', now)   # clear
        painter.stop()
    """

    def __init__(
        self,
        surface: PaintSurface,
        voice: PainterVoice,
        scheduler: Scheduler,
        keyboard: KeyboardInputSource,
        hardware: Optional[InputSource] = None,
        estimator: Optional[FillEstimator] = None,
        export_dir: Optional[Path] = None,
        state: Optional[AppState] = None,
    ) -> None:
        self.surface = surface
        self.voice = voice
        self.scheduler = scheduler
        self.keyboard = keyboard
        self.hardware = hardware
        self.input: InputSource = CombinedInputSource(hardware, keyboard) if hardware else keyboard
        self.estimator = estimator or FixedIncrementEstimator()
        self.export_dir = Path(export_dir) if export_dir is not None else Path.cwd()
        self.state = state or AppState()

        self.button = ButtonEdge()
        self.cycle_debounce = Debouncer()
        self.music = MusicEngine(scheduler, voice, self.state.fill.fill_ratio)
        self.keyboard.enabled = self.state.debug_mode

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        self.music.start()

    def stop(self) -> None:
        self.music.stop()
        self.input.close()

    # -------------------------------------------------------------------------
    # Frame loop
    # -------------------------------------------------------------------------

    def frame(self, now: float) -> FrameReport:
        """Advance one frame."""
        state = self.state
        brush = state.brush

        controls = self.input.sample(now)

        if controls.brush_size is not None:
            brush.set_size(controls.brush_size)

        brush.advance(controls.joystick, JOYSTICK_SPEED)

        color_changed = False
        if self.button.update(controls.button_down):
            color_changed = self.cycle_color(now)

        segment = brush.segment
        self.surface.draw_segment(segment[0], segment[1], state.color, brush.size)

        tone = brush_tone(brush.x, brush.y, state.frame_count)
        self.voice.set_brush_tone(tone.frequency, tone.amplitude)

        state.outputs = outputs_for(state.color)
        self.input.send_outputs(state.outputs)

        state.fill.record_stroke_activity(self.estimator, self.surface)

        brush.commit()
        state.frame_count += 1

        return FrameReport(
            segment=segment,
            color=state.color,
            size=brush.size,
            tone=tone,
            outputs=state.outputs,
            input=controls,
            color_changed=color_changed,
        )

    # -------------------------------------------------------------------------
    # Color selection
    # -------------------------------------------------------------------------

    def select_color(self, index: int) -> str:
        """Pick a palette color and play its note once."""
        self.state.color = color_at(index)
        self.voice.play_note(note_at(index), COLOR_NOTE_VOLUME, COLOR_NOTE_DURATION)
        return self.state.color

    def cycle_color(self, now: float) -> bool:
        """Move to the next palette color, unless the last cycle was too recent."""
        if not self.cycle_debounce.check(now):
            return False
        self.select_color(next_index(self.state.color_index))
        return True

    def click(self, x: float, y: float) -> bool:
        """Mouse press at logical canvas coordinates. True if a color was picked."""
        if x >= PALETTE_WIDTH:
            return False
        row = row_at(y)
        if row is None:
            return False
        self.select_color(row)
        return True

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def toggle_debug(self) -> bool:
        """Turn the simulated controls (and their instructions) on or off."""
        state = self.state
        state.debug_mode = not state.debug_mode
        self.keyboard.enabled = state.debug_mode
        if not state.debug_mode:
            self.keyboard.release_all()
        logger.debug(f"Debug mode {'on' if state.debug_mode else 'off'}")
        return state.debug_mode

    def reveal_panel(self) -> bool:
        """Show the hardware panel (debug mode only)."""
        if self.state.debug_mode:
            self.state.panel_visible = True
        return self.state.panel_visible

    def adjust_brush_size(self, delta: int) -> int:
        """Turn the simulated potentiometer."""
        brush = self.state.brush
        return brush.set_size(brush.size + delta)

    def _play_sequence(self, notes: list[int], spacing: float,
                       volume: float, duration: float) -> None:
        """Fire-and-forget: each note on its own one-shot timer."""
        for i, note in enumerate(notes):
            self.scheduler.after(
                i * spacing,
                lambda n=note: self.voice.play_note(n, volume, duration),
            )

    def clear(self) -> None:
        """Wipe the canvas, start the fill count and the music over."""
        self.surface.clear()
        self._play_sequence(CLEAR_NOTES, CLEAR_NOTE_SPACING, CLEAR_NOTE_VOLUME, CLEAR_NOTE_DURATION)
        self.state.fill.reset()
        self.estimator.reset()
        self.music.reset()
        logger.info("Canvas cleared")

    def save(self) -> Optional[Path]:
        """Export the canvas as PNG. Returns the path, or None if writing failed."""
        try:
            path = self.surface.export(self.export_dir, self.state.color_index)
        except OSError as e:
            logger.warning(f"Could not save painting: {e}")
            return None
        self._play_sequence(SAVE_NOTES, SAVE_NOTE_SPACING, SAVE_NOTE_VOLUME, SAVE_NOTE_DURATION)
        return path

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def key_down(self, key: str, now: float) -> bool:
        """Handle a key press (or repeat). Returns True if the key was used."""
        if key in ("d", "D"):
            self.toggle_debug()
            return True

        if key in JOYSTICK_KEYS or key == BUTTON_KEY:
            # Held state is recorded always; sampling is gated by debug mode
            self.keyboard.press(key, now)
            return self.state.debug_mode

        if self.state.debug_mode and key in ("p", "P"):
            self.reveal_panel()
            return True

        if self.state.panel_visible and key in ("-", "="):
            self.adjust_brush_size(-1 if key == "-" else 1)
            return True

        if key in ("c", "C"):
            self.clear()
            return True

        if key in ("s", "S"):
            self.save()
            return True

        return False

    def key_up(self, key: str) -> None:
        """Handle a real key release (evdev)."""
        self.keyboard.release(key)
