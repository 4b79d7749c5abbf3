#!/usr/bin/env python3
"""
Beat Painter - Main Textual TUI Application

Paint with a joystick, hear the painting grow. A button cycles through ten
colors (each with its own note), a knob sets the brush size, and a beat
loop gets faster and fuller as the canvas fills up.

Keyboard controls:
- C: Clear the canvas
- S: Save the painting as myPainting.png
- D: Developer mode (arrow keys = joystick, space = button)
- P: Show the hardware panel (developer mode only)
- -/=: Brush size (hardware panel shown)
- Mouse: click a swatch on the left to pick its color
"""

import logging
import time

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.theme import Theme
from textual import events

from .config import Settings, load_settings
from .constants import FRAME_RATE, ICON_ERASER, ICON_SAVE, KEY_HOLD_TIMEOUT
from .hardware import HardwareError, SerialInputSource
from .input import ControlKeyEvent, ControlKeyReader
from .keyboard import (
    BUTTON_KEY, JOYSTICK_KEYS, KeyboardInputSource, KeyboardMode, detect_keyboard_mode,
)
from .modes import CanvasClicked, HardwarePanel, PaintCanvas, PaintMode
from .modes.paint_mode import DebugInstructions, StatusLine
from .painter import AppState, Painter
from .scheduler import TextualScheduler
from .sound import SoundEngine
from .surface import PaintSurface, create_estimator

logger = logging.getLogger(__name__)


class BeatPainterApp(App):
    """
    Beat Painter - a drawing toy that makes music.

    C: clear, S: save, D: developer mode, P: hardware panel
    """

    CSS = """
    Screen {
        background: $background;
    }

    #outer-container {
        width: 100%;
        height: 100%;
        align: center middle;
        background: $background;
    }

    #viewport {
        width: 100%;
        height: 100%;
        border: heavy $primary;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, settings: Settings = None, hardware: SerialInputSource = None):
        super().__init__()
        self.settings = settings or Settings()
        self._startup_warning: str | None = None

        self.sound = SoundEngine()
        self.surface = PaintSurface()
        self.keyboard = KeyboardInputSource()
        self.painter = Painter(
            surface=self.surface,
            voice=self.sound,
            scheduler=TextualScheduler(self),
            keyboard=self.keyboard,
            hardware=hardware,
            estimator=create_estimator(self.settings.fill_estimator),
            export_dir=self.settings.export_dir,
            state=AppState(debug_mode=self.settings.start_in_debug),
        )

        # evdev gives real key releases; None means terminal keys only
        self._reader: ControlKeyReader | None = None
        self._frame_timer = None

        self.register_theme(
            Theme(
                name="beat-painter-dark",
                primary="#9b7bc4",
                secondary="#7a5ca8",
                warning="#e8b04a",
                error="#c46b7b",
                success="#7bc48a",
                accent="#c4a0e8",
                background="#1e1033",
                surface="#2a1845",
                panel="#2a1845",
                dark=True,
            )
        )
        self.theme = "beat-painter-dark"

    def compose(self) -> ComposeResult:
        """Create the UI layout"""
        with Container(id="outer-container"):
            with Vertical(id="viewport"):
                yield PaintMode(self.surface, self.painter.state, id="paint-mode")
                yield HardwarePanel(id="hardware-panel")

    async def on_mount(self) -> None:
        """Called when app starts"""
        if not self.sound.init():
            logger.info("Audio unavailable, painting silently")

        if self.settings.use_evdev and detect_keyboard_mode() == KeyboardMode.LINUX_EVDEV:
            await self._start_evdev()

        self.painter.start()
        self._frame_timer = self.set_interval(1 / FRAME_RATE, self._on_frame)
        self._sync_visibility()

        if self._startup_warning:
            self.notify(self._startup_warning, title="Controller", severity="warning", timeout=8)

    async def on_unmount(self) -> None:
        """Called when app is shutting down"""
        if self._frame_timer is not None:
            self._frame_timer.stop()
            self._frame_timer = None
        self.painter.stop()
        if self._reader is not None:
            await self._reader.stop()
            self._reader = None
        self.sound.cleanup()

    async def _start_evdev(self) -> None:
        reader = ControlKeyReader(self._on_control_key)
        try:
            await reader.start()
        except (RuntimeError, OSError) as e:
            logger.warning(f"evdev unavailable, using terminal keys: {e}")
            return
        self._reader = reader
        # Real releases arrive, so held keys never expire on their own
        self.keyboard.hold_timeout = None

    def _evdev_active(self) -> bool:
        if self._reader is None:
            return False
        if not self._reader.running:
            # Device went away: back to terminal key detection
            self._reader = None
            self.keyboard.hold_timeout = KEY_HOLD_TIMEOUT
            return False
        return True

    def _on_control_key(self, event: ControlKeyEvent) -> None:
        """Arrow/space up and down straight from the keyboard device."""
        if event.pressed:
            self.keyboard.press(event.name, time.monotonic())
        else:
            self.painter.key_up(event.name)

    # -------------------------------------------------------------------------
    # Frame loop
    # -------------------------------------------------------------------------

    def _on_frame(self) -> None:
        report = self.painter.frame(time.monotonic())

        self.query_one("#paint-canvas", PaintCanvas).sync()
        self.query_one("#status-line", StatusLine).show(
            report.color, self.painter.music.bpm, self.painter.state.fill.fill_ratio()
        )
        if self.painter.state.panel_visible:
            self.query_one("#hardware-panel", HardwarePanel).show(
                report.outputs, report.size, report.input
            )

    def _sync_visibility(self) -> None:
        state = self.painter.state
        self.query_one("#debug-instructions", DebugInstructions).set_visible(state.debug_mode)
        self.query_one("#hardware-panel", HardwarePanel).set_visible(state.panel_visible)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_canvas_clicked(self, event: CanvasClicked) -> None:
        self.painter.click(event.x, event.y)

    def on_key(self, event: events.Key) -> None:
        """Handle key events at app level"""
        key = event.key
        if event.is_printable and event.character and event.character != " ":
            key = event.character

        # With evdev, arrows and space come from the device (with releases)
        if self._evdev_active() and (key in JOYSTICK_KEYS or key == BUTTON_KEY):
            event.stop()
            event.prevent_default()
            return

        state = self.painter.state
        was_debug, had_panel = state.debug_mode, state.panel_visible

        if key in ("s", "S"):
            self._save()
            used = True
        else:
            used = self.painter.key_down(key, time.monotonic())

        if key in ("c", "C"):
            self.notify("Canvas cleared", title=ICON_ERASER, timeout=2)

        if (was_debug, had_panel) != (state.debug_mode, state.panel_visible):
            self._sync_visibility()

        if used:
            event.stop()
            event.prevent_default()

    def _save(self) -> None:
        path = self.painter.save()
        if path is None:
            self.notify("Could not save the painting", title="Error", severity="error", timeout=5)
        else:
            self.notify(f"Saved {path.name}", title=ICON_SAVE, timeout=3)


def _configure_logging(level: str) -> None:
    """Route log records into Textual's devtools console."""
    from textual.logging import TextualHandler

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        handlers=[TextualHandler()],
        format="%(name)s: %(message)s",
    )


def main():
    """Entry point for Beat Painter"""
    settings = load_settings()
    _configure_logging(settings.log_level)

    hardware = None
    warning = None
    if settings.serial_port:
        try:
            hardware = SerialInputSource.open(settings.serial_port, settings.serial_baudrate)
        except HardwareError as e:
            logger.warning(str(e))
            warning = "Controller not found, use developer mode (D) to paint with the keyboard."

    app = BeatPainterApp(settings, hardware)
    app._startup_warning = warning
    app.run()


if __name__ == "__main__":
    main()
