"""
Hardware Panel - what the controller would show and read.

LED and buzzer indicators, the brush size the potentiometer is set to, and
the joystick and button as the painter last sampled them. Hidden until
revealed with P in developer mode.
"""

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from ..constants import BRUSH_SIZE_MAX, ICON_BUZZER, ICON_JOYSTICK, ICON_LED
from ..keyboard import InputState
from ..outputs import OutputState


GAUGE_WIDTH = 15


def brush_gauge(size: int, width: int = GAUGE_WIDTH) -> str:
    """Brush size as a small bar, e.g. '████░░░░░░░ 12'."""
    filled = max(1, round(size / BRUSH_SIZE_MAX * width))
    return "█" * filled + "░" * (width - filled) + f" {size}"


def joystick_text(joystick: tuple[int, int]) -> str:
    """Joystick deflection as the browser panel showed it (x100)."""
    x, y = joystick
    return f"X={x * 100}, Y={y * 100}"


class Indicator(Static):
    """A labelled on/off light."""

    DEFAULT_CSS = """
    Indicator {
        width: auto;
        height: 1;
        margin: 0 2 0 0;
        color: $text-muted;
    }

    Indicator.on {
        color: $warning;
        text-style: bold;
    }
    """

    def __init__(self, icon: str, label: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.icon = icon
        self.label = label
        self.on = False

    def set_on(self, on: bool) -> None:
        if on != self.on:
            self.on = on
            self.set_class(on, "on")
            self.refresh()

    def render(self) -> str:
        light = "●" if self.on else "○"
        return f"{self.icon} {self.label} {light}"


class HardwarePanel(Horizontal):
    """LED, buzzer, brush size and controller status in one row."""

    DEFAULT_CSS = """
    HardwarePanel {
        width: 100%;
        height: 3;
        padding: 0 1;
        border: round $primary;
        display: none;
    }

    HardwarePanel.visible {
        display: block;
    }

    #brush-gauge, #control-status {
        width: auto;
        height: 1;
        margin: 0 2 0 0;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._last: tuple | None = None

    def compose(self) -> ComposeResult:
        yield Indicator(ICON_LED, "LED", id="led-indicator")
        yield Indicator(ICON_BUZZER, "BUZZER", id="buzzer-indicator")
        yield Static("", id="brush-gauge")
        yield Static("", id="control-status")

    def set_visible(self, visible: bool) -> None:
        self.set_class(visible, "visible")

    def show(self, outputs: OutputState, brush_size: int, controls: InputState) -> None:
        """Update everything (cheap when nothing changed)."""
        current = (outputs, brush_size, controls.joystick, controls.button_down)
        if current == self._last:
            return
        self._last = current

        self.query_one("#led-indicator", Indicator).set_on(outputs.led_on)
        self.query_one("#buzzer-indicator", Indicator).set_on(outputs.buzzer_on)
        self.query_one("#brush-gauge", Static).update(f"Brush {brush_gauge(brush_size)}")
        button = "Pressed" if controls.button_down else "Not Pressed"
        self.query_one("#control-status", Static).update(
            f"{ICON_JOYSTICK} Joystick: {joystick_text(controls.joystick)}   Button: {button}"
        )
