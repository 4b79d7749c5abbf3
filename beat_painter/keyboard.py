"""
Beat Painter: Input Sources and Button Handling

Everything that turns key presses (or a real microcontroller) into the
joystick/button state the frame loop reads:
- InputState: one frame's worth of joystick, button, and potentiometer
- InputSource: interface with a keyboard-simulated and a hardware variant
- ButtonEdge: one press per down-transition, however long the button is held
- Debouncer: minimum time between two accepted actions

On Linux with evdev: the keyboard source gets true key releases
On other terminals: held keys expire when auto-repeat stops (reduced robustness)
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import COLOR_CYCLE_DEBOUNCE, KEY_HOLD_TIMEOUT
from .outputs import OutputState


# ============================================================================
# Input State
# ============================================================================

@dataclass(frozen=True)
class InputState:
    """
    Controls as read for one frame.

    Attributes:
        joystick: (dx, dy), each -1, 0 or 1
        button_down: True while the button is held
        brush_size: potentiometer reading mapped to brush size, None if no pot
    """
    joystick: tuple[int, int] = (0, 0)
    button_down: bool = False
    brush_size: Optional[int] = None

    @property
    def at_rest(self) -> bool:
        return self.joystick == (0, 0)


IDLE_INPUT = InputState()


class InputSource:
    """
    Where InputState comes from. The frame loop doesn't care which one.

    Subclasses override sample(); send_outputs() and close() are optional.
    """

    def sample(self, now: float) -> InputState:
        return IDLE_INPUT

    def send_outputs(self, outputs: OutputState) -> None:
        """Mirror LED/buzzer state to the device, if there is one."""

    def close(self) -> None:
        """Release any device handles."""


# ============================================================================
# Simulated Controls (keyboard)
# ============================================================================

JOYSTICK_KEYS = ("left", "right", "up", "down")
BUTTON_KEY = "space"


class KeyboardInputSource(InputSource):
    """
    Arrow keys as the joystick, space as the button.

    Only active while `enabled` is True (debug mode); otherwise every sample
    is at rest.

    Two ways keys get released:
    - release() from a source with real key-up events (evdev)
    - expiry: with `hold_timeout` set, a key not re-pressed within the
      timeout counts as released (terminals only send repeats, never releases)

    Usage:
        source = KeyboardInputSource(hold_timeout=0.5)
        source.enabled = True
        source.press('left', timestamp=0.0)
        source.sample(0.1).joystick   # (-1, 0)
        source.sample(0.7).joystick   # (0, 0), no repeat arrived
    """

    def __init__(self, hold_timeout: Optional[float] = KEY_HOLD_TIMEOUT) -> None:
        self.enabled = False
        self.hold_timeout = hold_timeout
        # key name -> time of last press/repeat
        self._held: dict[str, float] = {}

    def press(self, key: str, timestamp: Optional[float] = None) -> bool:
        """Record a key press or auto-repeat. Returns False for keys we ignore."""
        if key not in JOYSTICK_KEYS and key != BUTTON_KEY:
            return False
        if timestamp is None:
            timestamp = time.monotonic()
        self._held[key] = timestamp
        return True

    def release(self, key: str) -> None:
        self._held.pop(key, None)

    def release_all(self) -> None:
        self._held.clear()

    def is_held(self, key: str, now: float) -> bool:
        if key not in self._held:
            return False
        if self.hold_timeout is not None and now - self._held[key] > self.hold_timeout:
            del self._held[key]
            return False
        return True

    def sample(self, now: float) -> InputState:
        if not self.enabled:
            return IDLE_INPUT

        # Opposite directions: left beats right, up beats down
        dx = 0
        if self.is_held("left", now):
            dx = -1
        elif self.is_held("right", now):
            dx = 1

        dy = 0
        if self.is_held("up", now):
            dy = -1
        elif self.is_held("down", now):
            dy = 1

        return InputState(joystick=(dx, dy), button_down=self.is_held(BUTTON_KEY, now))


class CombinedInputSource(InputSource):
    """
    Hardware and simulated controls together.

    A deflected hardware joystick wins over the keyboard; the button is down
    if either says so. Outputs go to every source.
    """

    def __init__(self, *sources: InputSource) -> None:
        self.sources = list(sources)

    def sample(self, now: float) -> InputState:
        joystick = (0, 0)
        button_down = False
        brush_size = None
        for source in self.sources:
            state = source.sample(now)
            if joystick == (0, 0) and not state.at_rest:
                joystick = state.joystick
            button_down = button_down or state.button_down
            if state.brush_size is not None:
                brush_size = state.brush_size
        return InputState(joystick=joystick, button_down=button_down, brush_size=brush_size)

    def send_outputs(self, outputs: OutputState) -> None:
        for source in self.sources:
            source.send_outputs(outputs)

    def close(self) -> None:
        for source in self.sources:
            source.close()


# ============================================================================
# Button Edge & Debounce
# ============================================================================

class ButtonEdge:
    """
    Turns a held button into a single press.

    Usage:
        edge = ButtonEdge()
        edge.update(True)    # True (pressed)
        edge.update(True)    # False (still held)
        edge.update(False)   # False (released)
        edge.update(True)    # True (pressed again)
    """

    def __init__(self) -> None:
        self.last_state = False

    def update(self, down: bool) -> bool:
        """Feed the current button state. Returns True on a down-transition."""
        if down and not self.last_state:
            self.last_state = True
            return True
        if not down:
            self.last_state = False
        return False

    def reset(self) -> None:
        self.last_state = False


class Debouncer:
    """
    Accepts an action only if `window` seconds passed since the last accepted one.

    Pure logic class with no I/O. Timestamp is injected for deterministic testing.

    Usage:
        debounce = Debouncer(window=0.3)
        debounce.check(timestamp=0.0)   # True (first one always passes)
        debounce.check(timestamp=0.1)   # False (too soon)
        debounce.check(timestamp=0.3)   # True
    """

    DEFAULT_WINDOW = COLOR_CYCLE_DEBOUNCE

    def __init__(self, window: float = DEFAULT_WINDOW) -> None:
        self.window = window
        self._last_accepted: Optional[float] = None

    def check(self, timestamp: Optional[float] = None) -> bool:
        if timestamp is None:
            timestamp = time.monotonic()
        if self._last_accepted is not None and timestamp - self._last_accepted < self.window:
            return False
        self._last_accepted = timestamp
        return True

    def reset(self) -> None:
        self._last_accepted = None


# ============================================================================
# Keyboard Mode Detection
# ============================================================================

class KeyboardMode(Enum):
    """Keyboard operation mode."""
    LINUX_EVDEV = "linux_evdev"  # True key up/down events
    TERMINAL_FALLBACK = "terminal_fallback"  # Presses and repeats only


def detect_keyboard_mode() -> KeyboardMode:
    """
    Detect which keyboard mode is available.

    Returns LINUX_EVDEV if evdev is available and we have permissions,
    otherwise TERMINAL_FALLBACK.
    """
    try:
        import evdev
        # Try to list devices - will fail without permissions
        devices = evdev.list_devices()
        if devices:
            return KeyboardMode.LINUX_EVDEV
    except (ImportError, PermissionError, OSError):
        pass

    return KeyboardMode.TERMINAL_FALLBACK
