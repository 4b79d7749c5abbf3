"""
Beat Painter: real key releases for the simulated controls (Linux evdev)

A terminal reports a held arrow key as a press followed by auto-repeats and
never says when it came up, so the brush would keep drifting for the hold
timeout after the key is let go. evdev reports both edges. When it's
available, the arrow keys and space are read from the keyboard device and
fed straight into the KeyboardInputSource.

The device is never grabbed: Textual still receives every key, so c, s, d
and p work the same with or without evdev.

  evdev → translate() → ControlKeyEvent → callback (press/release)
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)


# Linux input-event-codes.h
EV_KEY = 1
KEY_RELEASED, KEY_PRESSED, KEY_REPEATED = 0, 1, 2

# Only the keys that stand in for the joystick and the button
CONTROL_KEYCODES: dict[int, str] = {
    57: "space",
    103: "up",
    105: "left",
    106: "right",
    108: "down",
}

# KEY_Q..KEY_P, KEY_A..KEY_L, KEY_Z..KEY_M: a device with these is a keyboard
LETTER_KEYCODES = frozenset(range(16, 26)) | frozenset(range(30, 39)) | frozenset(range(44, 51))


@dataclass(frozen=True)
class ControlKeyEvent:
    """An arrow key or space going down or up."""
    name: str
    pressed: bool
    timestamp: float


def translate(event_type: int, code: int, value: int, timestamp: float) -> Optional[ControlKeyEvent]:
    """Raw evdev event to a ControlKeyEvent, or None if it isn't one.

    Auto-repeats are dropped: a key stays held until its release arrives.
    """
    if event_type != EV_KEY or value == KEY_REPEATED:
        return None
    name = CONTROL_KEYCODES.get(code)
    if name is None:
        return None
    return ControlKeyEvent(name=name, pressed=value == KEY_PRESSED, timestamp=timestamp)


def _candidate_paths() -> Iterator[str]:
    """Stable by-id keyboard links first, then every event device."""
    import evdev

    by_id = Path("/dev/input/by-id")
    if by_id.exists():
        for link in sorted(by_id.iterdir()):
            if "kbd" in link.name.lower() or "keyboard" in link.name.lower():
                yield str(link.resolve())
    yield from sorted(evdev.list_devices())


def find_keyboard():
    """First readable device with letter keys, or None."""
    import evdev

    for path in _candidate_paths():
        try:
            device = evdev.InputDevice(path)
        except (PermissionError, OSError):
            continue
        keys = set(device.capabilities().get(evdev.ecodes.EV_KEY, []))
        if "virtual" not in device.name.lower() and keys & LETTER_KEYCODES:
            return device
        device.close()
    return None


class ControlKeyReader:
    """
    Background task reading arrow/space edges from a keyboard device.

    Usage:
        reader = ControlKeyReader(on_key)    # on_key(ControlKeyEvent)
        await reader.start()                 # RuntimeError if no keyboard
        ...
        await reader.stop()
    """

    def __init__(
        self,
        callback: Callable[[ControlKeyEvent], None],
        device_path: Optional[str] = None,
    ) -> None:
        self._callback = callback
        self._device_path = device_path
        self._device = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        import evdev

        if self._device_path:
            self._device = evdev.InputDevice(self._device_path)
        else:
            self._device = find_keyboard()
        if self._device is None:
            raise RuntimeError("No keyboard input device found")

        logger.info(f"Reading control keys from {self._device.path} ({self._device.name})")
        self._task = asyncio.create_task(self._pump())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._device is not None:
            self._device.close()
            self._device = None

    async def _pump(self) -> None:
        try:
            async for raw in self._device.async_read_loop():
                event = translate(raw.type, raw.code, raw.value, raw.timestamp())
                if event is not None:
                    self._callback(event)
        except OSError as e:
            # Keyboard unplugged: terminal key handling still works
            logger.warning(f"Control key reader stopped: {e}")
