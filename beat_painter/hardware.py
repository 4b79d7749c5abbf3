"""
Real hardware: a microcontroller with a joystick, a button, a potentiometer,
an LED and a buzzer, talking over a serial port.

The board streams one line per reading:

    <jx>,<jy>,<button>,<pot>\n

jx, jy and pot are analog readings (0-1023, joystick centered near 512),
button is 1 while pressed. We answer with the indicator state whenever it
changes:

    O<led><buzzer>\n      e.g. "O11" (both on), "O00" (both off)

Reading never blocks: sample() drains whatever bytes arrived since the last
frame and keeps the most recent complete line.
"""

import logging
from typing import Optional

import serial

from .brush import clamp
from .constants import BRUSH_SIZE_MAX, BRUSH_SIZE_MIN
from .keyboard import IDLE_INPUT, InputSource, InputState
from .outputs import OutputState

logger = logging.getLogger(__name__)

DEFAULT_BAUD = 9600
ANALOG_MAX = 1023
ANALOG_CENTER = 512
JOYSTICK_DEADZONE = 200


class HardwareError(RuntimeError):
    """The serial device could not be opened or used."""


def axis_direction(reading: int, center: int = ANALOG_CENTER,
                   deadzone: int = JOYSTICK_DEADZONE) -> int:
    """Analog axis reading to -1, 0 or 1."""
    if reading < center - deadzone:
        return -1
    if reading > center + deadzone:
        return 1
    return 0


def pot_to_brush_size(reading: int) -> int:
    """Potentiometer reading (0-1023) to brush size (1-30)."""
    fraction = clamp(reading, 0, ANALOG_MAX) / ANALOG_MAX
    return int(round(BRUSH_SIZE_MIN + fraction * (BRUSH_SIZE_MAX - BRUSH_SIZE_MIN)))


def parse_reading(line: str) -> Optional[InputState]:
    """Parse one "<jx>,<jy>,<button>,<pot>" line. Returns None if malformed."""
    parts = line.strip().split(",")
    if len(parts) != 4:
        return None
    try:
        jx, jy, button, pot = (int(p) for p in parts)
    except ValueError:
        return None
    return InputState(
        joystick=(axis_direction(jx), axis_direction(jy)),
        button_down=button != 0,
        brush_size=pot_to_brush_size(pot),
    )


def encode_outputs(outputs: OutputState) -> bytes:
    """Indicator state as the line the board expects."""
    return f"O{int(outputs.led_on)}{int(outputs.buzzer_on)}\n".encode("ascii")


def open_serial(port: str, baud: int = DEFAULT_BAUD, timeout: float = 0):
    """Open the board's serial port (non-blocking reads)."""
    try:
        return serial.Serial(
            port=port,
            baudrate=baud,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout,
            write_timeout=0.5,
        )
    except serial.SerialException as e:
        raise HardwareError(
            f"Could not open the controller on {port}.\n"
            "Check the cable and that no other program is using the port.\n\n"
            f"(Technical: {e})"
        ) from e


class SerialInputSource(InputSource):
    """
    Joystick, button and potentiometer from a board on a serial port.

    Not gated by debug mode: real hardware always drives the brush.

    Usage:
        source = SerialInputSource.open("/dev/ttyACM0")
        state = source.sample(now)
        source.send_outputs(OutputState(led_on=True, buzzer_on=True))
        source.close()
    """

    def __init__(self, port) -> None:
        """
        Args:
            port: an open serial.Serial (or anything with in_waiting, read,
                  write and close)
        """
        self._port = port
        self._buffer = b""
        self._last_state: InputState = IDLE_INPUT
        self._last_outputs: Optional[OutputState] = None
        self._connected = True

    @classmethod
    def open(cls, port: str, baud: int = DEFAULT_BAUD) -> "SerialInputSource":
        source = cls(open_serial(port, baud))
        logger.info(f"Hardware controller on {port} at {baud} baud")
        return source

    def _drain(self) -> None:
        """Read everything waiting and parse the complete lines."""
        waiting = self._port.in_waiting
        if not waiting:
            return
        self._buffer += self._port.read(waiting)
        *lines, self._buffer = self._buffer.split(b"\n")
        for raw in lines:
            text = raw.decode("ascii", errors="replace")
            state = parse_reading(text)
            if state is None:
                if text.strip():
                    logger.debug(f"Ignoring controller line {text!r}")
                continue
            self._last_state = state

    @property
    def connected(self) -> bool:
        return self._connected

    def sample(self, now: float) -> InputState:
        if not self._connected:
            return IDLE_INPUT
        try:
            self._drain()
        except (serial.SerialException, OSError) as e:
            # Board unplugged: let go of the stick and stop polling
            logger.warning(f"Controller read failed, disconnecting: {e}")
            self._connected = False
            self._last_state = IDLE_INPUT
        return self._last_state

    def send_outputs(self, outputs: OutputState) -> None:
        if not self._connected or outputs == self._last_outputs:
            return
        try:
            self._port.write(encode_outputs(outputs))
            self._last_outputs = outputs
        except (serial.SerialException, OSError) as e:
            logger.warning(f"Controller write failed: {e}")

    def close(self) -> None:
        try:
            self._port.close()
        except (serial.SerialException, OSError):
            pass
