"""Palette: the ten paint colors, their notes, and where they sit in the strip.

Pure data with no side effects. Importable from anywhere without triggering
pygame initialization or Textual setup.
"""

from typing import Optional

from .constants import SWATCH_HEIGHT

# Ordered top-to-bottom as stacked in the palette strip.
# The order also sets the pitch: each color has its own note (MIDI).
PALETTE: tuple[tuple[str, int], ...] = (
    ("red", 60),
    ("orange", 62),
    ("yellow", 64),
    ("green", 65),
    ("cyan", 67),
    ("blue", 69),
    ("magenta", 71),
    ("brown", 72),
    ("white", 74),
    ("black", 76),
)

COLORS = [name for name, _ in PALETTE]
COLOR_NOTES = [note for _, note in PALETTE]

# CSS named color values, so exports look like the browser version
COLOR_RGB: dict[str, tuple[int, int, int]] = {
    "red": (255, 0, 0),
    "orange": (255, 165, 0),
    "yellow": (255, 255, 0),
    "green": (0, 128, 0),
    "cyan": (0, 255, 255),
    "blue": (0, 0, 255),
    "magenta": (255, 0, 255),
    "brown": (165, 42, 42),
    "white": (255, 255, 255),
    "black": (0, 0, 0),
}

COLOR_HEX: dict[str, str] = {
    name: f"#{r:02X}{g:02X}{b:02X}" for name, (r, g, b) in COLOR_RGB.items()
}

# Warm colors light the LED and sound the buzzer
WARM_COLORS = frozenset({"red", "orange", "yellow"})

DEFAULT_COLOR = "black"


def color_at(index: int) -> str:
    """Color name at a palette position."""
    return COLORS[index]


def note_at(index: int) -> int:
    """Note (MIDI) played when the color at this position is picked."""
    return COLOR_NOTES[index]


def index_of(color: str) -> int:
    """Palette position of a color. Linear scan; there are only ten."""
    for i, name in enumerate(COLORS):
        if name == color:
            return i
    raise ValueError(f"{color!r} is not a palette color")


def next_index(index: int) -> int:
    """Position after this one, wrapping from the last color to the first."""
    return (index + 1) % len(COLORS)


def rgb_of(color: str) -> tuple[int, int, int]:
    """RGB triple for a palette color."""
    return COLOR_RGB[color]


def row_at(y: float) -> Optional[int]:
    """Palette row under a logical y coordinate.

    Swatch edges belong to neither neighbour, and anything below the last
    swatch is empty strip, so both return None.
    """
    for i in range(len(COLORS)):
        if i * SWATCH_HEIGHT < y < (i + 1) * SWATCH_HEIGHT:
            return i
    return None
