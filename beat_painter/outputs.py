"""Output simulator: what the LED and buzzer would be doing right now.

Both follow the current color. Warm colors switch them on.
"""

from dataclasses import dataclass

from .palette import WARM_COLORS


@dataclass(frozen=True)
class OutputState:
    led_on: bool = False
    buzzer_on: bool = False


def outputs_for(color: str) -> OutputState:
    """Indicator state for a color. Same color, same answer."""
    warm = color in WARM_COLORS
    return OutputState(led_on=warm, buzzer_on=warm)
