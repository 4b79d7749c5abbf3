"""
Beat Painter Widgets

The canvas view and the hardware panel. Widgets only display AppState;
all changes go through the Painter.
"""

from .paint_mode import PaintMode, PaintCanvas, CanvasClicked
from .hardware_panel import HardwarePanel

__all__ = ["PaintMode", "PaintCanvas", "CanvasClicked", "HardwarePanel"]
