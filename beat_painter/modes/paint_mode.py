"""
Paint Mode - the canvas, the palette strip and the developer instructions.

The canvas draws the Pillow surface with half-block cells: each terminal
cell shows two pixels stacked ("▀" with the top pixel as foreground and the
bottom one as background). The palette strip is overlaid on the left edge
exactly where it sits in logical coordinates, so a click on a cell lands on
the same swatch the exported PNG shows.

Nothing here changes state. Clicks are posted to the app as CanvasClicked
with logical coordinates; the app hands them to the Painter.
"""

from textual.app import ComposeResult
from textual.containers import Container
from textual.message import Message
from textual.strip import Strip
from textual.widget import Widget
from textual.widgets import Static
from textual import events
from rich.segment import Segment
from rich.style import Style

from ..constants import CANVAS_HEIGHT, CANVAS_WIDTH, ICON_MUSIC, ICON_PALETTE, PALETTE_WIDTH
from ..palette import COLOR_HEX, COLORS, row_at
from ..painter import AppState
from ..surface import PaintSurface


HALF_BLOCK = "▀"
SELECTED_MARK = "▶"
BRUSH_MARK = "◆"

# Below the last swatch the strip is just background
STRIP_EMPTY = "#FFFFFF"


def _hex(rgb: tuple[int, int, int]) -> str:
    return f"#{rgb[0]:02X}{rgb[1]:02X}{rgb[2]:02X}"


def _contrast(hex_color: str) -> str:
    """Black or white, whichever reads better on this color."""
    r, g, b = int(hex_color[1:3], 16), int(hex_color[3:5], 16), int(hex_color[5:7], 16)
    return "#000000" if (r * 299 + g * 587 + b * 114) / 1000 > 140 else "#FFFFFF"


class CanvasClicked(Message, bubble=True):
    """Mouse press on the canvas, in logical (800x600) coordinates."""
    def __init__(self, x: float, y: float) -> None:
        self.x = x
        self.y = y
        super().__init__()


class PaintCanvas(Widget):
    """
    The painting, scaled to fit the widget.

    Uses render_line() to bypass Textual's compositor. The widget only
    refreshes when the surface revision, the selected color or the cell
    under the brush changes.
    """

    DEFAULT_CSS = """
    PaintCanvas {
        width: 100%;
        height: 1fr;
    }
    """

    def __init__(self, surface: PaintSurface, state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.surface = surface
        self.state = state
        self._seen: tuple | None = None
        self._styles: dict[tuple[str, str], Style] = {}

    def _style(self, fg: str, bg: str) -> Style:
        key = (fg, bg)
        style = self._styles.get(key)
        if style is None:
            style = Style(color=fg, bgcolor=bg)
            self._styles[key] = style
        return style

    def sync(self) -> None:
        """Refresh if anything visible changed since the last render."""
        current = (self.surface.revision, self.state.color, self.brush_cell())
        if current != self._seen:
            self._seen = current
            self.refresh()

    def to_logical(self, col: int, row: int) -> tuple[float, float]:
        """Center of a cell in logical canvas coordinates."""
        width = max(1, self.size.width)
        height = max(1, self.size.height)
        return (
            (col + 0.5) * CANVAS_WIDTH / width,
            (row + 0.5) * CANVAS_HEIGHT / height,
        )

    def brush_cell(self) -> tuple[int, int]:
        """Cell under the brush."""
        width = max(1, self.size.width)
        height = max(1, self.size.height)
        brush = self.state.brush
        return (
            min(width - 1, int(brush.x * width / CANVAS_WIDTH)),
            min(height - 1, int(brush.y * height / CANVAS_HEIGHT)),
        )

    def _strip_color(self, y: float) -> str:
        row = row_at(y)
        if row is None:
            return STRIP_EMPTY
        return COLOR_HEX[COLORS[row]]

    def on_click(self, event: events.Click) -> None:
        x, y = self.to_logical(event.x, event.y)
        self.post_message(CanvasClicked(x, y))
        event.stop()

    def render_line(self, y: int) -> Strip:
        """Render one row of cells (two pixel rows)."""
        width = self.size.width
        height = self.size.height
        if width <= 0 or height <= 0:
            return Strip([])

        preview = self.surface.preview((width, height * 2))
        pixels = preview.load()
        selected_row = COLORS.index(self.state.color)
        brush_x, brush_y = self.brush_cell()
        brush_hex = COLOR_HEX[self.state.color]

        # Pixel rows for this line, in logical coordinates
        top_y = (2 * y + 0.5) * CANVAS_HEIGHT / (height * 2)
        bottom_y = (2 * y + 1.5) * CANVAS_HEIGHT / (height * 2)
        _, mid_y = self.to_logical(0, y)
        marker_row = row_at(mid_y)

        segments = []
        for x in range(width):
            logical_x = (x + 0.5) * CANVAS_WIDTH / width
            if logical_x < PALETTE_WIDTH:
                if marker_row == selected_row and x == 0:
                    segments.append(Segment(SELECTED_MARK, self._style(_contrast(brush_hex), brush_hex)))
                    continue
                top = self._strip_color(top_y)
                bottom = self._strip_color(bottom_y)
            elif x == brush_x and y == brush_y:
                segments.append(Segment(BRUSH_MARK, self._style(_contrast(brush_hex), brush_hex)))
                continue
            else:
                top = _hex(pixels[x, 2 * y])
                bottom = _hex(pixels[x, 2 * y + 1])
            segments.append(Segment(HALF_BLOCK, self._style(top, bottom)))

        return Strip(segments)


class DebugInstructions(Static):
    """Developer instructions, only shown in debug mode."""

    DEFAULT_CSS = """
    DebugInstructions {
        width: 100%;
        height: auto;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
        display: none;
    }

    DebugInstructions.visible {
        display: block;
    }
    """

    TEXT = (
        "DEVELOPER MODE\n"
        "Arrow keys: joystick   Space: button (next color)\n"
        "P: show hardware panel   -/=: brush size (panel shown)\n"
        "D: hide this   C: clear   S: save"
    )

    def render(self) -> str:
        return self.TEXT

    def set_visible(self, visible: bool) -> None:
        self.set_class(visible, "visible")


class StatusLine(Static):
    """Current color and music tempo."""

    DEFAULT_CSS = """
    StatusLine {
        width: 100%;
        height: 1;
        padding: 0 1;
        color: $primary;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.color = ""
        self.bpm = 0.0
        self.fill = 0.0

    def show(self, color: str, bpm: float, fill: float) -> None:
        if (color, round(bpm), round(fill, 2)) == (self.color, round(self.bpm), round(self.fill, 2)):
            return
        self.color, self.bpm, self.fill = color, bpm, fill
        self.refresh()

    def render(self) -> str:
        return f"{ICON_PALETTE}  {self.color}    {ICON_MUSIC}  {round(self.bpm)} bpm    {self.fill:.0%} painted"


class PaintMode(Container):
    """Canvas with status line and (hidden) developer instructions."""

    DEFAULT_CSS = """
    PaintMode {
        width: 100%;
        height: 100%;
        layout: vertical;
    }
    """

    def __init__(self, surface: PaintSurface, state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.surface = surface
        self.state = state

    def compose(self) -> ComposeResult:
        yield StatusLine(id="status-line")
        yield PaintCanvas(self.surface, self.state, id="paint-canvas")
        yield DebugInstructions(id="debug-instructions")
