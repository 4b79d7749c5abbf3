"""
Beat Painter - Shared Constants

Central location for constants used across the app.
"""

# =============================================================================
# CANVAS LAYOUT CONSTANTS
# =============================================================================
# The paint surface is kept at a fixed logical resolution. The terminal view
# scales it down; exports are written at full size.
#
# Layout breakdown:
#   - Palette strip: x in [0, 50), ten 50px swatches stacked from y = 0
#   - Drawable area: x in [50, 800], y in [0, 600]

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
PALETTE_WIDTH = 50
SWATCH_HEIGHT = 50

BACKGROUND_RGB = (255, 255, 255)

# Total pixels counted for fill percentage (palette strip excluded)
TOTAL_PIXELS = (CANVAS_WIDTH - PALETTE_WIDTH) * CANVAS_HEIGHT

# =============================================================================
# BRUSH
# =============================================================================

BRUSH_START_X = CANVAS_WIDTH / 2 + PALETTE_WIDTH / 2
BRUSH_START_Y = CANVAS_HEIGHT / 2
BRUSH_SIZE_DEFAULT = 5
BRUSH_SIZE_MIN = 1
BRUSH_SIZE_MAX = 30
JOYSTICK_SPEED = 5            # Logical pixels per frame at full deflection

# Approximate pixels covered by one frame of stroke activity
FILL_INCREMENT = 5

# =============================================================================
# TIMING
# =============================================================================

FRAME_RATE = 60
COLOR_CYCLE_DEBOUNCE = 0.3   # Minimum seconds between two color cycles
KEY_HOLD_TIMEOUT = 0.7       # Terminal fallback: outlasts the usual 500-660 ms repeat delay

# =============================================================================
# MUSIC
# =============================================================================

SCALE_NOTES = [60, 62, 64, 65, 67, 69, 71, 72]  # C major, MIDI
BEATS_PER_CYCLE = 8
BASE_BPM = 80
BPM_RANGE = 60                # bpm = BASE_BPM + fill * BPM_RANGE
BEAT_NOTE_DURATION = 0.2
BEAT_BASE_VOLUME = 0.05
BEAT_VOLUME_RANGE = 0.1
MAX_CHORD_NOTES = 4

COLOR_NOTE_VOLUME = 0.5
COLOR_NOTE_DURATION = 0.3

# Clear: descending arpeggio
CLEAR_NOTES = [72, 67, 64, 60]
CLEAR_NOTE_SPACING = 0.1
CLEAR_NOTE_VOLUME = 0.3
CLEAR_NOTE_DURATION = 0.2

# Save: ascending chord, staggered
SAVE_NOTES = [60, 64, 67, 72]
SAVE_NOTE_SPACING = 0.15
SAVE_NOTE_VOLUME = 0.3
SAVE_NOTE_DURATION = 0.3

# Brush tone follows the brush: high at the top, low at the bottom
BRUSH_PITCH_TOP = 800.0
BRUSH_PITCH_BOTTOM = 200.0
BRUSH_WOBBLE_MAX = 10.0
BRUSH_WOBBLE_RATE = 0.1
BRUSH_TONE_AMPLITUDE = 0.1

# =============================================================================
# EXPORT
# =============================================================================

EXPORT_NAME = "myPainting"

# Nerd Font icons (https://www.nerdfonts.com/cheat-sheet)
ICON_ERASER = "󰇾"           # nf-md-eraser
ICON_SAVE = "󰆓"             # nf-md-content_save
ICON_PALETTE = "󰏘"          # nf-md-palette
ICON_MUSIC = "\uf001"       # nf-fa-music
ICON_LED = "󰌵"              # nf-md-lightbulb
ICON_BUZZER = "󰂞"           # nf-md-bell
ICON_JOYSTICK = "󰊴"         # nf-md-gamepad
