"""
Beat Painter - Paint with a Joystick, Hear Your Canvas

A Textual TUI application providing:
- A paint surface driven by a joystick and button (real or simulated)
- A ten-color palette where every color has its own note
- Background music that speeds up as the canvas fills

Small on purpose. One screen, a handful of keys.
"""

__version__ = "1.0.0"
