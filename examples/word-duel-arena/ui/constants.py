"""Layout, color, and rendering constants."""
from __future__ import annotations

# Timing
FPS = 60
TPS = 60

# The arena is laid out in 1920x1080 coordinates and scaled to the window.
ARENA_W = 1920
ARENA_H = 1080
DEFAULT_SCALE = 0.5

# Layout (arena coordinates)
HUD_H = 90
INPUT_H = 64
HEALTH_W = 640
HEALTH_H = 28
ANCHOR_RADIUS = 46
BOX_PAD_X = 18
BOX_PAD_Y = 10
BORDER_W = 4

# Colors
COLOR_BG = (22, 22, 32)
COLOR_FLOOR = (34, 34, 48)
COLOR_HUD_BG = (28, 28, 40)
COLOR_TEXT = (220, 220, 230)
COLOR_TEXT_DIM = (130, 130, 145)
COLOR_HEALTH_BG = (50, 40, 45)
COLOR_HEALTH = (80, 200, 100)
COLOR_HEALTH_LOW = (220, 70, 60)
COLOR_INPUT_BG = (40, 40, 56)
COLOR_INPUT_ACTIVE = (90, 140, 220)
COLOR_ERROR = (240, 110, 90)

# Player colors by seat (left, right)
SEAT_COLORS: tuple[tuple[int, int, int], tuple[int, int, int]] = (
    (90, 150, 240),
    (240, 130, 80),
)

ERROR_LOG_LINES = 4
