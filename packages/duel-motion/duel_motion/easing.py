"""Easing functions for waypoint interpolation."""
from __future__ import annotations

import math
from typing import Callable

from duel_motion.types import Point

_BACK_OVERSHOOT = 1.70158


def linear(t: float) -> float:
    return t


def ease_in(t: float) -> float:
    return t * t


def ease_out(t: float) -> float:
    return t * (2 - t)


def ease_in_out(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def back_out(t: float) -> float:
    """Overshoots the target slightly before settling (text box emergence)."""
    c3 = _BACK_OVERSHOOT + 1
    return 1 + c3 * (t - 1) ** 3 + _BACK_OVERSHOOT * (t - 1) ** 2


def sine_in_out(t: float) -> float:
    return -(math.cos(math.pi * t) - 1) / 2


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_in": ease_in,
    "ease_out": ease_out,
    "ease_in_out": ease_in_out,
    "back_out": back_out,
    "sine_in_out": sine_in_out,
}


def sample_segment(start: Point, end: Point, t: float, easing: str = "linear") -> Point:
    """Interpolate between two points at progress ``t`` (clamped to [0, 1]).

    Raises KeyError for an unknown easing name.
    """
    fn = EASINGS[easing]
    t = min(max(t, 0.0), 1.0)
    eased = fn(t)
    return Point(
        start.x + (end.x - start.x) * eased,
        start.y + (end.y - start.y) * eased,
    )
