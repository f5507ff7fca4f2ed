"""duel-motion - Effects-to-motion compiler for the word duel."""
from __future__ import annotations

from duel_motion.builder import build_motion_path, clamp_duration
from duel_motion.config import MotionConfig
from duel_motion.easing import EASINGS, sample_segment
from duel_motion.types import MotionPath, MoveType, Point, RelativeWaypoint, Waypoint

__all__ = [
    "EASINGS",
    "MotionConfig",
    "MotionPath",
    "MoveType",
    "Point",
    "RelativeWaypoint",
    "Waypoint",
    "build_motion_path",
    "clamp_duration",
    "sample_segment",
]
