"""Geometry and path types shared by the motion compiler and its consumers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MoveType(str, Enum):
    """Classification of a message into a combat move."""

    ATTACK = "attack"
    DEFENSE = "defense"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True, slots=True)
class RelativeWaypoint:
    """One leg of a descriptor path, expressed relative to an anchor.

    Attributes:
        dx: Horizontal offset in pixels.
        dy: Vertical offset in pixels.
        duration_ms: Requested time to reach this point.
        rotation: Target rotation in radians, or None to keep the current one.
    """

    dx: float
    dy: float
    duration_ms: int
    rotation: float | None = None


@dataclass(frozen=True, slots=True)
class Waypoint:
    """Absolute, render-ready waypoint."""

    x: float
    y: float
    duration_ms: int
    rotation: float | None = None

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True, slots=True)
class MotionPath:
    """Compiled path: an origin followed by at least one timed waypoint."""

    move_type: MoveType
    origin: Point
    waypoints: tuple[Waypoint, ...]

    @property
    def final(self) -> Waypoint:
        return self.waypoints[-1]

    @property
    def total_duration_ms(self) -> int:
        return sum(wp.duration_ms for wp in self.waypoints)
