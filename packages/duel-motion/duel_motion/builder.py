"""Compile descriptor waypoints into an absolute motion path.

All branches are pure: the same move, anchors, waypoints and config always
produce an identical ``MotionPath``. The neutral drift looks random but is
drawn from an RNG seeded by a checksum of the inputs, so every client that
receives the same message renders the same drift.
"""
from __future__ import annotations

import math
import random
import zlib
from typing import Sequence

from duel_motion.config import MotionConfig
from duel_motion.types import MotionPath, MoveType, Point, RelativeWaypoint, Waypoint

_DEFAULT_CONFIG = MotionConfig()


def clamp_duration(duration_ms: float, band: tuple[int, int]) -> int:
    """Clamp a leg duration into ``band``. Never raises for finite input."""
    lo, hi = band
    return int(round(min(max(duration_ms, lo), hi)))


def build_motion_path(
    move_type: MoveType,
    caster_anchor: Point,
    target_anchor: Point,
    relative_waypoints: Sequence[RelativeWaypoint],
    origin: Point,
    config: MotionConfig | None = None,
) -> MotionPath:
    """Build the path a message's text box follows.

    Args:
        move_type: Classified move of the message.
        caster_anchor: Fixed anchor of the sender.
        target_anchor: Fixed anchor of the sender's opponent.
        relative_waypoints: Descriptor legs, offsets relative to an anchor.
        origin: Where every text box emerges (the input box).
        config: Duration bands, radii and the optional safe area; defaults
            to ``MotionConfig()``.

    Raises:
        ValueError: If an attack or defense has no waypoints.
    """
    cfg = config if config is not None else _DEFAULT_CONFIG
    move = MoveType(move_type)

    if move is MoveType.ATTACK:
        waypoints = _attack(caster_anchor, target_anchor, relative_waypoints, cfg)
    elif move is MoveType.DEFENSE:
        waypoints = _defense(caster_anchor, relative_waypoints, cfg)
    else:
        waypoints = _neutral(caster_anchor, relative_waypoints, origin, cfg)

    return MotionPath(move_type=move, origin=origin, waypoints=waypoints)


def _attack(
    caster: Point,
    target: Point,
    legs: Sequence[RelativeWaypoint],
    cfg: MotionConfig,
) -> tuple[Waypoint, ...]:
    if not legs:
        raise ValueError("attack path requires at least one waypoint")
    # The phrase walks to its caster first, then flies at the opponent.
    out = [Waypoint(caster.x, caster.y, cfg.caster_walk_ms, None)]
    for leg in legs:
        end = target.offset(leg.dx, leg.dy)
        out.append(
            Waypoint(
                end.x,
                end.y,
                clamp_duration(leg.duration_ms, cfg.attack_band),
                leg.rotation,
            )
        )
    return tuple(out)


def _defense(
    caster: Point,
    legs: Sequence[RelativeWaypoint],
    cfg: MotionConfig,
) -> tuple[Waypoint, ...]:
    if not legs:
        raise ValueError("defense path requires at least one waypoint")
    out = []
    for leg in legs:
        end = _keep_inside(caster.offset(*_limit(leg.dx, leg.dy, cfg.defense_radius)), cfg)
        out.append(
            Waypoint(
                end.x,
                end.y,
                clamp_duration(leg.duration_ms, cfg.defense_band),
                leg.rotation,
            )
        )
    return tuple(out)


def _neutral(
    caster: Point,
    legs: Sequence[RelativeWaypoint],
    origin: Point,
    cfg: MotionConfig,
) -> tuple[Waypoint, ...]:
    rng = random.Random(_seed(caster, legs, origin))
    angle = rng.uniform(0.0, 2 * math.pi)
    radius = rng.uniform(0.0, cfg.neutral_drift)
    requested = legs[0].duration_ms if legs else cfg.neutral_band[1]
    rotation = legs[0].rotation if legs else None
    end = _keep_inside(caster.offset(math.cos(angle) * radius, math.sin(angle) * radius), cfg)
    return (
        Waypoint(
            end.x,
            end.y,
            clamp_duration(requested, cfg.neutral_band),
            rotation,
        ),
    )


def _limit(dx: float, dy: float, radius: float) -> tuple[float, float]:
    """Scale an offset down so it lies within ``radius`` of the anchor."""
    length = math.hypot(dx, dy)
    if length <= radius:
        return dx, dy
    scale = radius / length
    return dx * scale, dy * scale


def _keep_inside(point: Point, cfg: MotionConfig) -> Point:
    bounds = cfg.safe_bounds()
    if bounds is None:
        return point
    min_x, min_y, max_x, max_y = bounds
    return Point(min(max(point.x, min_x), max_x), min(max(point.y, min_y), max_y))


def _seed(caster: Point, legs: Sequence[RelativeWaypoint], origin: Point) -> int:
    parts = [repr((caster.x, caster.y)), repr((origin.x, origin.y))]
    for leg in legs:
        parts.append(repr((leg.dx, leg.dy, leg.duration_ms, leg.rotation)))
    return zlib.crc32("|".join(parts).encode("utf-8"))
