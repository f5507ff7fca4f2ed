"""Motion compiler configuration."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MotionConfig:
    """Immutable tuning for the motion compiler.

    Attributes:
        caster_walk_ms: Duration of the attack leg from the input box to the
            caster's stand position.
        attack_band: Allowed (min, max) duration per attack leg, in ms.
        defense_band: Allowed (min, max) duration per defense leg, in ms.
        neutral_band: Allowed (min, max) duration of the neutral drift, in ms.
        defense_radius: Maximum distance of a defense waypoint from the
            caster's anchor, in pixels.
        neutral_drift: Maximum jitter of the neutral waypoint, in pixels.
        arena: Arena size (width, height). When set, defense and neutral
            waypoints are kept inside it, ``safe_margin`` away from every
            edge. Attacks always end exactly on their target.
        safe_margin: Distance kept from the arena edges, in pixels.
    """

    caster_walk_ms: int = 1000
    attack_band: tuple[int, int] = (300, 2000)
    defense_band: tuple[int, int] = (1000, 2500)
    neutral_band: tuple[int, int] = (1000, 2500)
    defense_radius: float = 120.0
    neutral_drift: float = 40.0
    arena: tuple[float, float] | None = None
    safe_margin: float = 60.0

    def __post_init__(self) -> None:
        if self.caster_walk_ms <= 0:
            raise ValueError(f"caster_walk_ms must be > 0, got {self.caster_walk_ms}")
        for name in ("attack_band", "defense_band", "neutral_band"):
            lo, hi = getattr(self, name)
            if lo <= 0 or lo > hi:
                raise ValueError(f"{name} must satisfy 0 < min <= max, got {(lo, hi)}")
        if self.defense_radius < 0:
            raise ValueError(f"defense_radius must be >= 0, got {self.defense_radius}")
        if self.neutral_drift < 0:
            raise ValueError(f"neutral_drift must be >= 0, got {self.neutral_drift}")
        if self.safe_margin < 0:
            raise ValueError(f"safe_margin must be >= 0, got {self.safe_margin}")
        if self.arena is not None:
            width, height = self.arena
            if width <= 2 * self.safe_margin or height <= 2 * self.safe_margin:
                raise ValueError(
                    f"arena {self.arena} leaves no room inside a {self.safe_margin}px margin"
                )

    def safe_bounds(self) -> tuple[float, float, float, float] | None:
        """Return (min_x, min_y, max_x, max_y) of the safe area, or None."""
        if self.arena is None:
            return None
        m = self.safe_margin
        return (m, m, self.arena[0] - m, self.arena[1] - m)
