"""Safe bounds for resolved particle emitters."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParticleBounds:
    """Inclusive (min, max) bounds applied to every resolved plan.

    The frequency and lifespan floors rule out zero-lifespan,
    near-infinite-frequency bursts.
    """

    speed: tuple[float, float] = (0.0, 200.0)
    angle: tuple[float, float] = (0.0, 360.0)
    scale: tuple[float, float] = (0.0, 3.0)
    lifespan_ms: tuple[int, int] = (200, 3000)
    frequency_ms: tuple[int, int] = (15, 500)
    quantity: tuple[int, int] = (1, 5)
    max_colors: int = 4

    def __post_init__(self) -> None:
        for name in ("speed", "angle", "scale", "lifespan_ms", "frequency_ms", "quantity"):
            lo, hi = getattr(self, name)
            if lo > hi:
                raise ValueError(f"{name} bounds must satisfy min <= max, got {(lo, hi)}")
        if self.frequency_ms[0] <= 0:
            raise ValueError("frequency_ms lower bound must be > 0")
        if self.lifespan_ms[0] <= 0:
            raise ValueError("lifespan_ms lower bound must be > 0")
        if self.quantity[0] < 1:
            raise ValueError("quantity lower bound must be >= 1")
        if self.max_colors < 2:
            raise ValueError(f"max_colors must be >= 2, got {self.max_colors}")
