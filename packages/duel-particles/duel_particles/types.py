"""Particle request, theme and plan types."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParticleSpec:
    """Particle request carried by an effect descriptor.

    Either names a built-in ``theme`` or gives an explicit parameter set. When
    both are present the explicit fields override the theme's. Fields left as
    None fall back to the theme (or the default emitter).
    """

    theme: str | None = None
    colors: tuple[int, ...] = ()
    speed: tuple[float, float] | None = None
    angle: tuple[float, float] | None = None
    scale: tuple[float, float] | None = None
    lifespan_ms: float | None = None
    frequency_ms: float | None = None
    quantity: float | None = None


@dataclass(frozen=True)
class ParticleTheme:
    """Named emitter preset."""

    name: str
    colors: tuple[int, ...]
    speed: tuple[float, float]
    angle: tuple[float, float]
    scale: tuple[float, float]
    alpha: tuple[float, float] = (0.9, 0.0)
    lifespan_ms: int = 1200
    frequency_ms: int = 30
    quantity: int = 2
    gravity_y: float = 0.0
    follow_offset: tuple[float, float] = (0.0, 30.0)


@dataclass(frozen=True)
class ParticlePlan:
    """Resolved, bounded emitter configuration.

    Attributes:
        texture_key: Content-addressed key of the particle texture; equal
            palettes share one key and one generated texture.
        colors: Tint palette, 2-4 RGB ints.
        speed: (min, max) emission speed in px/s.
        angle: (min, max) emission angle in degrees.
        scale: (start, end) particle scale over its lifetime.
        alpha: (start, end) particle opacity over its lifetime.
        lifespan_ms: Particle lifetime.
        frequency_ms: Interval between emissions.
        quantity: Particles per emission.
        gravity_y: Vertical acceleration; negative floats upward.
        follow_offset: Emitter offset from the anchor it follows.
    """

    texture_key: str
    colors: tuple[int, ...]
    speed: tuple[float, float]
    angle: tuple[float, float]
    scale: tuple[float, float]
    alpha: tuple[float, float]
    lifespan_ms: int
    frequency_ms: int
    quantity: int
    gravity_y: float
    follow_offset: tuple[float, float]
