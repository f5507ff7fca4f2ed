"""Particle plan resolution with a content-addressed texture cache."""
from __future__ import annotations

import hashlib
from typing import Callable, Sequence

from duel_particles.config import ParticleBounds
from duel_particles.themes import DEFAULT_EMITTER, THEMES
from duel_particles.types import ParticlePlan, ParticleSpec, ParticleTheme

# (texture_key, colors) -> None. Generates the visual resource for a palette.
TextureFactory = Callable[[str, tuple[int, ...]], None]


def texture_key(colors: Sequence[int]) -> str:
    """Deterministic texture key for a palette, independent of color order."""
    palette = ",".join(f"{c & 0xFFFFFF:06x}" for c in sorted(set(colors)))
    digest = hashlib.sha1(palette.encode("ascii")).hexdigest()
    return f"particle-{digest[:12]}"


class ParticlePlanResolver:
    """Turns descriptor particle requests into bounded emitter plans.

    Owns a write-once cache of generated textures: the texture factory runs
    at most once per palette key for the lifetime of the resolver. Entries
    are never evicted; the set of distinct palettes stays small.
    """

    def __init__(
        self,
        bounds: ParticleBounds | None = None,
        texture_factory: TextureFactory | None = None,
    ) -> None:
        self.bounds: ParticleBounds = bounds if bounds is not None else ParticleBounds()
        self._texture_factory = texture_factory
        self._generated: set[str] = set()

    @property
    def generated_keys(self) -> frozenset[str]:
        """Keys of every texture generated so far."""
        return frozenset(self._generated)

    def set_texture_factory(self, factory: TextureFactory | None) -> None:
        self._texture_factory = factory

    def resolve(self, spec: ParticleSpec | None) -> ParticlePlan | None:
        """Resolve a particle request.

        Returns None when there is no request or it names an unknown theme.
        """
        if spec is None:
            return None

        base: ParticleTheme | None = DEFAULT_EMITTER
        if spec.theme is not None:
            base = THEMES.get(spec.theme.strip().lower())
        if base is None:
            return None

        b = self.bounds
        colors = self._clamp_colors(spec.colors or base.colors)
        speed = _clamp_range(spec.speed or base.speed, b.speed)
        angle = _clamp_range(spec.angle or base.angle, b.angle)
        scale = _clamp_pair(spec.scale or base.scale, b.scale)
        lifespan = _clamp_int(_pick(spec.lifespan_ms, base.lifespan_ms), b.lifespan_ms)
        frequency = _clamp_int(_pick(spec.frequency_ms, base.frequency_ms), b.frequency_ms)
        quantity = _clamp_int(_pick(spec.quantity, base.quantity), b.quantity)

        key = texture_key(colors)
        self._ensure_texture(key, colors)

        return ParticlePlan(
            texture_key=key,
            colors=colors,
            speed=speed,
            angle=angle,
            scale=scale,
            alpha=base.alpha,
            lifespan_ms=lifespan,
            frequency_ms=frequency,
            quantity=quantity,
            gravity_y=base.gravity_y,
            follow_offset=base.follow_offset,
        )

    def _ensure_texture(self, key: str, colors: tuple[int, ...]) -> None:
        if key in self._generated:
            return
        if self._texture_factory is not None:
            self._texture_factory(key, colors)
        self._generated.add(key)

    def _clamp_colors(self, colors: Sequence[int]) -> tuple[int, ...]:
        out = tuple(int(c) & 0xFFFFFF for c in colors[: self.bounds.max_colors])
        if len(out) == 1:
            out = out * 2
        return out


def _pick(value: float | None, default: float) -> float:
    return default if value is None else value


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return float(min(max(value, lo), hi))


def _clamp_int(value: float, bounds: tuple[int, int]) -> int:
    lo, hi = bounds
    return int(round(min(max(value, lo), hi)))


def _clamp_pair(pair: tuple[float, float], bounds: tuple[float, float]) -> tuple[float, float]:
    return (_clamp(pair[0], bounds), _clamp(pair[1], bounds))


def _clamp_range(pair: tuple[float, float], bounds: tuple[float, float]) -> tuple[float, float]:
    lo, hi = _clamp_pair(pair, bounds)
    if lo > hi:
        lo, hi = hi, lo
    return (lo, hi)
