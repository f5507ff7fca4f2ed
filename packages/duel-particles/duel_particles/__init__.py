"""duel-particles - Particle emission plans for the word duel."""
from __future__ import annotations

from duel_particles.config import ParticleBounds
from duel_particles.resolver import ParticlePlanResolver, TextureFactory, texture_key
from duel_particles.themes import THEMES
from duel_particles.types import ParticlePlan, ParticleSpec, ParticleTheme

__all__ = [
    "THEMES",
    "ParticleBounds",
    "ParticlePlan",
    "ParticlePlanResolver",
    "ParticleSpec",
    "ParticleTheme",
    "TextureFactory",
    "texture_key",
]
