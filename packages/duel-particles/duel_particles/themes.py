"""Built-in particle themes."""
from __future__ import annotations

from duel_particles.types import ParticleTheme

FIRE = ParticleTheme(
    name="fire",
    colors=(0xCC0000, 0xFF3300, 0xFF6600, 0xFF9900),
    speed=(40, 80),
    angle=(250, 290),
    scale=(2.5, 0.5),
    lifespan_ms=1200,
    frequency_ms=25,
    quantity=3,
)

ICE = ParticleTheme(
    name="ice",
    colors=(0x0099CC, 0x00CCFF, 0x99FFFF, 0xCCFFFF),
    speed=(20, 50),
    angle=(250, 290),
    scale=(2.0, 0.3),
    lifespan_ms=1500,
    frequency_ms=30,
    quantity=2,
    gravity_y=-50,  # crystals float up
)

POISON = ParticleTheme(
    name="poison",
    colors=(0x006600, 0x00CC00, 0x66FF33, 0x99FF66),
    speed=(10, 30),
    angle=(0, 360),
    scale=(1.5, 0.3),
    alpha=(0.8, 0.0),
    lifespan_ms=2000,
    frequency_ms=40,
    quantity=2,
    gravity_y=-20,
    follow_offset=(0.0, 0.0),
)

SMOKE = ParticleTheme(
    name="smoke",
    colors=(0x444444, 0x666666, 0x888888, 0xAAAAAA),
    speed=(20, 40),
    angle=(260, 280),
    scale=(2.0, 3.0),  # grows as it rises
    alpha=(0.6, 0.0),
    lifespan_ms=2000,
    frequency_ms=50,
    quantity=2,
    gravity_y=-30,
)

ENERGY = ParticleTheme(
    name="energy",
    colors=(0xFFFF00, 0x00FFFF, 0xFF00FF),
    speed=(80, 150),
    angle=(0, 360),
    scale=(2.0, 0.0),
    lifespan_ms=800,
    frequency_ms=20,
    quantity=4,
    follow_offset=(0.0, 0.0),
)

# Used for explicit parameter sets that name no theme.
DEFAULT_EMITTER = ParticleTheme(
    name="default",
    colors=(0xFFFFFF, 0xCCCCCC),
    speed=(40, 80),
    angle=(250, 290),
    scale=(2.0, 0.5),
)

THEMES: dict[str, ParticleTheme] = {
    theme.name: theme for theme in (FIRE, ICE, POISON, SMOKE, ENERGY)
}
