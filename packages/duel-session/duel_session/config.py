"""Duel session configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass, field

from duel_motion import MotionConfig
from duel_particles import ParticleBounds


@dataclass(frozen=True)
class DuelConfig:
    """Immutable configuration for one duel session.

    Attributes:
        max_health: Starting health of both players.
        max_active_animations: Concurrent animations kept before the oldest
            is evicted.
        hold_ms: How long defense and neutral boxes rest at their final
            waypoint before being destroyed.
        screen: Arena size in pixels (width, height). Unless ``motion`` sets
            its own arena, defense and neutral boxes are kept inside it.
        input_anchor: Where every text box emerges.
        left_anchor: Fixed anchor of the first mover.
        right_anchor: Fixed anchor of the second player.
        classifier_timeout: Seconds before a pending classification is
            abandoned in favor of the fallback descriptor.
        history_length: Messages kept in the conversation history.
        prompt_history: Messages sent to the classifier as context.
        motion: Duration bands and radii for path building.
        particles: Bounds applied to particle plans.
    """

    max_health: int = 100
    max_active_animations: int = 20
    hold_ms: int = 3000
    screen: tuple[int, int] = (1920, 1080)
    input_anchor: tuple[float, float] = (960.0, 1040.0)
    left_anchor: tuple[float, float] = (420.0, 560.0)
    right_anchor: tuple[float, float] = (1500.0, 560.0)
    classifier_timeout: float = 15.0
    history_length: int = 10
    prompt_history: int = 8
    motion: MotionConfig = field(default_factory=MotionConfig)
    particles: ParticleBounds = field(default_factory=ParticleBounds)

    def __post_init__(self) -> None:
        if self.max_health <= 0:
            raise ValueError(f"max_health must be > 0, got {self.max_health}")
        if self.max_active_animations < 1:
            raise ValueError(
                f"max_active_animations must be >= 1, got {self.max_active_animations}"
            )
        if self.hold_ms < 0:
            raise ValueError(f"hold_ms must be >= 0, got {self.hold_ms}")
        if self.classifier_timeout <= 0:
            raise ValueError(
                f"classifier_timeout must be > 0, got {self.classifier_timeout}"
            )
        if not 8 <= self.prompt_history <= 10:
            raise ValueError(f"prompt_history must be in [8, 10], got {self.prompt_history}")
        if self.history_length < self.prompt_history:
            raise ValueError(
                f"history_length ({self.history_length}) must be >= "
                f"prompt_history ({self.prompt_history})"
            )
        margin = self.motion.safe_margin
        if self.screen[0] <= 2 * margin or self.screen[1] <= 2 * margin:
            raise ValueError(
                f"screen {self.screen} leaves no room inside the {margin}px safe margin"
            )
