"""Render boundary: what the session asks a renderer to draw."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from duel_effects import EffectColors
from duel_motion import MotionPath
from duel_particles import ParticlePlan

Handle = int


@dataclass(frozen=True)
class TextBox:
    text: str
    font_size: int
    colors: EffectColors


@runtime_checkable
class Renderer(Protocol):
    """Protocol for anything that can animate text boxes and particles.

    Callbacks passed to ``schedule_transform`` are invoked from the
    renderer's own update, on the same thread that drives the session.
    """

    def schedule_transform(
        self,
        target: TextBox,
        path: MotionPath,
        on_waypoint_complete: Callable[[int], None],
        on_path_complete: Callable[[], None],
    ) -> Handle:
        """Move ``target`` along ``path``. Returns a handle for the box."""
        ...

    def start_particle_emitter(self, plan: ParticlePlan, anchor_handle: Handle) -> Handle:
        """Start an emitter that follows the transform ``anchor_handle``."""
        ...

    def generate_texture(self, key: str, colors: tuple[int, ...]) -> None:
        """Create the particle texture for ``key``."""
        ...

    def destroy(self, handle: Handle) -> None:
        """Remove a transform or emitter. Unknown handles are ignored."""
        ...
