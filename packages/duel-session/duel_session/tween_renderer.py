"""Headless renderer that tweens text boxes and simulates particles.

Time only moves when ``advance(dt_ms)`` is called, so tests and the demo
drive it from the same fixed-timestep loop as the sessions.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Callable

from duel_motion import MotionPath, Point, sample_segment
from duel_particles import ParticlePlan

from duel_session.render import Handle, TextBox

FIRST_LEG_EASING = "back_out"
LEG_EASING = "sine_in_out"


@dataclass
class Transform:
    """A text box moving along its path."""

    handle: Handle
    target: TextBox
    path: MotionPath
    on_waypoint_complete: Callable[[int], None]
    on_path_complete: Callable[[], None]
    x: float
    y: float
    rotation: float = 0.0
    scale: float = 0.0
    alpha: float = 0.0
    leg: int = 0
    leg_elapsed_ms: float = 0.0
    leg_start_rotation: float = 0.0
    done: bool = False


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    color: int
    lifespan_ms: float
    age_ms: float = 0.0

    @property
    def progress(self) -> float:
        return min(self.age_ms / self.lifespan_ms, 1.0)


@dataclass
class Emitter:
    """Particle source attached to a transform."""

    handle: Handle
    plan: ParticlePlan
    anchor: Handle
    x: float
    y: float
    since_emit_ms: float = 0.0
    emitted: int = 0
    particles: list[Particle] = field(default_factory=list)

    def scale_at(self, p: Particle) -> float:
        start, end = self.plan.scale
        return start + (end - start) * p.progress

    def alpha_at(self, p: Particle) -> float:
        start, end = self.plan.alpha
        return start + (end - start) * p.progress


class TweenRenderer:
    """Reference ``Renderer`` implementation with no drawing backend."""

    def __init__(self, seed: int | None = None) -> None:
        self.transforms: dict[Handle, Transform] = {}
        self.emitters: dict[Handle, Emitter] = {}
        self.textures: dict[str, tuple[int, ...]] = {}
        self._rng = random.Random(seed)
        self._next_handle = 1

    # --- Renderer protocol ---

    def schedule_transform(
        self,
        target: TextBox,
        path: MotionPath,
        on_waypoint_complete: Callable[[int], None],
        on_path_complete: Callable[[], None],
    ) -> Handle:
        handle = self._new_handle()
        self.transforms[handle] = Transform(
            handle=handle,
            target=target,
            path=path,
            on_waypoint_complete=on_waypoint_complete,
            on_path_complete=on_path_complete,
            x=path.origin.x,
            y=path.origin.y,
        )
        return handle

    def start_particle_emitter(self, plan: ParticlePlan, anchor_handle: Handle) -> Handle:
        handle = self._new_handle()
        x, y = self._anchor_position(anchor_handle, plan)
        self.emitters[handle] = Emitter(handle=handle, plan=plan, anchor=anchor_handle, x=x, y=y)
        return handle

    def generate_texture(self, key: str, colors: tuple[int, ...]) -> None:
        self.textures[key] = tuple(colors)

    def destroy(self, handle: Handle) -> None:
        self.transforms.pop(handle, None)
        self.emitters.pop(handle, None)

    # --- Simulation ---

    def advance(self, dt_ms: float) -> None:
        """Move every transform and emitter forward by ``dt_ms``."""
        for handle in list(self.transforms):
            transform = self.transforms.get(handle)
            if transform is not None and not transform.done:
                self._advance_transform(transform, dt_ms)

        for handle in list(self.emitters):
            emitter = self.emitters.get(handle)
            if emitter is not None:
                self._advance_emitter(emitter, dt_ms)

    def _advance_transform(self, tr: Transform, dt_ms: float) -> None:
        remaining = dt_ms
        waypoints = tr.path.waypoints
        while remaining > 0 and not tr.done:
            wp = waypoints[tr.leg]
            start = tr.path.origin if tr.leg == 0 else waypoints[tr.leg - 1].point
            duration = max(wp.duration_ms, 1)
            step = min(remaining, duration - tr.leg_elapsed_ms)
            tr.leg_elapsed_ms += step
            remaining -= step

            t = min(tr.leg_elapsed_ms / duration, 1.0)
            easing = FIRST_LEG_EASING if tr.leg == 0 else LEG_EASING
            pos = sample_segment(start, wp.point, t, easing)
            tr.x, tr.y = pos.x, pos.y
            if tr.leg == 0:
                tr.scale = t
                tr.alpha = t
            if wp.rotation is not None:
                tr.rotation = tr.leg_start_rotation + (wp.rotation - tr.leg_start_rotation) * t

            if tr.leg_elapsed_ms < duration:
                continue

            finished = tr.leg
            tr.x, tr.y = wp.x, wp.y
            tr.leg += 1
            tr.leg_elapsed_ms = 0.0
            tr.leg_start_rotation = tr.rotation
            tr.on_waypoint_complete(finished)
            if tr.handle not in self.transforms:
                return
            if tr.leg >= len(waypoints):
                tr.done = True
                tr.on_path_complete()
                return

    def _advance_emitter(self, em: Emitter, dt_ms: float) -> None:
        plan = em.plan
        if em.anchor in self.transforms:
            em.x, em.y = self._anchor_position(em.anchor, plan)

        dt_s = dt_ms / 1000.0
        alive = []
        for p in em.particles:
            p.age_ms += dt_ms
            if p.age_ms >= p.lifespan_ms:
                continue
            p.vy += plan.gravity_y * dt_s
            p.x += p.vx * dt_s
            p.y += p.vy * dt_s
            alive.append(p)
        em.particles = alive

        em.since_emit_ms += dt_ms
        while em.since_emit_ms >= plan.frequency_ms:
            em.since_emit_ms -= plan.frequency_ms
            for _ in range(plan.quantity):
                em.particles.append(self._spawn_particle(em))
                em.emitted += 1

    def _spawn_particle(self, em: Emitter) -> Particle:
        plan = em.plan
        angle = math.radians(self._rng.uniform(*plan.angle))
        speed = self._rng.uniform(*plan.speed)
        return Particle(
            x=em.x,
            y=em.y,
            vx=math.cos(angle) * speed,
            vy=math.sin(angle) * speed,
            color=self._rng.choice(plan.colors),
            lifespan_ms=float(plan.lifespan_ms),
        )

    def _anchor_position(self, anchor: Handle, plan: ParticlePlan) -> tuple[float, float]:
        tr = self.transforms.get(anchor)
        if tr is None:
            return (0.0, 0.0)
        ox, oy = plan.follow_offset
        return (tr.x + ox, tr.y + oy)

    def _new_handle(self) -> Handle:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def position_of(self, handle: Handle) -> Point | None:
        tr = self.transforms.get(handle)
        if tr is None:
            return None
        return Point(tr.x, tr.y)
