"""Active animation records and the bounded set that owns them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from duel_effects import EffectDescriptor
from duel_motion import MotionPath, MoveType
from duel_particles import ParticlePlan

from duel_session.render import Handle


class AnimationPhase(str, Enum):
    """Lifecycle of an animation: emerging -> traveling -> resolved -> destroyed."""

    EMERGING = "emerging"
    TRAVELING = "traveling"
    RESOLVED = "resolved"
    DESTROYED = "destroyed"


@dataclass
class ActiveAnimation:
    """One message's text box (and optional emitter) currently on screen.

    Attributes:
        animation_id: Session-local animation id.
        message_id: Transport id of the message that spawned it.
        caster: Participant who sent the message.
        target: The caster's opponent.
        text: Message text.
        descriptor: Decoded effects.
        path: Compiled motion path.
        plan: Resolved particle plan, if any.
        transform_handle: Renderer handle of the text box.
        emitter_handle: Renderer handle of the emitter, if any.
        current_waypoint: Index of the waypoint being travelled to.
        damage_applied: Set once an attack has hit the ledger.
    """

    animation_id: int
    message_id: str
    caster: str
    target: str
    text: str
    descriptor: EffectDescriptor
    path: MotionPath
    plan: ParticlePlan | None = None
    transform_handle: Handle | None = None
    emitter_handle: Handle | None = None
    phase: AnimationPhase = AnimationPhase.EMERGING
    current_waypoint: int = 0
    damage_applied: bool = False

    @property
    def is_attack(self) -> bool:
        return self.descriptor.move_type is MoveType.ATTACK

    @property
    def in_flight(self) -> bool:
        return self.phase in (AnimationPhase.EMERGING, AnimationPhase.TRAVELING)


class AnimationSet:
    """Insertion-ordered animations with a fixed capacity.

    ``add`` returns the animations pushed out to stay within capacity,
    oldest first; the caller is responsible for tearing them down.
    """

    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._items: dict[int, ActiveAnimation] = {}

    def add(self, animation: ActiveAnimation) -> list[ActiveAnimation]:
        self._items[animation.animation_id] = animation
        evicted = []
        while len(self._items) > self.capacity:
            oldest = next(iter(self._items))
            evicted.append(self._items.pop(oldest))
        return evicted

    def get(self, animation_id: int) -> ActiveAnimation | None:
        return self._items.get(animation_id)

    def remove(self, animation_id: int) -> ActiveAnimation | None:
        return self._items.pop(animation_id, None)

    def clear(self) -> list[ActiveAnimation]:
        items = list(self._items.values())
        self._items.clear()
        return items

    def __contains__(self, animation_id: object) -> bool:
        return animation_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ActiveAnimation]:
        return iter(list(self._items.values()))
