"""One-shot hold timers keyed by animation id."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass
class HoldTimer:
    """One-shot countdown. Fires when remaining_ms reaches 0, then is removed."""

    animation_id: int
    remaining_ms: float


class HoldTimers:

    def __init__(self, on_fire: Callable[[int], None]) -> None:
        self._on_fire = on_fire
        self._timers: dict[int, HoldTimer] = {}

    def start(self, animation_id: int, delay_ms: float) -> None:
        self._timers[animation_id] = HoldTimer(animation_id, delay_ms)

    def cancel(self, animation_id: int) -> None:
        self._timers.pop(animation_id, None)

    def cancel_all(self) -> None:
        self._timers.clear()

    def advance(self, dt_ms: float) -> None:
        for timer in list(self._timers.values()):
            if timer.animation_id not in self._timers:
                continue
            timer.remaining_ms -= dt_ms
            if timer.remaining_ms <= 0:
                del self._timers[timer.animation_id]
                self._on_fire(timer.animation_id)

    def __contains__(self, animation_id: object) -> bool:
        return animation_id in self._timers

    def __len__(self) -> int:
        return len(self._timers)
