"""Combat ledger: health pools for the two duelists."""
from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class HealthState:
    """Snapshot of both health pools, from the local player's perspective."""

    my_health: int
    opponent_health: int
    max_health: int

    @property
    def is_terminal(self) -> bool:
        return self.my_health == 0 or self.opponent_health == 0


class CombatLedger:
    """Mutable health state with clamped damage and healing.

    Every mutation, including zero-amount ones, notifies ``on_change``
    observers with the new ``HealthState``. Reaching zero on either side is a
    soft terminal state: further calls are still applied, and ``reset()``
    clears it.
    """

    def __init__(self, max_health: int = 100) -> None:
        if max_health <= 0:
            raise ValueError(f"max_health must be > 0, got {max_health}")
        self._max = max_health
        self._mine = max_health
        self._theirs = max_health
        self._on_change: list[Callable[[HealthState], None]] = []

    @property
    def max_health(self) -> int:
        return self._max

    @property
    def is_terminal(self) -> bool:
        return self._mine == 0 or self._theirs == 0

    def on_change(self, cb: Callable[[HealthState], None]) -> None:
        """Register a callback fired after every mutation."""
        self._on_change.append(cb)

    def get_health(self) -> HealthState:
        return HealthState(self._mine, self._theirs, self._max)

    def deal_damage(self, amount: int, to_opponent: bool) -> HealthState:
        """Subtract ``amount`` from one pool, never dropping below zero."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        if to_opponent:
            self._theirs = max(0, self._theirs - amount)
        else:
            self._mine = max(0, self._mine - amount)
        return self._notify()

    def heal(self, amount: int, to_self: bool) -> HealthState:
        """Add ``amount`` to one pool, never exceeding ``max_health``."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        if to_self:
            self._mine = min(self._max, self._mine + amount)
        else:
            self._theirs = min(self._max, self._theirs + amount)
        return self._notify()

    def reset(self) -> HealthState:
        """Restore both pools to full health."""
        self._mine = self._max
        self._theirs = self._max
        return self._notify()

    def _notify(self) -> HealthState:
        state = self.get_health()
        for cb in self._on_change:
            try:
                cb(state)
            except Exception:
                print(
                    f"duel-combat: on_change callback error: {sys.exc_info()[1]}",
                    file=sys.stderr,
                )
        return state
