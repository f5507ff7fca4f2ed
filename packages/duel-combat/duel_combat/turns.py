"""Turn arbiter: whose turn it is, derived from observed message senders.

Turn state is never transmitted. Each client observes the same ordered
message stream and derives the next mover from the last sender, so two
clients agree as long as the transport delivers one total order to both.
"""
from __future__ import annotations

import sys
from enum import Enum
from typing import Callable


class Turn(str, Enum):
    MINE = "mine"
    THEIRS = "theirs"


class TurnArbiter:
    """Single-bit turn state for the local player.

    Args:
        local_id: Identity of the local player.
        first_mover: Identity that moves first, before any message exists.
    """

    def __init__(self, local_id: str, first_mover: str) -> None:
        self._local_id = local_id
        self._turn = Turn.MINE if local_id == first_mover else Turn.THEIRS
        self._last_sender: str | None = None
        self._on_change: list[Callable[[Turn], None]] = []

    @property
    def local_id(self) -> str:
        return self._local_id

    @property
    def last_sender(self) -> str | None:
        return self._last_sender

    def on_change(self, cb: Callable[[Turn], None]) -> None:
        """Register a callback fired when the turn flips."""
        self._on_change.append(cb)

    def can_submit(self) -> bool:
        return self._turn is Turn.MINE

    def current_turn_label(self) -> Turn:
        return self._turn

    def status_text(self) -> str:
        return "Your turn" if self._turn is Turn.MINE else "Waiting for opponent..."

    def on_message_observed(self, sender_id: str) -> Turn:
        """Record a message from ``sender_id`` and return whose turn is next."""
        self._last_sender = sender_id
        previous = self._turn
        self._turn = Turn.THEIRS if sender_id == self._local_id else Turn.MINE
        if self._turn is not previous:
            for cb in self._on_change:
                try:
                    cb(self._turn)
                except Exception:
                    print(
                        f"duel-combat: on_change callback error: {sys.exc_info()[1]}",
                        file=sys.stderr,
                    )
        return self._turn
