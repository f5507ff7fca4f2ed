"""Bounded conversation history used as classifier context."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator

from duel_motion import MoveType, Point


@dataclass(frozen=True)
class HistoryEntry:
    """One delivered message. ``position`` is where its text box came to rest."""

    sender: str
    text: str
    move_type: MoveType | None = None
    has_particles: bool = False
    position: Point | None = None


class ConversationHistory:
    """Most recent messages, oldest first. Older entries fall off the front."""

    def __init__(self, maxlen: int = 10) -> None:
        if maxlen < 1:
            raise ValueError(f"maxlen must be >= 1, got {maxlen}")
        self._entries: deque[HistoryEntry] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def recent(self, n: int) -> tuple[HistoryEntry, ...]:
        """Return up to the last ``n`` entries, oldest first."""
        if n <= 0:
            return ()
        return tuple(self._entries)[-n:]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))
