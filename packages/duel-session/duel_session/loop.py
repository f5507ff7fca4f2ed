"""DuelLoop - fixed-timestep driver for sessions, conversations and renderers."""
from __future__ import annotations

from typing import Protocol

from duel_session.session import DuelSession
from duel_session.transport import MemoryConversation


class Advanceable(Protocol):
    def advance(self, dt_ms: float) -> None: ...


class DuelLoop:
    """Steps every registered component once per tick, in a fixed order:
    conversations flush, sessions update, renderers advance.
    """

    def __init__(self, tps: int = 60) -> None:
        if tps <= 0:
            raise ValueError("tps must be positive")
        self._tps = tps
        self._dt_ms = 1000.0 / tps
        self._tick_number = 0
        self._sessions: list[DuelSession] = []
        self._renderers: list[Advanceable] = []
        self._conversations: list[MemoryConversation] = []
        self._stop_requested = False

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt_ms(self) -> float:
        return self._dt_ms

    @property
    def tick_number(self) -> int:
        return self._tick_number

    def add_session(self, session: DuelSession) -> None:
        self._sessions.append(session)

    def add_renderer(self, renderer: Advanceable) -> None:
        self._renderers.append(renderer)

    def add_conversation(self, conversation: MemoryConversation) -> None:
        self._conversations.append(conversation)

    def request_stop(self) -> None:
        self._stop_requested = True

    def step(self) -> None:
        self._stop_requested = False
        self._tick()

    def run(self, n: int) -> None:
        self._stop_requested = False
        for _ in range(n):
            self._tick()
            if self._stop_requested:
                break

    def _tick(self) -> None:
        self._tick_number += 1
        for conversation in self._conversations:
            conversation.flush()
        for session in self._sessions:
            session.update(self._dt_ms)
        for renderer in self._renderers:
            renderer.advance(self._dt_ms)
