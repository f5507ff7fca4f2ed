"""Message transport boundary and an in-process conversation.

A transport delivers every message, including the local player's own sends,
to every subscriber in one global order with stable ids. ``MemoryConversation``
provides that order in-process: sends are queued and delivered on ``flush()``,
in the manner of a signal bus flushed once per tick.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

BatchHandler = Callable[[list["InboundMessage"]], None]
DisconnectHandler = Callable[[], None]


class TransportError(Exception):
    """Raised when a transport cannot send."""


@dataclass(frozen=True)
class InboundMessage:
    id: str
    sender_id: str
    text: str
    metadata: dict[str, Any] | None = None


@runtime_checkable
class Transport(Protocol):
    """Protocol for the shared conversation channel."""

    def send(self, text: str, metadata: dict[str, Any]) -> None:
        """Post a message.

        Raises:
            TransportError: Or an ``OSError``, when the message cannot be posted.
        """
        ...

    def subscribe(
        self,
        on_batch: BatchHandler,
        on_disconnect: DisconnectHandler | None = None,
    ) -> Callable[[], None]:
        """Register for inbound batches. Returns an unsubscribe callable."""
        ...


@dataclass
class _Subscription:
    user_id: str
    on_batch: BatchHandler
    on_disconnect: DisconnectHandler | None


class MemoryConversation:
    """Single-order in-process conversation shared by several endpoints.

    Args:
        replay_history: Deliver the whole message log on every flush that
            has new messages, rather than only the new ones. Subscribers
            must filter duplicates by id.
    """

    def __init__(self, replay_history: bool = False) -> None:
        self._replay = replay_history
        self._log: list[InboundMessage] = []
        self._queue: list[InboundMessage] = []
        self._subscriptions: list[_Subscription] = []
        self._disconnected: set[str] = set()
        self._next_id = 1

    @property
    def log(self) -> tuple[InboundMessage, ...]:
        return tuple(self._log)

    def endpoint(self, user_id: str) -> MemoryTransport:
        return MemoryTransport(self, user_id)

    def post(self, user_id: str, text: str, metadata: dict[str, Any] | None = None) -> InboundMessage:
        """Append a message to the conversation; delivered on the next flush."""
        if user_id in self._disconnected:
            raise TransportError(f"{user_id} is disconnected")
        msg = InboundMessage(
            id=f"msg-{self._next_id}",
            sender_id=user_id,
            text=text,
            metadata=dict(metadata) if metadata is not None else None,
        )
        self._next_id += 1
        self._queue.append(msg)
        self._log.append(msg)
        return msg

    def flush(self) -> int:
        """Deliver queued messages to every subscriber. Returns how many were new."""
        snapshot = self._queue
        self._queue = []
        if not snapshot:
            return 0
        batch = list(self._log) if self._replay else snapshot
        for sub in list(self._subscriptions):
            if sub.user_id in self._disconnected:
                continue
            sub.on_batch(list(batch))
        return len(snapshot)

    def disconnect(self, user_id: str) -> None:
        """Cut one endpoint off: its sends raise and its subscribers are told."""
        if user_id in self._disconnected:
            return
        self._disconnected.add(user_id)
        for sub in list(self._subscriptions):
            if sub.user_id == user_id and sub.on_disconnect is not None:
                sub.on_disconnect()

    def reconnect(self, user_id: str) -> None:
        self._disconnected.discard(user_id)

    def _subscribe(
        self,
        user_id: str,
        on_batch: BatchHandler,
        on_disconnect: DisconnectHandler | None,
    ) -> Callable[[], None]:
        sub = _Subscription(user_id, on_batch, on_disconnect)
        self._subscriptions.append(sub)

        def unsubscribe() -> None:
            try:
                self._subscriptions.remove(sub)
            except ValueError:
                pass

        return unsubscribe


class MemoryTransport:
    """One participant's view of a ``MemoryConversation``."""

    def __init__(self, conversation: MemoryConversation, user_id: str) -> None:
        self._conversation = conversation
        self.user_id = user_id

    def send(self, text: str, metadata: dict[str, Any]) -> None:
        self._conversation.post(self.user_id, text, metadata)

    def subscribe(
        self,
        on_batch: BatchHandler,
        on_disconnect: DisconnectHandler | None = None,
    ) -> Callable[[], None]:
        return self._conversation._subscribe(self.user_id, on_batch, on_disconnect)
