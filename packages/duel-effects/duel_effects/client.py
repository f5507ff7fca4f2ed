"""Classifier client protocol and a scripted stand-in for tests and demos."""
from __future__ import annotations

import json
import time
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from duel_effects.descriptor import FALLBACK_DESCRIPTOR, EffectDescriptor
from duel_effects.prompts import extract_message

Reply = EffectDescriptor | dict[str, Any] | str | None


class ClassifierError(Exception):
    """Raised by a classifier client that cannot answer a query."""


@runtime_checkable
class ClassifierClient(Protocol):
    """Blocking effect classifier, called from the session's worker thread.

    ``query`` returns the model's raw reply. Anything it raises, and any reply
    that is not a parseable descriptor, is absorbed by the session, which
    sends the fallback descriptor instead.
    """

    def query(self, system_prompt: str, user_message: str) -> str:
        ...


class MockClient:
    """Classifier that answers from a script instead of a model.

    Args:
        replies: What to answer. A single reply, a list played in order (the
            last one repeats once the list runs out), or a callable that
            receives the message being classified. An ``EffectDescriptor`` is
            sent as its wire JSON and a dict is JSON-encoded. Strings and
            ``None`` are passed through untouched, so tests can feed the
            session broken replies.
        latency: Seconds to sleep before answering.
        fail_with: Exception raised by every query instead of answering.
    """

    def __init__(
        self,
        replies: Reply | Sequence[Reply] | Callable[[str], Reply] = FALLBACK_DESCRIPTOR,
        latency: float = 0.0,
        fail_with: BaseException | None = None,
    ) -> None:
        if isinstance(replies, (list, tuple)) and not replies:
            raise ValueError("replies must not be empty")
        self._replies = replies
        self._latency = latency
        self._fail_with = fail_with
        self._answered = 0
        self.calls: list[tuple[str, str]] = []

    @property
    def messages(self) -> list[str]:
        """Messages classified so far, in order."""
        return [extract_message(user) for _, user in self.calls]

    def query(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        if self._latency > 0.0:
            time.sleep(self._latency)
        if self._fail_with is not None:
            raise self._fail_with
        return _encode(self._next_reply(extract_message(user_message)))

    def _next_reply(self, message: str) -> Reply:
        replies = self._replies
        if callable(replies):
            return replies(message)
        if isinstance(replies, (list, tuple)):
            reply = replies[min(self._answered, len(replies) - 1)]
            self._answered += 1
            return reply
        return replies


def _encode(reply: Reply) -> Any:
    if isinstance(reply, EffectDescriptor):
        return reply.to_json()
    if isinstance(reply, dict):
        return json.dumps(reply)
    return reply
