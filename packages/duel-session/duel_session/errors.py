"""Error codes reported by a duel session."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DuelErrorCode(str, Enum):
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    SUBMISSION_PENDING = "SUBMISSION_PENDING"
    GAME_OVER = "GAME_OVER"
    EMPTY_MESSAGE = "EMPTY_MESSAGE"
    CLASSIFIER_UNAVAILABLE = "CLASSIFIER_UNAVAILABLE"
    MALFORMED_DESCRIPTOR = "MALFORMED_DESCRIPTOR"
    TRANSPORT_DISCONNECTED = "TRANSPORT_DISCONNECTED"


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of ``DuelSession.submit``. Rejections carry a code and reason."""

    accepted: bool
    error: DuelErrorCode | None = None
    message: str = ""

    @classmethod
    def ok(cls) -> SubmitResult:
        return cls(accepted=True)

    @classmethod
    def reject(cls, error: DuelErrorCode, message: str) -> SubmitResult:
        return cls(accepted=False, error=error, message=message)

    def __bool__(self) -> bool:
        return self.accepted
