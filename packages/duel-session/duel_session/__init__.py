"""duel-session - Per-client orchestration of a two-player word duel."""
from __future__ import annotations

from duel_session.animations import ActiveAnimation, AnimationPhase, AnimationSet
from duel_session.config import DuelConfig
from duel_session.errors import DuelErrorCode, SubmitResult
from duel_session.loop import DuelLoop
from duel_session.render import Handle, Renderer, TextBox
from duel_session.session import EFFECTS_KEY, DuelSession, SessionState
from duel_session.timers import HoldTimers
from duel_session.transport import (
    InboundMessage,
    MemoryConversation,
    MemoryTransport,
    Transport,
    TransportError,
)
from duel_session.tween_renderer import TweenRenderer

__all__ = [
    "EFFECTS_KEY",
    "ActiveAnimation",
    "AnimationPhase",
    "AnimationSet",
    "DuelConfig",
    "DuelErrorCode",
    "DuelLoop",
    "DuelSession",
    "Handle",
    "HoldTimers",
    "InboundMessage",
    "MemoryConversation",
    "MemoryTransport",
    "Renderer",
    "SessionState",
    "SubmitResult",
    "TextBox",
    "Transport",
    "TransportError",
    "TweenRenderer",
]
