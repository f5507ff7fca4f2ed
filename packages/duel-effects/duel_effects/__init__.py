"""duel-effects - Effect descriptors and the classifier boundary for the word duel."""
from __future__ import annotations

from duel_effects.client import ClassifierClient, ClassifierError, MockClient
from duel_effects.descriptor import (
    FALLBACK_DESCRIPTOR,
    EffectColors,
    EffectDescriptor,
    MalformedDescriptorError,
    descriptor_from_json,
    parse_color,
    parse_descriptor,
    readable_text_color,
)
from duel_effects.history import ConversationHistory, HistoryEntry
from duel_effects.parsers import normalize_hex_literals, parse_effect_response, strip_code_fences
from duel_effects.prompts import SYSTEM_PROMPT, ClassifierRequest, build_prompt, extract_message

__all__ = [
    "FALLBACK_DESCRIPTOR",
    "SYSTEM_PROMPT",
    "ClassifierClient",
    "ClassifierError",
    "ClassifierRequest",
    "ConversationHistory",
    "EffectColors",
    "EffectDescriptor",
    "HistoryEntry",
    "MalformedDescriptorError",
    "MockClient",
    "build_prompt",
    "extract_message",
    "descriptor_from_json",
    "normalize_hex_literals",
    "parse_color",
    "parse_descriptor",
    "parse_effect_response",
    "readable_text_color",
    "strip_code_fences",
]
