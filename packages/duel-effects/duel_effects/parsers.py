"""Response parsers for classifier output."""
from __future__ import annotations

import json
import re
from typing import Any

from duel_effects.descriptor import EffectDescriptor, MalformedDescriptorError, parse_descriptor

# Pattern to match ```json ... ``` or ``` ... ``` code fences.
_CODE_FENCE_RE = re.compile(
    r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$",
    re.DOTALL,
)

# Bare hex literals such as 0xff6600, which models emit even though JSON
# has no hex numbers. Quoted hex strings are left to the color parser.
_HEX_LITERAL_RE = re.compile(r'(?<![\w"#])0[xX]([0-9a-fA-F]{1,8})\b')


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping the text.

    Returns the inner content if fences are found, otherwise the original
    text unchanged.
    """
    match = _CODE_FENCE_RE.match(text)
    if match:
        return match.group(1)
    return text


def normalize_hex_literals(text: str) -> str:
    """Rewrite bare ``0x..`` literals as decimal integers."""
    return _HEX_LITERAL_RE.sub(lambda m: str(int(m.group(1), 16)), text)


def parse_effect_response(response: str) -> EffectDescriptor:
    """Parse a raw classifier response into a descriptor.

    Raises:
        MalformedDescriptorError: If the response is not a JSON object or
            fails descriptor validation.
    """
    cleaned = normalize_hex_literals(strip_code_fences(response))
    try:
        parsed: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedDescriptorError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedDescriptorError(
            f"Expected JSON object, got {type(parsed).__name__}"
        )
    return parse_descriptor(parsed)
