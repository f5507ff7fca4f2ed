"""Effect classifier clients for the arena demo.

- OpenAICompatibleClassifier: any OpenAI-compatible /v1/chat/completions
  endpoint (LM Studio, llama.cpp server, vLLM, ...), via stdlib urllib.
- keyword_classifier: offline stand-in that classifies by keywords, used as
  the MockClient reply callable when no endpoint is given.
"""
from __future__ import annotations

import json
import urllib.error
import urllib.request
import zlib
from typing import Any

from duel_effects import ClassifierError


class OpenAICompatibleClassifier:
    """ClassifierClient for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model: str = "default",
        base_url: str = "http://localhost:1234",
        api_key: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 512,
        timeout: float = 15.0,
    ) -> None:
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    def query(self, system_prompt: str, user_message: str) -> str:
        """Send a chat completion request and return the response text."""
        payload = json.dumps({
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }).encode("utf-8")

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = urllib.request.Request(
            f"{self._base_url}/v1/chat/completions",
            data=payload,
            headers=headers,
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=self._timeout) as resp:
            body = json.loads(resp.read().decode("utf-8"))

        content = body["choices"][0]["message"].get("content")
        if not isinstance(content, str):
            raise ClassifierError(f"completion carried no text content: {content!r}")
        return content


def check_endpoint(base_url: str) -> bool:
    """Return True if ``base_url`` answers GET /v1/models."""
    req = urllib.request.Request(f"{base_url.rstrip('/')}/v1/models", method="GET")
    try:
        with urllib.request.urlopen(req, timeout=5):
            return True
    except (urllib.error.URLError, OSError):
        return False


# ---------------------------------------------------------------------------
# Offline keyword classifier
# ---------------------------------------------------------------------------

_ATTACKS: dict[str, tuple[str, int, int]] = {
    # keyword: (particle theme, background, damage)
    "fire": ("fire", 0xCC0000, 20),
    "flame": ("fire", 0xCC0000, 18),
    "ice": ("ice", 0x0066CC, 15),
    "frost": ("ice", 0x0066CC, 15),
    "poison": ("poison", 0x009900, 12),
    "venom": ("poison", 0x009900, 12),
    "lightning": ("energy", 0x6600CC, 25),
    "thunder": ("energy", 0x6600CC, 25),
    "punch": ("", 0x444444, 8),
    "kick": ("", 0x444444, 10),
    "slash": ("", 0x333333, 14),
    "strike": ("", 0x333333, 12),
    "blast": ("energy", 0xFF4500, 22),
}

_DEFENSES: dict[str, str] = {
    "shield": "energy",
    "block": "",
    "dodge": "smoke",
    "parry": "",
    "wall": "ice",
}


def keyword_classifier(message: str) -> dict[str, Any]:
    """Describe ``message`` by the first attack or defense keyword it contains."""
    message = message.lower()
    jitter = zlib.crc32(message.encode("utf-8")) % 60 - 30

    for word, (theme, background, damage) in _ATTACKS.items():
        if word in message:
            descriptor = {
                "fontSize": 30 + damage // 2,
                "moveType": "attack",
                "damage": damage,
                "colors": {"background": background, "border": (background >> 1) & 0x7F7F7F},
                "waypoints": [
                    {"dx": jitter, "dy": -60, "durationMs": 700},
                    {"dx": 0, "dy": 0, "durationMs": 400, "rotationRad": 6.28},
                ],
            }
            if theme:
                descriptor["particles"] = theme
            return descriptor

    for word, theme in _DEFENSES.items():
        if word in message:
            descriptor = {
                "fontSize": 32,
                "moveType": "defense",
                "damage": 0,
                "colors": {"background": 0xDDEEFF, "border": 0x6699CC},
                "waypoints": [{"dx": jitter, "dy": -90, "durationMs": 1200}],
            }
            if theme:
                descriptor["particles"] = {"theme": theme, "quantity": 2}
            return descriptor

    return {
        "fontSize": 26,
        "moveType": "neutral",
        "damage": 0,
        "colors": {"background": 0xFFFFFF, "border": 0xE5E7EB},
        "waypoints": [{"dx": 0, "dy": -40, "durationMs": 2000}],
    }
