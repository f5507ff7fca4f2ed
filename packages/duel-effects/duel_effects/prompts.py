"""Prompt assembly for the effect classifier.

The system prompt carries the classification contract: the JSON schema,
move-type and damage rules, theme guidelines and worked examples. The user
message carries the recent battle history, a short analysis of how the
battle is going, and the message being classified.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from duel_effects.history import ConversationHistory, HistoryEntry

HISTORY_RANGE = (8, 10)

SCREEN_ZONES = tuple(
    f"{h}-{v}" for h in ("left", "center", "right") for v in ("top", "middle", "bottom")
)
# Positioned messages considered when suggesting zones.
ZONE_WINDOW = 5

_MESSAGE_HEADER = "Now analyze this message and generate appropriate effects:\nMessage: \""

ATTACK_KEYWORDS = (
    "fire", "ice", "attack", "strike", "blast", "explosion",
    "punch", "kick", "shoot", "throw", "slash",
)

# Checked in order; the first matching element wins.
ELEMENT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("fire", ("fire", "flame", "burn")),
    ("ice", ("ice", "freeze", "frost")),
    ("poison", ("poison", "toxic", "venom")),
    ("electric", ("lightning", "thunder", "electric")),
)

SYSTEM_PROMPT = """\
You are a creative game effects designer for a two-player word duel.
Every message a player sends becomes a text box that moves across the arena.
Classify the message and describe its visual effect as a single JSON object.

STRICT RULES (VIOLATIONS WILL FAIL):
1. moveType: exactly one of "attack", "defense", "neutral"
   - attack: the message strikes the opponent (fireball, punch, slash)
   - defense: the message protects the caster (shield, block, dodge)
   - neutral: anything else (greetings, taunts, chatter)
2. damage: integer 0-50, only for attacks; defense and neutral use 0
3. Text color: ONLY "#000000" (black) or "#ffffff" (white)
   - Dark backgrounds (0x000000-0x888888): use "#ffffff"
   - Light backgrounds (0x999999-0xffffff): use "#000000"
4. fontSize: 20-48
5. waypoints: 1-3 legs, each {"dx", "dy", "durationMs", optional "rotationRad"}
   - attack: offsets around the opponent, durationMs 300-2000
   - defense: small offsets around the caster (within 120px), durationMs 1000-2500
   - neutral: one gentle drift, durationMs 1000-2500
6. particles are OPTIONAL: omit them for simple messages

PARTICLE RULES (when included):
- Either a theme name: "fire", "ice", "poison", "smoke", "energy"
- Or an object with "theme" and/or explicit fields:
  colors: 2-4 hex numbers, speed {"min","max"} 0-200, angle {"min","max"} 0-360,
  scale {"start","end"} 0-3, lifespanMs 200-3000, frequencyMs 15-500,
  quantity 1-5

THEME GUIDELINES:
- Fire: red/orange (0xcc0000, 0xff4500, 0xff9900), rising
- Ice: blue/white (0x0099ff, 0x66ccff, 0xffffff), falling or outward
- Poison: green/yellow (0x00cc00, 0x66ff00, 0xffff00), bubbling
- Energy: bright (0xffff00, 0x00ffff, 0xff00ff), fast
- Smoke: grey, slow, for dodges and fades

EXAMPLES:

Message: "fireball"
Response: {"fontSize":38,"moveType":"attack","damage":20,"colors":{"text":"#ffffff","background":0xcc0000,"border":0x990000},"waypoints":[{"dx":-40,"dy":-60,"durationMs":900},{"dx":0,"dy":0,"durationMs":600,"rotationRad":3.14}],"particles":"fire"}

Message: "ice shield"
Response: {"fontSize":32,"moveType":"defense","damage":0,"colors":{"text":"#ffffff","background":0x0066cc,"border":0x004499},"waypoints":[{"dx":0,"dy":-80,"durationMs":1500}],"particles":{"theme":"ice","quantity":2}}

Message: "hello there"
Response: {"fontSize":28,"moveType":"neutral","damage":0,"colors":{"text":"#000000","background":0xffffff,"border":0xe5e7eb},"waypoints":[{"dx":0,"dy":-40,"durationMs":2000}]}

Message: "poison cloud"
Response: {"fontSize":30,"moveType":"attack","damage":15,"colors":{"text":"#ffffff","background":0x009900,"border":0x006600},"waypoints":[{"dx":60,"dy":-30,"durationMs":1800},{"dx":0,"dy":0,"durationMs":1200}],"particles":{"colors":[0x00cc00,0x66ff00,0x99ff33],"speed":{"min":25,"max":50},"angle":{"min":260,"max":280},"scale":{"start":2,"end":3},"lifespanMs":1800,"frequencyMs":50,"quantity":2}}

BATTLE STORY COHERENCE:
- Escalation: early messages small (fontSize 20-28), later ones larger (40-48)
- Elemental counters: fire <-> ice, lightning <-> earth, poison <-> holy
- Alternate quick strikes (300-1200ms) with power moves (1800-2500ms)
- Particle intensity grows with the battle: quantity 1-2 early, 3-5 late

Return ONLY valid JSON matching the schema."""


@dataclass(frozen=True)
class ClassifierRequest:
    """One classification request: the message plus recent context.

    ``max_history`` is clamped into HISTORY_RANGE and ``recent_history`` is
    truncated to it.
    """

    message: str
    recent_history: tuple[HistoryEntry, ...] = ()
    max_history: int = 8

    def __post_init__(self) -> None:
        lo, hi = HISTORY_RANGE
        limit = min(max(self.max_history, lo), hi)
        object.__setattr__(self, "max_history", limit)
        object.__setattr__(self, "recent_history", tuple(self.recent_history)[-limit:])

    @classmethod
    def from_history(
        cls, message: str, history: ConversationHistory, max_history: int = 8
    ) -> ClassifierRequest:
        return cls(message=message, recent_history=history.recent(max_history), max_history=max_history)


def detect_element(text: str) -> str | None:
    """Return the element named in ``text``, if any."""
    lowered = text.lower()
    for element, words in ELEMENT_KEYWORDS:
        if any(w in lowered for w in words):
            return element
    return None


def battle_intensity(attack_count: int) -> str:
    if attack_count < 2:
        return "LOW (early game)"
    if attack_count < 4:
        return "MEDIUM (heating up)"
    return "HIGH (intense battle)"


def analyze_history(entries: tuple[HistoryEntry, ...]) -> tuple[int, str | None]:
    """Count attack-like messages and find the last element used.

    Returns:
        (attack_count, last_element) where last_element may be None.
    """
    attack_count = 0
    last_element = None
    for entry in entries:
        lowered = entry.text.lower()
        if any(kw in lowered for kw in ATTACK_KEYWORDS):
            attack_count += 1
            element = detect_element(lowered)
            if element is not None:
                last_element = element
    return attack_count, last_element


def screen_zone(x: float, y: float) -> str:
    """Name the arena zone containing (x, y), e.g. ``"left-top"``."""
    if x < 600:
        horizontal = "left"
    elif x > 1300:
        horizontal = "right"
    else:
        horizontal = "center"
    if y < 400:
        vertical = "top"
    elif y > 700:
        vertical = "bottom"
    else:
        vertical = "middle"
    return f"{horizontal}-{vertical}"


def zone_usage(entries: tuple[HistoryEntry, ...]) -> tuple[list[str], list[str]]:
    """Find the zones recent messages landed in and the less crowded ones.

    Returns:
        (recent, suggested): zones of the last ZONE_WINDOW positioned
        entries, oldest first, and the zones used fewer than twice among
        them, in SCREEN_ZONES order.
    """
    recent = [
        screen_zone(e.position.x, e.position.y) for e in entries if e.position is not None
    ][-ZONE_WINDOW:]
    counts = Counter(recent)
    return recent, [zone for zone in SCREEN_ZONES if counts[zone] < 2]


def format_history(entries: tuple[HistoryEntry, ...]) -> str:
    lines = [f"=== RECENT BATTLE HISTORY (Last {len(entries)} messages) ==="]
    for i, entry in enumerate(entries, start=1):
        move = f" [{entry.move_type.value.upper()}]" if entry.move_type is not None else ""
        position = ""
        if entry.position is not None:
            x, y = entry.position.x, entry.position.y
            position = f" [Position: {screen_zone(x, y)} ({round(x)},{round(y)})]"
        particles = " [HAS PARTICLES]" if entry.has_particles else " [NO PARTICLES]"
        lines.append(f'[{i}] {entry.sender}: "{entry.text}"{move}{position}{particles}')
    return "\n".join(lines)


def format_analysis(entries: tuple[HistoryEntry, ...]) -> str:
    attack_count, last_element = analyze_history(entries)
    lines = ["=== BATTLE CONTEXT ANALYSIS ===",
             f"- Battle Intensity: {battle_intensity(attack_count)}"]
    if last_element is not None:
        lines.append(f"- Last Element Used: {last_element.upper()} (consider counter-element)")
    lines.append(f"- Message Count: {len(entries)} (more messages = more escalation needed)")
    recent, suggested = zone_usage(entries)
    if recent:
        lines.append(f"- Recent Positions Used: {', '.join(recent)}")
        if suggested:
            lines.append(f"- SUGGESTED ZONES (less crowded): {', '.join(suggested[:3])}")
    lines.append("")
    lines.append("=== YOUR OBJECTIVES ===")
    lines.append("1. AVOID OVERLAPPING: vary offsets from recent messages")
    lines.append("2. PROGRESSIVE ESCALATION: each attack more intense than the previous")
    lines.append("3. ELEMENTAL COUNTERS: answer the last element with its opposite")
    lines.append("4. POSITION VARIETY: favor the suggested zones over crowded ones")
    lines.append("5. TIMING VARIETY: alternate fast strikes and dramatic moves")
    lines.append("6. NARRATIVE FLOW: make this message the next step in the battle story")
    return "\n".join(lines)


def build_prompt(request: ClassifierRequest, caster: str, opponent: str) -> tuple[str, str]:
    """Assemble the (system_prompt, user_message) pair for one request."""
    sections = [f"Caster: {caster}", f"Opponent: {opponent}"]
    if request.recent_history:
        sections.append(format_history(request.recent_history))
        sections.append(format_analysis(request.recent_history))
    sections.append(f'{_MESSAGE_HEADER}{request.message}"')
    return SYSTEM_PROMPT, "\n\n".join(sections)


def extract_message(user_message: str) -> str:
    """Recover the classified message from a user prompt made by ``build_prompt``.

    Text without the message header is returned unchanged.
    """
    _, header, message = user_message.partition(_MESSAGE_HEADER)
    if not header:
        return user_message
    return message[:-1] if message.endswith('"') else message
