"""EffectDescriptor schema: parsing, clamping and wire encoding.

Descriptors arrive from a generative classifier and then travel inside
message metadata to every client. Parsing is strict about structure (missing
or wrongly-typed required fields raise ``MalformedDescriptorError``) and
lenient about ranges (out-of-range numbers are clamped). Every client decodes
the same JSON into an equal descriptor.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from duel_motion import MoveType, RelativeWaypoint
from duel_particles import ParticleSpec

TEXT_BLACK = "#000000"
TEXT_WHITE = "#ffffff"

FONT_SIZE_RANGE = (18, 60)
DAMAGE_RANGE = (0, 50)
MAX_WAYPOINTS = 3

# Backgrounds darker than this luminance get white text.
_DARK_LUMINANCE = 0x88


class MalformedDescriptorError(ValueError):
    """Raised when effect data is structurally invalid."""


@dataclass(frozen=True)
class EffectColors:
    text: str
    background: int
    border: int


@dataclass(frozen=True)
class EffectDescriptor:
    """Structured effect payload accompanying one message.

    Attributes:
        font_size: Text size in pixels, within FONT_SIZE_RANGE.
        colors: Text, background and border colors.
        move_type: Attack, defense or neutral.
        damage: Damage dealt on impact; always 0 unless ``move_type`` is attack.
        waypoints: 1-3 relative legs.
        particles: Optional particle request.
    """

    font_size: int
    colors: EffectColors
    move_type: MoveType
    damage: int
    waypoints: tuple[RelativeWaypoint, ...]
    particles: ParticleSpec | None = None

    def to_dict(self) -> dict[str, Any]:
        """Encode to the camelCase wire format."""
        out: dict[str, Any] = {
            "fontSize": self.font_size,
            "moveType": self.move_type.value,
            "damage": self.damage,
            "colors": {
                "text": self.colors.text,
                "background": self.colors.background,
                "border": self.colors.border,
            },
            "waypoints": [_waypoint_to_dict(wp) for wp in self.waypoints],
        }
        if self.particles is not None:
            out["particles"] = _particles_to_dict(self.particles)
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), sort_keys=True)


FALLBACK_DESCRIPTOR = EffectDescriptor(
    font_size=28,
    colors=EffectColors(text=TEXT_BLACK, background=0xFFFFFF, border=0xE5E7EB),
    move_type=MoveType.NEUTRAL,
    damage=0,
    waypoints=(RelativeWaypoint(0.0, -40.0, 2000),),
)


def descriptor_from_json(text: str) -> EffectDescriptor:
    """Decode a descriptor from its JSON wire form."""
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise MalformedDescriptorError(f"effects are not valid JSON: {exc}") from exc
    return parse_descriptor(data)


def parse_descriptor(data: Any) -> EffectDescriptor:
    """Validate and clamp a decoded descriptor object.

    Raises:
        MalformedDescriptorError: On missing or wrongly-typed required fields,
            non-finite numbers, or an unknown move type.
    """
    if not isinstance(data, dict):
        raise MalformedDescriptorError(
            f"descriptor must be an object, got {type(data).__name__}"
        )

    font_size = _clamp_int(_number(data, "fontSize", "descriptor"), FONT_SIZE_RANGE)
    move_type = _move_type(data.get("moveType"))
    colors = _colors(data.get("colors"))
    waypoints = _waypoints(data.get("waypoints"))

    damage = 0
    if data.get("damage") is not None:
        damage = _clamp_int(_number(data, "damage", "descriptor"), DAMAGE_RANGE)
    if move_type is not MoveType.ATTACK:
        damage = 0

    particles = _particles(data.get("particles"))

    return EffectDescriptor(
        font_size=font_size,
        colors=colors,
        move_type=move_type,
        damage=damage,
        waypoints=waypoints,
        particles=particles,
    )


def readable_text_color(background: int) -> str:
    """Black or white, whichever reads better on ``background``."""
    r = (background >> 16) & 0xFF
    g = (background >> 8) & 0xFF
    b = background & 0xFF
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return TEXT_WHITE if luminance < _DARK_LUMINANCE else TEXT_BLACK


def parse_color(value: Any, where: str = "color") -> int:
    """Parse an RGB color given as int, ``"0xRRGGBB"`` or ``"#RRGGBB"``."""
    if isinstance(value, bool):
        raise MalformedDescriptorError(f"{where}: expected a color, got bool")
    if isinstance(value, int):
        return value & 0xFFFFFF
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value) & 0xFFFFFF
    if isinstance(value, str):
        s = value.strip().lower()
        if s.startswith("#"):
            s = s[1:]
        elif s.startswith("0x"):
            s = s[2:]
        try:
            return int(s, 16) & 0xFFFFFF
        except ValueError:
            pass
    raise MalformedDescriptorError(f"{where}: invalid color {value!r}")


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

def _number(obj: dict[str, Any], key: str, where: str) -> float:
    if key not in obj:
        raise MalformedDescriptorError(f"{where}: missing '{key}'")
    return _as_number(obj[key], f"{where}.{key}")


def _as_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDescriptorError(f"{where}: expected a number, got {value!r}")
    if not math.isfinite(value):
        raise MalformedDescriptorError(f"{where}: number must be finite")
    return float(value)


def _clamp_int(value: float, bounds: tuple[int, int]) -> int:
    lo, hi = bounds
    return int(round(min(max(value, lo), hi)))


def _move_type(value: Any) -> MoveType:
    if not isinstance(value, str):
        raise MalformedDescriptorError(f"descriptor.moveType: expected a string, got {value!r}")
    try:
        return MoveType(value.strip().lower())
    except ValueError:
        raise MalformedDescriptorError(f"descriptor.moveType: unknown move {value!r}") from None


def _colors(value: Any) -> EffectColors:
    if not isinstance(value, dict):
        raise MalformedDescriptorError("descriptor.colors: expected an object")
    for key in ("background", "border"):
        if key not in value:
            raise MalformedDescriptorError(f"descriptor.colors: missing '{key}'")
    background = parse_color(value["background"], "colors.background")
    border = parse_color(value["border"], "colors.border")

    text = value.get("text")
    if isinstance(text, str) and text.strip().lower() in (TEXT_BLACK, TEXT_WHITE):
        text = text.strip().lower()
    else:
        text = readable_text_color(background)
    return EffectColors(text=text, background=background, border=border)


def _waypoints(value: Any) -> tuple[RelativeWaypoint, ...]:
    if not isinstance(value, list) or not value:
        raise MalformedDescriptorError("descriptor.waypoints: expected a non-empty list")
    out = []
    for i, raw in enumerate(value[:MAX_WAYPOINTS]):
        where = f"waypoints[{i}]"
        if not isinstance(raw, dict):
            raise MalformedDescriptorError(f"{where}: expected an object")
        rotation = None
        if raw.get("rotationRad") is not None:
            rotation = _number(raw, "rotationRad", where)
        out.append(
            RelativeWaypoint(
                dx=_number(raw, "dx", where),
                dy=_number(raw, "dy", where),
                duration_ms=int(round(_number(raw, "durationMs", where))),
                rotation=rotation,
            )
        )
    return tuple(out)


def _particles(value: Any) -> ParticleSpec | None:
    if value is None:
        return None
    if isinstance(value, str):
        return ParticleSpec(theme=value)
    if not isinstance(value, dict):
        raise MalformedDescriptorError("descriptor.particles: expected an object or theme name")

    theme = value.get("theme")
    if theme is not None and not isinstance(theme, str):
        raise MalformedDescriptorError("particles.theme: expected a string")

    colors: tuple[int, ...] = ()
    if value.get("colors") is not None:
        raw_colors = value["colors"]
        if not isinstance(raw_colors, list):
            raise MalformedDescriptorError("particles.colors: expected a list")
        colors = tuple(
            parse_color(c, f"particles.colors[{i}]") for i, c in enumerate(raw_colors)
        )

    return ParticleSpec(
        theme=theme,
        colors=colors,
        speed=_pair(value, "speed", "min", "max"),
        angle=_pair(value, "angle", "min", "max"),
        scale=_pair(value, "scale", "start", "end"),
        lifespan_ms=_optional_number(value, "lifespanMs"),
        frequency_ms=_optional_number(value, "frequencyMs"),
        quantity=_optional_number(value, "quantity"),
    )


def _pair(obj: dict[str, Any], key: str, first: str, second: str) -> tuple[float, float] | None:
    raw = obj.get(key)
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise MalformedDescriptorError(f"particles.{key}: expected an object")
    where = f"particles.{key}"
    return (_number(raw, first, where), _number(raw, second, where))


def _optional_number(obj: dict[str, Any], key: str) -> float | None:
    if obj.get(key) is None:
        return None
    return _number(obj, key, "particles")


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------

def _waypoint_to_dict(wp: RelativeWaypoint) -> dict[str, Any]:
    out: dict[str, Any] = {"dx": wp.dx, "dy": wp.dy, "durationMs": wp.duration_ms}
    if wp.rotation is not None:
        out["rotationRad"] = wp.rotation
    return out


def _particles_to_dict(spec: ParticleSpec) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if spec.theme is not None:
        out["theme"] = spec.theme
    if spec.colors:
        out["colors"] = list(spec.colors)
    if spec.speed is not None:
        out["speed"] = {"min": spec.speed[0], "max": spec.speed[1]}
    if spec.angle is not None:
        out["angle"] = {"min": spec.angle[0], "max": spec.angle[1]}
    if spec.scale is not None:
        out["scale"] = {"start": spec.scale[0], "end": spec.scale[1]}
    if spec.lifespan_ms is not None:
        out["lifespanMs"] = spec.lifespan_ms
    if spec.frequency_ms is not None:
        out["frequencyMs"] = spec.frequency_ms
    if spec.quantity is not None:
        out["quantity"] = spec.quantity
    return out
