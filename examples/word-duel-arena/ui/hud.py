"""HUD: health bars, turn banner, input box, and error log."""
from __future__ import annotations

import pygame

from duel_combat import HealthState
from duel_session import DuelSession, SessionState

from ui.arena import FontCache
from ui.constants import (
    ARENA_H,
    ARENA_W,
    COLOR_ERROR,
    COLOR_HEALTH,
    COLOR_HEALTH_BG,
    COLOR_HEALTH_LOW,
    COLOR_HUD_BG,
    COLOR_INPUT_ACTIVE,
    COLOR_INPUT_BG,
    COLOR_TEXT,
    COLOR_TEXT_DIM,
    HEALTH_H,
    HEALTH_W,
    HUD_H,
    INPUT_H,
    SEAT_COLORS,
)

_STATE_LABELS = {
    SessionState.IDLE: "Connecting...",
    SessionState.AWAITING_SUBMISSION: "Your turn",
    SessionState.SUBMITTING: "Casting...",
    SessionState.AWAITING_OPPONENT: "Waiting for opponent...",
    SessionState.GAME_OVER: "Round over",
}


def _bar(
    surface: pygame.Surface, x: int, y: int, w: int, h: int, value: int, max_value: int,
) -> None:
    pygame.draw.rect(surface, COLOR_HEALTH_BG, (x, y, w, h))
    frac = value / max_value if max_value else 0.0
    color = COLOR_HEALTH if frac > 0.3 else COLOR_HEALTH_LOW
    pygame.draw.rect(surface, color, (x, y, int(w * frac), h))


def draw_health_bars(
    surface: pygame.Surface,
    session: DuelSession,
    fonts: FontCache,
    scale: float,
) -> None:
    """Left bar for the first mover, right bar for the other, from this client's ledger."""
    pygame.draw.rect(surface, COLOR_HUD_BG, (0, 0, int(ARENA_W * scale), int(HUD_H * scale)))
    health: HealthState = session.ledger.get_health()
    w, h = int(HEALTH_W * scale), int(HEALTH_H * scale)
    y = int(40 * scale)
    font = fonts.get(22)

    for seat, pid in enumerate(session.participants):
        value = health.my_health if pid == session.local_id else health.opponent_health
        x = int(60 * scale) if seat == 0 else int((ARENA_W - 60) * scale) - w
        _bar(surface, x, y, w, h, value, health.max_health)
        label = font.render(f"{pid}  {value}/{health.max_health}", True, SEAT_COLORS[seat])
        surface.blit(label, (x, y - label.get_height() - 2))


def draw_turn_banner(
    surface: pygame.Surface,
    session: DuelSession,
    fonts: FontCache,
    scale: float,
) -> None:
    if session.state is SessionState.GAME_OVER and session.winner is not None:
        text = f"{session.winner} wins! Press F5 for a new round"
    else:
        text = f"{session.local_id}: {_STATE_LABELS[session.state]}"
    label = fonts.get(28).render(text, True, COLOR_TEXT)
    surface.blit(label, (int(ARENA_W * scale) // 2 - label.get_width() // 2, int(30 * scale)))


def draw_input_box(
    surface: pygame.Surface,
    text: str,
    active: bool,
    fonts: FontCache,
    scale: float,
) -> None:
    w, h = int(900 * scale), int(INPUT_H * scale)
    x = int(ARENA_W * scale) // 2 - w // 2
    y = int((ARENA_H - INPUT_H - 10) * scale)
    pygame.draw.rect(surface, COLOR_INPUT_BG, (x, y, w, h))
    pygame.draw.rect(surface, COLOR_INPUT_ACTIVE if active else COLOR_TEXT_DIM, (x, y, w, h), 2)
    shown = text if text else "Type a move and press Enter"
    label = fonts.get(26).render(shown, True, COLOR_TEXT if text else COLOR_TEXT_DIM)
    surface.blit(label, (x + int(14 * scale), y + h // 2 - label.get_height() // 2))


def draw_error_log(
    surface: pygame.Surface,
    lines: list[str],
    fonts: FontCache,
    scale: float,
) -> None:
    font = fonts.get(18)
    y = int((HUD_H + 12) * scale)
    for line in lines:
        label = font.render(line, True, COLOR_ERROR)
        surface.blit(label, (int(20 * scale), y))
        y += label.get_height() + 2
