"""Arena rendering: player anchors, flying text boxes, and particles."""
from __future__ import annotations

import pygame

from duel_session import DuelSession, TweenRenderer

from ui.constants import (
    ANCHOR_RADIUS,
    ARENA_H,
    ARENA_W,
    BORDER_W,
    BOX_PAD_X,
    BOX_PAD_Y,
    COLOR_FLOOR,
    COLOR_TEXT,
    HUD_H,
    SEAT_COLORS,
)


def _rgb(color: int) -> tuple[int, int, int]:
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)


def _hex_rgb(text: str) -> tuple[int, int, int]:
    return _rgb(int(text.lstrip("#"), 16))


class FontCache:
    """SysFont instances keyed by pixel size."""

    def __init__(self, scale: float) -> None:
        self._scale = scale
        self._fonts: dict[int, pygame.font.Font] = {}

    def get(self, size: int) -> pygame.font.Font:
        px = max(8, int(size * self._scale))
        font = self._fonts.get(px)
        if font is None:
            font = pygame.font.SysFont("sans", px, bold=True)
            self._fonts[px] = font
        return font


def draw_floor(surface: pygame.Surface, scale: float) -> None:
    top = int(HUD_H * scale)
    pygame.draw.rect(
        surface, COLOR_FLOOR,
        (0, top, int(ARENA_W * scale), int((ARENA_H - HUD_H) * scale)),
    )


def draw_anchors(
    surface: pygame.Surface,
    session: DuelSession,
    fonts: FontCache,
    scale: float,
) -> None:
    """Draw each participant's fixed anchor with their name."""
    for seat, pid in enumerate(session.participants):
        anchor = session.anchor_of(pid)
        center = (int(anchor.x * scale), int(anchor.y * scale))
        pygame.draw.circle(surface, SEAT_COLORS[seat], center, int(ANCHOR_RADIUS * scale), 3)
        label = fonts.get(26).render(pid, True, COLOR_TEXT)
        surface.blit(
            label,
            (center[0] - label.get_width() // 2, center[1] + int((ANCHOR_RADIUS + 8) * scale)),
        )


def draw_text_boxes(
    surface: pygame.Surface,
    renderer: TweenRenderer,
    fonts: FontCache,
    scale: float,
) -> None:
    """Draw every scheduled transform as a bordered, rotated text box."""
    for tr in renderer.transforms.values():
        if tr.scale <= 0.01 or tr.alpha <= 0.01:
            continue
        box = tr.target
        text = fonts.get(box.font_size).render(box.text, True, _hex_rgb(box.colors.text))
        pad_x, pad_y = int(BOX_PAD_X * scale), int(BOX_PAD_Y * scale)
        w, h = text.get_width() + 2 * pad_x, text.get_height() + 2 * pad_y

        panel = pygame.Surface((w, h), pygame.SRCALPHA)
        panel.fill(_rgb(box.colors.background) + (255,))
        pygame.draw.rect(panel, _rgb(box.colors.border), (0, 0, w, h), max(1, int(BORDER_W * scale)))
        panel.blit(text, (pad_x, pad_y))

        size = (max(1, int(w * tr.scale)), max(1, int(h * tr.scale)))
        panel = pygame.transform.smoothscale(panel, size)
        if tr.rotation:
            panel = pygame.transform.rotate(panel, -tr.rotation * 57.29578)
        panel.set_alpha(int(255 * tr.alpha))

        cx, cy = int(tr.x * scale), int(tr.y * scale)
        surface.blit(panel, (cx - panel.get_width() // 2, cy - panel.get_height() // 2))


def draw_particles(surface: pygame.Surface, renderer: TweenRenderer, scale: float) -> None:
    """Draw live particles as fading circles."""
    for emitter in renderer.emitters.values():
        for p in emitter.particles:
            radius = max(1, int(4 * emitter.scale_at(p) * scale))
            alpha = max(0, min(255, int(255 * emitter.alpha_at(p))))
            if alpha == 0:
                continue
            dot = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
            pygame.draw.circle(dot, _rgb(p.color) + (alpha,), (radius, radius), radius)
            surface.blit(dot, (int(p.x * scale) - radius, int(p.y * scale) - radius))
