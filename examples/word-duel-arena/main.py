"""Word Duel Arena - hot-seat visual demo of the duel packages.

Two duel sessions share one in-memory conversation, each with its own
renderer, exactly as two networked clients would. The window shows the
active player's view; Tab hands the keyboard to the other player.

Every message is classified into an attack, defense or neutral move. Attacks
fly at the opponent and deal damage when they land.

Controls:
  Type        Compose a move
  Enter       Submit
  Tab         Switch player (and view)
  F5          New round
  Escape      Quit

Run:
    python main.py                                  # offline keyword classifier
    python main.py --endpoint http://localhost:1234 --model qwen2.5-7b
"""
from __future__ import annotations

import argparse
import sys
from collections import deque

import pygame

from duel_effects import ClassifierClient, MockClient
from duel_session import (
    DuelConfig,
    DuelErrorCode,
    DuelLoop,
    DuelSession,
    MemoryConversation,
    TweenRenderer,
)

from clients import OpenAICompatibleClassifier, check_endpoint, keyword_classifier
from ui.arena import FontCache, draw_anchors, draw_floor, draw_particles, draw_text_boxes
from ui.constants import ARENA_H, ARENA_W, COLOR_BG, DEFAULT_SCALE, ERROR_LOG_LINES, FPS, TPS
from ui.hud import draw_error_log, draw_health_bars, draw_input_box, draw_turn_banner


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Word Duel Arena - duel packages visual demo")
    p.add_argument("--players", nargs=2, default=["alice", "bob"], metavar=("FIRST", "SECOND"),
                   help="Player ids; the first moves first (default: alice bob)")
    p.add_argument("--endpoint", type=str, default=None,
                   help="OpenAI-compatible base URL; omit for the offline keyword classifier")
    p.add_argument("--model", type=str, default="default", help="Model id for --endpoint")
    p.add_argument("--api-key", type=str, default=None, help="Bearer token for --endpoint")
    p.add_argument("--scale", type=float, default=DEFAULT_SCALE,
                   help="Window scale of the 1920x1080 arena (default: 0.5)")
    p.add_argument("--latency", type=float, default=0.3,
                   help="Simulated latency of the offline classifier, seconds (default: 0.3)")
    p.add_argument("--replay", action="store_true",
                   help="Redeliver the whole conversation on every flush")
    args = p.parse_args()
    args.scale = max(0.25, min(1.0, args.scale))
    return args


def build_classifier(args: argparse.Namespace) -> ClassifierClient:
    if args.endpoint is None:
        return MockClient(keyword_classifier, latency=args.latency)
    if not check_endpoint(args.endpoint):
        print(f"word-duel-arena: {args.endpoint} is unreachable, classifications will fall back",
              file=sys.stderr)
    return OpenAICompatibleClassifier(
        model=args.model, base_url=args.endpoint, api_key=args.api_key,
    )


class ArenaState:
    """Holds both sessions, their renderers, and the hot-seat input state."""

    def __init__(self, args: argparse.Namespace) -> None:
        self.config = DuelConfig()
        self.conversation = MemoryConversation(replay_history=args.replay)
        self.loop = DuelLoop(tps=TPS)
        self.loop.add_conversation(self.conversation)

        classifier = build_classifier(args)
        self.sessions: list[DuelSession] = []
        self.renderers: list[TweenRenderer] = []
        for seed, pid in enumerate(args.players):
            renderer = TweenRenderer(seed=seed)
            session = DuelSession(
                pid, args.players, self.conversation.endpoint(pid), renderer,
                classifier=classifier, config=self.config,
            )
            session.on_error(self._make_error_logger(pid))
            session.start()
            self.loop.add_session(session)
            self.loop.add_renderer(renderer)
            self.sessions.append(session)
            self.renderers.append(renderer)

        self.active = 0
        self.text = ""
        self.errors: deque[str] = deque(maxlen=ERROR_LOG_LINES)

    def _make_error_logger(self, pid: str):
        def log_error(code: DuelErrorCode, message: str) -> None:
            self.errors.append(f"[{pid}] {code.value}: {message}")
        return log_error

    @property
    def session(self) -> DuelSession:
        return self.sessions[self.active]

    @property
    def renderer(self) -> TweenRenderer:
        return self.renderers[self.active]

    def switch_player(self) -> None:
        self.active = 1 - self.active

    def submit(self) -> None:
        result = self.session.submit(self.text)
        if result.accepted:
            self.text = ""
        else:
            self.errors.append(f"[{self.session.local_id}] {result.error.value}: {result.message}")

    def new_round(self) -> None:
        for session in self.sessions:
            session.new_round()

    def shutdown(self) -> None:
        for session in self.sessions:
            session.teardown()


def main() -> None:
    args = parse_args()
    scale = args.scale

    pygame.init()
    screen = pygame.display.set_mode((int(ARENA_W * scale), int(ARENA_H * scale)))
    pygame.display.set_caption("Word Duel Arena")
    clock = pygame.time.Clock()
    fonts = FontCache(scale)

    state = ArenaState(args)

    tick_interval = 1.0 / TPS
    accumulator = 0.0
    running = True

    while running:
        dt = clock.tick(FPS) / 1000.0
        accumulator += dt

        # --- Events ---
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_TAB:
                    state.switch_player()
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    state.submit()
                elif event.key == pygame.K_BACKSPACE:
                    state.text = state.text[:-1]
                elif event.key == pygame.K_F5:
                    state.new_round()
                elif event.unicode and event.unicode.isprintable() and len(state.text) < 60:
                    state.text += event.unicode

        # --- Tick ---
        while accumulator >= tick_interval:
            state.loop.step()
            accumulator -= tick_interval

        # --- Render ---
        screen.fill(COLOR_BG)
        draw_floor(screen, scale)
        draw_anchors(screen, state.session, fonts, scale)
        draw_particles(screen, state.renderer, scale)
        draw_text_boxes(screen, state.renderer, fonts, scale)
        draw_health_bars(screen, state.session, fonts, scale)
        draw_turn_banner(screen, state.session, fonts, scale)
        draw_error_log(screen, list(state.errors), fonts, scale)
        draw_input_box(screen, state.text, state.session.arbiter.can_submit(), fonts, scale)

        pygame.display.flip()

    state.shutdown()
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
