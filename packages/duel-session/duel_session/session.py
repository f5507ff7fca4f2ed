"""DuelSession - per-client orchestrator of one word duel.

The session wires the transport, classifier, motion compiler, particle
resolver, renderer, turn arbiter and combat ledger together. It runs on a
single logical loop: ``update()``, inbound batch handlers and renderer
callbacks are all expected on the same thread. The only other thread is the
classifier worker, whose result is harvested in ``update()``.
"""
from __future__ import annotations

import sys
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from typing import Any, Callable, Sequence

from duel_combat import CombatLedger, HealthState, Turn, TurnArbiter
from duel_effects import (
    FALLBACK_DESCRIPTOR,
    ClassifierClient,
    ClassifierRequest,
    ConversationHistory,
    EffectDescriptor,
    HistoryEntry,
    MalformedDescriptorError,
    build_prompt,
    descriptor_from_json,
    parse_descriptor,
    parse_effect_response,
)
from duel_motion import MotionPath, Point, build_motion_path
from duel_particles import ParticlePlanResolver

from duel_session.animations import ActiveAnimation, AnimationPhase, AnimationSet
from duel_session.config import DuelConfig
from duel_session.errors import DuelErrorCode, SubmitResult
from duel_session.render import Renderer, TextBox
from duel_session.timers import HoldTimers
from duel_session.transport import InboundMessage, Transport, TransportError

# Metadata key carrying the JSON-encoded descriptor.
EFFECTS_KEY = "effects"


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_SUBMISSION = "awaiting_submission"
    SUBMITTING = "submitting"
    AWAITING_OPPONENT = "awaiting_opponent"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class _PendingClassification:
    """Internal record of an in-flight classifier query."""

    text: str
    future: Future[str]
    submitted_at: float


class DuelSession:
    """One client's view of a two-player duel.

    Args:
        local_id: Id of the player at this client.
        participants: Exactly two distinct ids. The first is the first mover
            and owns the left anchor; the second owns the right anchor.
        transport: Shared conversation channel. Must echo local sends.
        renderer: Draws text boxes and particle emitters.
        classifier: Optional effect classifier. Without one every message is
            sent with the fallback descriptor.
        config: Session tuning; defaults to ``DuelConfig()``.
        resolver: Particle resolver; by default one is created that
            generates textures through ``renderer``.
        clock: Monotonic seconds, used for the classifier timeout.
    """

    def __init__(
        self,
        local_id: str,
        participants: Sequence[str],
        transport: Transport,
        renderer: Renderer,
        classifier: ClassifierClient | None = None,
        config: DuelConfig | None = None,
        resolver: ParticlePlanResolver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        participants = tuple(participants)
        if len(participants) != 2 or participants[0] == participants[1]:
            raise ValueError(f"exactly two distinct participants required, got {participants!r}")
        if local_id not in participants:
            raise ValueError(f"local_id {local_id!r} is not a participant")

        self.config: DuelConfig = config if config is not None else DuelConfig()
        self._local_id = local_id
        self._participants = participants
        self._opponent_id = participants[1] if participants[0] == local_id else participants[0]
        self._transport = transport
        self._renderer = renderer
        self._classifier = classifier
        self._clock = clock

        cfg = self.config
        self._anchors = {
            participants[0]: Point(*cfg.left_anchor),
            participants[1]: Point(*cfg.right_anchor),
        }
        self._origin = Point(*cfg.input_anchor)
        self._motion = (
            cfg.motion if cfg.motion.arena is not None else replace(cfg.motion, arena=cfg.screen)
        )

        self.ledger = CombatLedger(cfg.max_health)
        self.arbiter = TurnArbiter(local_id, first_mover=participants[0])
        self.history = ConversationHistory(cfg.history_length)
        self.resolver = (
            resolver
            if resolver is not None
            else ParticlePlanResolver(cfg.particles, texture_factory=renderer.generate_texture)
        )
        self._animations = AnimationSet(cfg.max_active_animations)
        self._timers = HoldTimers(self._on_hold_expired)

        self._executor: ThreadPoolExecutor | None = None
        self._pending: _PendingClassification | None = None
        self._awaiting_echo = False
        self._seen_ids: set[str] = set()
        self._next_animation_id = 1
        self._unsubscribe: Callable[[], None] | None = None
        self._started = False
        self._torn_down = False
        self._disconnected = False
        self._game_over_fired = False
        self._winner: str | None = None

        # Observable callbacks
        self._on_error: list[Callable[[DuelErrorCode, str], None]] = []
        self._on_turn_change: list[Callable[[Turn], None]] = []
        self._on_health_change: list[Callable[[HealthState], None]] = []
        self._on_game_over: list[Callable[[str], None]] = []
        self._on_animation: list[Callable[[ActiveAnimation], None]] = []

        self.ledger.on_change(self._handle_health_change)
        self.arbiter.on_change(self._handle_turn_change)

    # --- Observers ---

    def on_error(self, cb: Callable[[DuelErrorCode, str], None]) -> None:
        """Register a callback for absorbed failures: (code, message)."""
        self._on_error.append(cb)

    def on_turn_change(self, cb: Callable[[Turn], None]) -> None:
        self._on_turn_change.append(cb)

    def on_health_change(self, cb: Callable[[HealthState], None]) -> None:
        self._on_health_change.append(cb)

    def on_game_over(self, cb: Callable[[str], None]) -> None:
        """Register a callback fired once per round with the winner's id."""
        self._on_game_over.append(cb)

    def on_animation(self, cb: Callable[[ActiveAnimation], None]) -> None:
        """Register a callback fired when an animation is created."""
        self._on_animation.append(cb)

    # --- Queries ---

    @property
    def local_id(self) -> str:
        return self._local_id

    @property
    def opponent_id(self) -> str:
        return self._opponent_id

    @property
    def participants(self) -> tuple[str, str]:
        return self._participants

    @property
    def state(self) -> SessionState:
        if not self._started or self._torn_down:
            return SessionState.IDLE
        if self.ledger.is_terminal:
            return SessionState.GAME_OVER
        if self.submission_pending:
            return SessionState.SUBMITTING
        if self.arbiter.can_submit():
            return SessionState.AWAITING_SUBMISSION
        return SessionState.AWAITING_OPPONENT

    @property
    def submission_pending(self) -> bool:
        return self._pending is not None or self._awaiting_echo

    @property
    def is_disconnected(self) -> bool:
        return self._disconnected

    @property
    def winner(self) -> str | None:
        return self._winner

    @property
    def animations(self) -> tuple[ActiveAnimation, ...]:
        return tuple(self._animations)

    def anchor_of(self, participant_id: str) -> Point:
        return self._anchors[participant_id]

    # --- Lifecycle ---

    def start(self) -> None:
        """Subscribe to the transport. Calling twice is a no-op."""
        if self._started:
            return
        self._started = True
        self._unsubscribe = self._transport.subscribe(
            self._handle_batch, self.on_transport_disconnected,
        )

    def teardown(self) -> None:
        """Detach from the transport and destroy everything on screen.

        Animations are destroyed without settling their damage.
        """
        if self._torn_down:
            return
        self._torn_down = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for anim in self._animations.clear():
            self._release(anim)
        self._timers.cancel_all()
        if self._pending is not None:
            self._pending.future.cancel()
            self._pending = None
        self._awaiting_echo = False
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def new_round(self) -> None:
        """Restore both players to full health and re-arm game over."""
        self._game_over_fired = False
        self._winner = None
        self.ledger.reset()

    def on_transport_disconnected(self) -> None:
        """Record a lost transport. Reconnection is up to the host."""
        if self._disconnected:
            return
        self._disconnected = True
        self._fire_on_error(DuelErrorCode.TRANSPORT_DISCONNECTED, "transport disconnected")

    # --- Submission ---

    def submit(self, text: str) -> SubmitResult:
        """Try to send ``text`` as the local player's move.

        Rejections never mutate turn state, health or animations.
        """
        text = text.strip()
        if not text:
            return SubmitResult.reject(DuelErrorCode.EMPTY_MESSAGE, "message is empty")
        if not self._started or self._torn_down or self._disconnected:
            return SubmitResult.reject(
                DuelErrorCode.TRANSPORT_DISCONNECTED, "session is not connected",
            )
        if self.ledger.is_terminal:
            return SubmitResult.reject(DuelErrorCode.GAME_OVER, "the round is over")
        if self.submission_pending:
            return SubmitResult.reject(
                DuelErrorCode.SUBMISSION_PENDING, "a message is already being sent",
            )
        if not self.arbiter.can_submit():
            return SubmitResult.reject(DuelErrorCode.NOT_YOUR_TURN, "wait for your opponent")

        self._awaiting_echo = True
        if self._classifier is None:
            self._send(text, FALLBACK_DESCRIPTOR)
            return SubmitResult.ok()

        request = ClassifierRequest.from_history(text, self.history, self.config.prompt_history)
        system_prompt, user_message = build_prompt(request, self._local_id, self._opponent_id)
        future: Future[str] = self._ensure_executor().submit(
            self._classifier.query, system_prompt, user_message,
        )
        self._pending = _PendingClassification(text, future, self._clock())
        return SubmitResult.ok()

    def update(self, dt_ms: float) -> None:
        """Harvest the classifier, then advance hold timers by ``dt_ms``."""
        if not self._started or self._torn_down:
            return
        self._harvest()
        self._timers.advance(dt_ms)

    def _harvest(self) -> None:
        pending = self._pending
        if pending is None:
            return

        if pending.future.done():
            self._pending = None
            exc = pending.future.exception()
            if exc is not None:
                self._fire_on_error(
                    DuelErrorCode.CLASSIFIER_UNAVAILABLE, f"classifier failed: {exc}",
                )
                descriptor = FALLBACK_DESCRIPTOR
            else:
                descriptor = self._classified(pending.future.result())
            self._send(pending.text, descriptor)
            return

        timeout = self.config.classifier_timeout
        if self._clock() - pending.submitted_at > timeout:
            pending.future.cancel()
            self._pending = None
            self._fire_on_error(
                DuelErrorCode.CLASSIFIER_UNAVAILABLE,
                f"classifier timed out after {timeout}s",
            )
            self._send(pending.text, FALLBACK_DESCRIPTOR)

    def _classified(self, reply: object) -> EffectDescriptor:
        if not isinstance(reply, str):
            self._fire_on_error(
                DuelErrorCode.CLASSIFIER_UNAVAILABLE,
                f"classifier returned {type(reply).__name__}, expected text",
            )
            return FALLBACK_DESCRIPTOR
        try:
            return parse_effect_response(reply)
        except (ValueError, TypeError) as exc:
            self._fire_on_error(DuelErrorCode.MALFORMED_DESCRIPTOR, str(exc))
            return FALLBACK_DESCRIPTOR

    def _send(self, text: str, descriptor: EffectDescriptor) -> None:
        try:
            self._transport.send(text, {EFFECTS_KEY: descriptor.to_json()})
        except (TransportError, OSError) as exc:
            self._awaiting_echo = False
            self._disconnected = True
            self._fire_on_error(DuelErrorCode.TRANSPORT_DISCONNECTED, f"send failed: {exc}")

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1)
        return self._executor

    # --- Inbound ---

    def _handle_batch(self, messages: list[InboundMessage]) -> None:
        if self._torn_down:
            return
        for msg in messages:
            if msg.id in self._seen_ids:
                continue
            self._seen_ids.add(msg.id)
            self._handle_message(msg)

    def _handle_message(self, msg: InboundMessage) -> None:
        descriptor = self._decode(msg)
        path = self._path_for(msg.sender_id, descriptor)
        self.history.append(
            HistoryEntry(
                sender=msg.sender_id,
                text=msg.text,
                move_type=descriptor.move_type,
                has_particles=descriptor.particles is not None,
                position=path.final.point if path is not None else None,
            )
        )
        if path is None:
            return

        if msg.sender_id == self._local_id:
            self._awaiting_echo = False
        self.arbiter.on_message_observed(msg.sender_id)
        self._spawn(msg, descriptor, path)

    def _decode(self, msg: InboundMessage) -> EffectDescriptor:
        raw: Any = (msg.metadata or {}).get(EFFECTS_KEY)
        if raw is None:
            return FALLBACK_DESCRIPTOR
        try:
            if isinstance(raw, dict):
                return parse_descriptor(raw)
            return descriptor_from_json(raw)
        except MalformedDescriptorError as exc:
            self._fire_on_error(
                DuelErrorCode.MALFORMED_DESCRIPTOR, f"message {msg.id}: {exc}",
            )
            return FALLBACK_DESCRIPTOR

    def _path_for(self, caster: str, descriptor: EffectDescriptor) -> MotionPath | None:
        """Compile the path of a message from ``caster``; None for non-participants."""
        if caster not in self._anchors:
            return None
        target = self._opponent_id if caster == self._local_id else self._local_id
        return build_motion_path(
            descriptor.move_type,
            self._anchors[caster],
            self._anchors[target],
            descriptor.waypoints,
            self._origin,
            self._motion,
        )

    def _spawn(self, msg: InboundMessage, descriptor: EffectDescriptor, path: MotionPath) -> None:
        caster = msg.sender_id
        target = self._opponent_id if caster == self._local_id else self._local_id
        plan = self.resolver.resolve(descriptor.particles)

        anim = ActiveAnimation(
            animation_id=self._next_animation_id,
            message_id=msg.id,
            caster=caster,
            target=target,
            text=msg.text,
            descriptor=descriptor,
            path=path,
            plan=plan,
        )
        self._next_animation_id += 1

        for evicted in self._animations.add(anim):
            self._evict(evicted)

        anim.transform_handle = self._renderer.schedule_transform(
            TextBox(msg.text, descriptor.font_size, descriptor.colors),
            path,
            partial(self._handle_waypoint, anim.animation_id),
            partial(self._handle_path_complete, anim.animation_id),
        )
        if plan is not None:
            anim.emitter_handle = self._renderer.start_particle_emitter(
                plan, anim.transform_handle,
            )
        self._fire(self._on_animation, "on_animation", anim)

    # --- Animation lifecycle ---

    def _handle_waypoint(self, animation_id: int, index: int) -> None:
        anim = self._animations.get(animation_id)
        if anim is None or not anim.in_flight:
            return
        anim.current_waypoint = index + 1
        if anim.current_waypoint < len(anim.path.waypoints):
            anim.phase = AnimationPhase.TRAVELING

    def _handle_path_complete(self, animation_id: int) -> None:
        anim = self._animations.get(animation_id)
        if anim is None or not anim.in_flight:
            return
        anim.phase = AnimationPhase.RESOLVED
        if anim.is_attack:
            self._settle(anim)
            self._destroy(anim)
        else:
            self._timers.start(anim.animation_id, self.config.hold_ms)

    def _on_hold_expired(self, animation_id: int) -> None:
        anim = self._animations.get(animation_id)
        if anim is not None:
            self._destroy(anim)

    def _evict(self, anim: ActiveAnimation) -> None:
        # Exception to damage landing only when motion finishes: an attack pushed
        # out by the animation cap settles now, so both clients agree on health.
        if anim.is_attack:
            self._settle(anim)
        self._release(anim)

    def _settle(self, anim: ActiveAnimation) -> None:
        if anim.damage_applied:
            return
        anim.damage_applied = True
        self.ledger.deal_damage(
            anim.descriptor.damage, to_opponent=anim.caster == self._local_id,
        )

    def _destroy(self, anim: ActiveAnimation) -> None:
        self._animations.remove(anim.animation_id)
        self._release(anim)

    def _release(self, anim: ActiveAnimation) -> None:
        anim.phase = AnimationPhase.DESTROYED
        self._timers.cancel(anim.animation_id)
        if anim.emitter_handle is not None:
            self._renderer.destroy(anim.emitter_handle)
        if anim.transform_handle is not None:
            self._renderer.destroy(anim.transform_handle)

    # --- Ledger / arbiter observers ---

    def _handle_health_change(self, state: HealthState) -> None:
        self._fire(self._on_health_change, "on_health_change", state)
        if state.is_terminal and not self._game_over_fired:
            self._game_over_fired = True
            self._winner = self._local_id if state.opponent_health == 0 else self._opponent_id
            self._fire(self._on_game_over, "on_game_over", self._winner)

    def _handle_turn_change(self, turn: Turn) -> None:
        self._fire(self._on_turn_change, "on_turn_change", turn)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fire_on_error(self, code: DuelErrorCode, message: str) -> None:
        """Fire on_error callbacks with error isolation."""
        for cb in self._on_error:
            try:
                cb(code, message)
            except Exception:
                print(
                    f"duel-session: on_error callback error: {sys.exc_info()[1]}",
                    file=sys.stderr,
                )

    def _fire(self, callbacks: list[Callable[[Any], None]], name: str, arg: Any) -> None:
        for cb in callbacks:
            try:
                cb(arg)
            except Exception:
                print(
                    f"duel-session: {name} callback error: {sys.exc_info()[1]}",
                    file=sys.stderr,
                )
