"""Tests for DuelSession."""
import json
import time

import pytest

from duel_combat import Turn
from duel_effects import FALLBACK_DESCRIPTOR, ClassifierError, MockClient
from duel_motion import MoveType, Point
from duel_particles import ParticlePlanResolver
from duel_session import (
    AnimationPhase,
    DuelConfig,
    DuelErrorCode,
    DuelSession,
    MemoryConversation,
    SessionState,
    TransportError,
    TweenRenderer,
)


def _effects(move="attack", damage=30, legs=None, particles=None):
    data = {
        "fontSize": 30,
        "moveType": move,
        "damage": damage,
        "colors": {"background": 0xCC0000, "border": 0x990000},
        "waypoints": legs or [{"dx": 0, "dy": 0, "durationMs": 500}],
    }
    if particles is not None:
        data["particles"] = particles
    return {"effects": json.dumps(data)}


def _duel(classifier=None, config=None, replay_history=False, clock=time.monotonic):
    """Two started sessions sharing one in-memory conversation."""
    conv = MemoryConversation(replay_history=replay_history)
    r_alice, r_bob = TweenRenderer(seed=1), TweenRenderer(seed=2)
    alice = DuelSession(
        "alice", ["alice", "bob"], conv.endpoint("alice"), r_alice,
        classifier=classifier, config=config, clock=clock,
    )
    bob = DuelSession("bob", ["alice", "bob"], conv.endpoint("bob"), r_bob, config=config)
    alice.start()
    bob.start()
    return conv, alice, bob, r_alice, r_bob


def _errors(session):
    seen = []
    session.on_error(lambda code, msg: seen.append(code))
    return seen


def _wait_for_send(session, conv, count=1, timeout=2.0):
    """Poll update() until ``count`` messages are in the log, then flush."""
    deadline = time.monotonic() + timeout
    while len(conv.log) < count and time.monotonic() < deadline:
        session.update(0)
        time.sleep(0.002)
    conv.flush()


class TestConstruction:
    """Participants and initial state."""

    def test_requires_two_distinct_participants(self):
        conv = MemoryConversation()
        with pytest.raises(ValueError):
            DuelSession("a", ["a", "a"], conv.endpoint("a"), TweenRenderer())
        with pytest.raises(ValueError):
            DuelSession("a", ["a"], conv.endpoint("a"), TweenRenderer())

    def test_local_must_participate(self):
        conv = MemoryConversation()
        with pytest.raises(ValueError):
            DuelSession("carol", ["a", "b"], conv.endpoint("carol"), TweenRenderer())

    def test_idle_until_started(self):
        conv = MemoryConversation()
        session = DuelSession("alice", ["alice", "bob"], conv.endpoint("alice"), TweenRenderer())
        assert session.state is SessionState.IDLE
        session.start()
        assert session.state is SessionState.AWAITING_SUBMISSION

    def test_anchors_follow_participant_order(self):
        _, alice, bob, _, _ = _duel()
        cfg = DuelConfig()
        assert alice.anchor_of("alice") == bob.anchor_of("alice")
        assert (alice.anchor_of("alice").x, alice.anchor_of("alice").y) == cfg.left_anchor
        assert (bob.anchor_of("bob").x, bob.anchor_of("bob").y) == cfg.right_anchor


class TestSubmitRejections:
    """Rejected submissions change nothing."""

    def test_not_your_turn(self):
        """Second mover cannot open; no mutation, no animation, nothing sent."""
        conv, alice, bob, _, r_bob = _duel()
        result = bob.submit("hello")
        assert not result.accepted
        assert result.error is DuelErrorCode.NOT_YOUR_TURN
        assert bob.ledger.get_health() == alice.ledger.get_health()
        assert bob.arbiter.current_turn_label() is Turn.THEIRS
        assert bob.animations == ()
        assert r_bob.transforms == {}
        assert conv.log == ()

    def test_empty_message(self):
        _, alice, _, _, _ = _duel()
        assert alice.submit("   ").error is DuelErrorCode.EMPTY_MESSAGE

    def test_one_submission_at_a_time(self):
        """A second submit while the first awaits its echo is rejected."""
        conv, alice, _, _, _ = _duel()
        assert alice.submit("hello").accepted
        assert alice.state is SessionState.SUBMITTING
        assert alice.submit("again").error is DuelErrorCode.SUBMISSION_PENDING
        conv.flush()
        assert not alice.submission_pending
        assert alice.submit("again").error is DuelErrorCode.NOT_YOUR_TURN

    def test_pending_while_classifying(self):
        """The classifier round trip also counts as in flight."""
        client = MockClient(latency=0.2)
        conv, alice, _, _, _ = _duel(classifier=client)
        assert alice.submit("hello").accepted
        assert alice.submit("again").error is DuelErrorCode.SUBMISSION_PENDING
        alice.teardown()


class TestTurnFlow:
    """Turn state follows the shared message stream."""

    def test_states_after_exchange(self):
        conv, alice, bob, _, _ = _duel()
        assert bob.state is SessionState.AWAITING_OPPONENT
        alice.submit("hello")
        conv.flush()
        assert alice.state is SessionState.AWAITING_OPPONENT
        assert bob.state is SessionState.AWAITING_SUBMISSION
        assert bob.submit("hi back").accepted
        conv.flush()
        assert alice.state is SessionState.AWAITING_SUBMISSION

    def test_turn_change_observer(self):
        conv, alice, _, _, _ = _duel()
        turns = []
        alice.on_turn_change(turns.append)
        alice.submit("hello")
        conv.flush()
        assert turns == [Turn.THEIRS]

    def test_non_participant_message(self):
        """Strangers reach the history but not the turn or the screen."""
        conv, alice, _, _, _ = _duel()
        conv.post("mallory", "boo", _effects())
        conv.flush()
        assert len(alice.history) == 1
        assert alice.animations == ()
        assert alice.arbiter.can_submit()


class TestAttackResolution:
    """Damage lands exactly once, when the attack path completes."""

    def test_damage_applied_at_path_completion(self):
        conv, alice, bob, r_alice, r_bob = _duel()
        conv.post("alice", "fireball", _effects(damage=30))
        conv.flush()
        assert len(alice.animations) == 1

        # Walk to the caster (1000ms), then strike (500ms).
        r_alice.advance(1000)
        r_bob.advance(1000)
        assert alice.ledger.get_health().opponent_health == 100
        assert alice.animations[0].current_waypoint == 1

        r_alice.advance(1000)
        r_bob.advance(1000)
        assert alice.ledger.get_health().opponent_health == 70
        assert bob.ledger.get_health().my_health == 70
        assert alice.animations == ()
        assert r_alice.transforms == {}

        r_alice.advance(5000)
        assert alice.ledger.get_health().opponent_health == 70

    def test_attack_ends_at_target(self):
        """Both clients compile the same path, ending at the target's anchor."""
        conv, alice, bob, _, _ = _duel()
        conv.post("bob", "punch", _effects(legs=[{"dx": 10, "dy": -20, "durationMs": 800}]))
        conv.flush()
        path = alice.animations[0].path
        assert path == bob.animations[0].path
        target = alice.anchor_of("alice")
        assert (path.final.x, path.final.y) == (target.x + 10, target.y - 20)

    def test_defense_never_damages(self):
        """A defense with damage 5 leaves both ledgers untouched."""
        conv, alice, _, r_alice, _ = _duel()
        changes = []
        alice.on_health_change(changes.append)
        conv.post("alice", "shield", _effects(move="defense", damage=5,
                                              legs=[{"dx": 0, "dy": -50, "durationMs": 1500}]))
        conv.flush()
        anim = alice.animations[0]
        assert anim.descriptor.damage == 0

        r_alice.advance(1500)
        assert anim.phase is AnimationPhase.RESOLVED
        alice.update(2999)
        assert len(alice.animations) == 1
        alice.update(1)
        assert alice.animations == ()
        assert alice.ledger.get_health().opponent_health == 100
        assert changes == []


class TestAnimationCapacity:
    """The animation set holds at most max_active_animations entries."""

    def test_oldest_evicted(self):
        conv, alice, _, r_alice, _ = _duel()
        for i in range(21):
            conv.post("alice", f"msg {i}")
        conv.flush()
        assert len(alice.animations) == 20
        assert alice.animations[0].message_id == "msg-2"
        assert len(r_alice.transforms) == 20

    def test_evicted_attack_settles(self):
        """An attack pushed out early still hits, once."""
        conv, alice, bob, r_alice, _ = _duel()
        for _ in range(21):
            conv.post("alice", "jab", _effects(damage=5))
        conv.flush()
        assert alice.ledger.get_health().opponent_health == 95
        assert bob.ledger.get_health().my_health == 95
        r_alice.advance(5000)
        assert alice.ledger.get_health().opponent_health == 0


class TestClassifier:
    """Classifier failures fall back to the neutral descriptor."""

    def test_classified_effects_sent(self):
        client = MockClient(lambda message: _effects(damage=12)["effects"])
        conv, alice, _, _, _ = _duel(classifier=client)
        alice.submit("fireball")
        _wait_for_send(alice, conv)
        assert len(client.calls) == 1
        assert client.messages == ["fireball"]
        assert alice.animations[0].descriptor.move_type is MoveType.ATTACK
        assert alice.animations[0].descriptor.damage == 12
        alice.teardown()

    def test_classifier_error(self):
        client = MockClient(fail_with=ClassifierError("model offline"))
        conv, alice, _, _, _ = _duel(classifier=client)
        errors = _errors(alice)
        alice.submit("fireball")
        _wait_for_send(alice, conv)
        assert errors == [DuelErrorCode.CLASSIFIER_UNAVAILABLE]
        assert conv.log[0].metadata["effects"] == FALLBACK_DESCRIPTOR.to_json()
        assert alice.animations[0].descriptor == FALLBACK_DESCRIPTOR
        alice.teardown()

    def test_unparseable_response(self):
        client = MockClient("It's a fireball!")
        conv, alice, _, _, _ = _duel(classifier=client)
        errors = _errors(alice)
        alice.submit("fireball")
        _wait_for_send(alice, conv)
        assert errors == [DuelErrorCode.MALFORMED_DESCRIPTOR]
        assert alice.animations[0].descriptor == FALLBACK_DESCRIPTOR
        alice.teardown()

    def test_timeout(self):
        now = [0.0]
        client = MockClient(latency=0.3)
        config = DuelConfig(classifier_timeout=1.0)
        conv, alice, _, _, _ = _duel(classifier=client, config=config, clock=lambda: now[0])
        errors = _errors(alice)
        alice.submit("fireball")
        alice.update(0)
        assert conv.log == ()
        now[0] = 2.0
        alice.update(0)
        assert errors == [DuelErrorCode.CLASSIFIER_UNAVAILABLE]
        assert conv.log[0].metadata["effects"] == FALLBACK_DESCRIPTOR.to_json()
        alice.teardown()

    def test_without_classifier_sends_fallback(self):
        conv, alice, _, _, _ = _duel()
        alice.submit("hello")
        assert conv.log[0].text == "hello"
        assert conv.log[0].metadata["effects"] == FALLBACK_DESCRIPTOR.to_json()

    def test_non_text_reply_keeps_session_playable(self):
        """A reply of None is a classifier failure, not a stuck submission."""
        client = MockClient(lambda message: None)
        conv, alice, bob, _, _ = _duel(classifier=client)
        errors = _errors(alice)
        assert alice.submit("fireball").accepted
        _wait_for_send(alice, conv)
        assert errors == [DuelErrorCode.CLASSIFIER_UNAVAILABLE]
        assert conv.log[0].metadata["effects"] == FALLBACK_DESCRIPTOR.to_json()
        assert not alice.submission_pending

        bob.submit("your move")
        conv.flush()
        assert alice.submit("again").accepted
        alice.teardown()

    def test_non_object_reply(self):
        client = MockClient('["fire", "ball"]')
        conv, alice, _, _, _ = _duel(classifier=client)
        errors = _errors(alice)
        alice.submit("fireball")
        _wait_for_send(alice, conv)
        assert errors == [DuelErrorCode.MALFORMED_DESCRIPTOR]
        assert not alice.submission_pending
        alice.teardown()


class TestInboundMessages:
    """Decoding, fallback and duplicate filtering."""

    def test_malformed_metadata(self):
        conv, alice, bob, _, _ = _duel()
        errors = _errors(alice)
        conv.post("bob", "???", {"effects": "{not json"})
        conv.flush()
        assert errors == [DuelErrorCode.MALFORMED_DESCRIPTOR]
        assert alice.animations[0].descriptor == FALLBACK_DESCRIPTOR

    def test_missing_metadata_is_silent(self):
        conv, alice, _, _, _ = _duel()
        errors = _errors(alice)
        conv.post("bob", "plain")
        conv.flush()
        assert errors == []
        assert alice.animations[0].descriptor == FALLBACK_DESCRIPTOR

    def test_duplicate_ids_ignored(self):
        """Replayed history does not animate a message twice."""
        conv, alice, _, _, _ = _duel(replay_history=True)
        conv.post("alice", "one")
        conv.flush()
        conv.post("bob", "two")
        conv.flush()
        assert len(alice.history) == 2
        assert [a.text for a in alice.animations] == ["one", "two"]
        assert alice.arbiter.can_submit()

    def test_particles_cached_per_palette(self):
        """Two fire messages generate the fire texture once."""
        generated = []
        conv = MemoryConversation()
        renderer = TweenRenderer()
        resolver = ParticlePlanResolver(texture_factory=lambda k, c: generated.append(k))
        session = DuelSession("alice", ["alice", "bob"], conv.endpoint("alice"), renderer,
                              resolver=resolver)
        session.start()
        conv.post("alice", "fire", _effects(particles="fire"))
        conv.post("bob", "fire", _effects(particles="fire"))
        conv.flush()
        assert len(generated) == 1
        assert len(renderer.emitters) == 2

    def test_default_resolver_uses_renderer(self):
        conv, alice, _, r_alice, _ = _duel()
        conv.post("alice", "frost", _effects(particles="ice"))
        conv.flush()
        anim = alice.animations[0]
        assert anim.plan.texture_key in r_alice.textures
        assert anim.emitter_handle in r_alice.emitters

    def test_history_records_resting_position(self):
        conv, alice, _, _, _ = _duel()
        conv.post("bob", "shield", _effects(move="defense", damage=0,
                                            legs=[{"dx": 0, "dy": -50, "durationMs": 1500}]))
        conv.post("carol", "hi")
        conv.flush()
        shield, hi = list(alice.history)[-2:]
        assert shield.position == Point(1500, 510)
        assert hi.position is None

    def test_classifier_sees_where_boxes_landed(self):
        client = MockClient()
        conv, alice, _, _, _ = _duel(classifier=client)
        alice.submit("hello")
        _wait_for_send(alice, conv)
        conv.post("bob", "shield", _effects(move="defense", damage=0,
                                            legs=[{"dx": 0, "dy": -50, "durationMs": 1500}]))
        conv.flush()
        alice.submit("fireball")
        _wait_for_send(alice, conv, count=3)
        prompt = client.calls[1][1]
        assert '"shield" [DEFENSE] [Position: right-middle (1500,510)]' in prompt
        assert "- Recent Positions Used:" in prompt
        assert "- SUGGESTED ZONES (less crowded):" in prompt
        alice.teardown()

    def test_screen_keeps_defense_inside(self):
        """A defense that would leave the arena stops at the safe margin."""
        conv, alice, _, _, _ = _duel(config=DuelConfig(screen=(1600, 900)))
        conv.post("bob", "dodge", _effects(move="defense", damage=0,
                                           legs=[{"dx": 100, "dy": 0, "durationMs": 1500}]))
        conv.flush()
        final = alice.animations[0].path.final
        assert (final.x, final.y) == (1540, 560)


class TestGameOver:
    """Terminal health ends the round once."""

    def _finish(self, conv, renderers, sender="alice"):
        conv.post(sender, "smash", _effects(damage=50))
        conv.flush()
        for r in renderers:
            r.advance(3000)

    def test_game_over_once(self):
        conv, alice, bob, r_alice, r_bob = _duel()
        winners = []
        alice.on_game_over(winners.append)
        bob.on_game_over(winners.append)
        self._finish(conv, [r_alice, r_bob])
        assert winners == []
        self._finish(conv, [r_alice, r_bob])
        assert winners == ["alice", "alice"]
        self._finish(conv, [r_alice, r_bob])
        assert winners == ["alice", "alice"]
        assert alice.state is SessionState.GAME_OVER
        assert bob.submit("heal me").error is DuelErrorCode.GAME_OVER

    def test_new_round(self):
        conv, alice, bob, r_alice, r_bob = _duel()
        self._finish(conv, [r_alice, r_bob], sender="bob")
        self._finish(conv, [r_alice, r_bob], sender="bob")
        assert alice.winner == "bob"
        alice.new_round()
        assert alice.ledger.get_health().my_health == 100
        assert alice.winner is None
        assert alice.state is not SessionState.GAME_OVER


class TestTransportFailures:
    """Disconnects are reported, never raised."""

    def test_disconnect_notification(self):
        conv, alice, _, _, _ = _duel()
        errors = _errors(alice)
        conv.disconnect("alice")
        assert errors == [DuelErrorCode.TRANSPORT_DISCONNECTED]
        assert alice.is_disconnected
        assert alice.submit("hello").error is DuelErrorCode.TRANSPORT_DISCONNECTED

    def test_send_raises(self):
        class _BrokenTransport:
            def send(self, text, metadata):
                raise TransportError("socket closed")

            def subscribe(self, on_batch, on_disconnect=None):
                return lambda: None

        session = DuelSession("alice", ["alice", "bob"], _BrokenTransport(), TweenRenderer())
        errors = _errors(session)
        session.start()
        session.submit("hello")
        assert errors == [DuelErrorCode.TRANSPORT_DISCONNECTED]
        assert not session.submission_pending
        assert session.is_disconnected

    def test_socket_error_counts_as_disconnect(self):
        class _ResetTransport:
            def send(self, text, metadata):
                raise ConnectionResetError("peer reset")

            def subscribe(self, on_batch, on_disconnect=None):
                return lambda: None

        session = DuelSession("alice", ["alice", "bob"], _ResetTransport(), TweenRenderer())
        errors = _errors(session)
        session.start()
        session.submit("hello")
        assert errors == [DuelErrorCode.TRANSPORT_DISCONNECTED]
        assert session.is_disconnected

    def test_bug_in_transport_propagates(self):
        """Only transport failures are absorbed; a TypeError is a bug."""
        class _BuggyTransport:
            def send(self, text, metadata):
                raise TypeError("metadata must be bytes")

            def subscribe(self, on_batch, on_disconnect=None):
                return lambda: None

        session = DuelSession("alice", ["alice", "bob"], _BuggyTransport(), TweenRenderer())
        errors = _errors(session)
        session.start()
        with pytest.raises(TypeError):
            session.submit("hello")
        assert errors == []
        assert not session.is_disconnected


class TestTeardown:
    """Teardown leaves nothing behind and settles nothing."""

    def test_teardown_destroys_everything(self):
        conv, alice, _, r_alice, _ = _duel()
        conv.post("alice", "fire", _effects(damage=30, particles="fire"))
        conv.post("bob", "shield", _effects(move="defense"))
        conv.flush()
        assert r_alice.transforms and r_alice.emitters
        alice.teardown()
        assert r_alice.transforms == {}
        assert r_alice.emitters == {}
        assert alice.animations == ()
        assert alice.ledger.get_health().opponent_health == 100
        assert alice.state is SessionState.IDLE

    def test_no_delivery_after_teardown(self):
        conv, alice, _, _, _ = _duel()
        alice.teardown()
        conv.post("bob", "hello")
        conv.flush()
        assert len(alice.history) == 0


class TestObserverIsolation:
    """A raising observer does not break the session."""

    def test_raising_callback(self, capsys):
        conv, alice, _, _, _ = _duel()

        def bad(_anim):
            raise RuntimeError("boom")

        alice.on_animation(bad)
        conv.post("bob", "hello")
        conv.flush()
        assert len(alice.animations) == 1
        assert "duel-session: on_animation callback error: boom" in capsys.readouterr().err
