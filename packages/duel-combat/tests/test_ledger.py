"""Tests for CombatLedger."""
import random

import pytest

from duel_combat import CombatLedger, HealthState


class TestDamage:
    """Damage application and clamping."""

    def test_initial_state(self):
        """Both pools start at max health."""
        assert CombatLedger().get_health() == HealthState(100, 100, 100)

    def test_damage_then_overkill_scenario(self):
        """30 then 80 damage to the opponent clamps at zero and goes terminal."""
        ledger = CombatLedger(max_health=100)

        state = ledger.deal_damage(30, to_opponent=True)
        assert state == HealthState(100, 70, 100)
        assert not state.is_terminal
        assert not ledger.is_terminal

        state = ledger.deal_damage(80, to_opponent=True)
        assert state == HealthState(100, 0, 100)
        assert state.is_terminal
        assert ledger.is_terminal

    def test_damage_to_self(self):
        """to_opponent=False damages the local pool."""
        ledger = CombatLedger()
        ledger.deal_damage(25, to_opponent=False)
        assert ledger.get_health() == HealthState(75, 100, 100)

    def test_negative_amount_raises(self):
        """Negative damage is rejected without mutation."""
        ledger = CombatLedger()
        with pytest.raises(ValueError):
            ledger.deal_damage(-5, to_opponent=True)
        assert ledger.get_health() == HealthState(100, 100, 100)


class TestHeal:
    """Healing and clamping."""

    def test_heal_clamps_to_max(self):
        """Healing never exceeds max health."""
        ledger = CombatLedger()
        ledger.deal_damage(10, to_opponent=False)
        ledger.heal(50, to_self=True)
        assert ledger.get_health().my_health == 100

    def test_heal_opponent(self):
        """to_self=False heals the opponent's pool."""
        ledger = CombatLedger()
        ledger.deal_damage(40, to_opponent=True)
        ledger.heal(15, to_self=False)
        assert ledger.get_health().opponent_health == 75

    def test_negative_heal_raises(self):
        """Negative healing is rejected."""
        with pytest.raises(ValueError):
            CombatLedger().heal(-1, to_self=True)


class TestSoftTerminal:
    """Terminal state is soft: calls still apply, reset clears it."""

    def test_calls_accepted_after_terminal(self):
        """Heal after reaching zero is applied and leaves terminal state."""
        ledger = CombatLedger()
        ledger.deal_damage(200, to_opponent=False)
        assert ledger.is_terminal
        ledger.heal(10, to_self=True)
        assert ledger.get_health().my_health == 10
        assert not ledger.is_terminal

    def test_reset_clears_terminal(self):
        """reset() restores both pools."""
        ledger = CombatLedger()
        ledger.deal_damage(100, to_opponent=True)
        ledger.reset()
        assert ledger.get_health() == HealthState(100, 100, 100)
        assert not ledger.is_terminal


class TestNotifications:
    """Every mutation notifies observers."""

    def test_zero_amount_still_notifies(self):
        """Zero damage and zero heal are no-ops that still notify."""
        ledger = CombatLedger()
        seen = []
        ledger.on_change(seen.append)
        ledger.deal_damage(0, to_opponent=True)
        ledger.heal(0, to_self=True)
        assert seen == [HealthState(100, 100, 100)] * 2

    def test_reset_notifies(self):
        """reset() notifies with the full-health state."""
        ledger = CombatLedger()
        seen = []
        ledger.on_change(seen.append)
        ledger.reset()
        assert seen == [HealthState(100, 100, 100)]

    def test_failing_observer_does_not_block_others(self, capsys):
        """A raising observer is reported on stderr and others still run."""
        ledger = CombatLedger()
        seen = []

        def broken(state):
            raise RuntimeError("boom")

        ledger.on_change(broken)
        ledger.on_change(seen.append)
        ledger.deal_damage(5, to_opponent=True)

        assert seen == [HealthState(100, 95, 100)]
        assert "boom" in capsys.readouterr().err


class TestInvariant:
    """0 <= health <= max after every call."""

    @pytest.mark.parametrize("seed", range(5))
    def test_random_sequences_stay_in_bounds(self, seed):
        """Random damage/heal sequences never leave [0, max]."""
        rng = random.Random(seed)
        ledger = CombatLedger(max_health=rng.randint(1, 150))
        for _ in range(300):
            amount = rng.randint(0, 80)
            if rng.random() < 0.5:
                state = ledger.deal_damage(amount, to_opponent=rng.random() < 0.5)
            else:
                state = ledger.heal(amount, to_self=rng.random() < 0.5)
            assert 0 <= state.my_health <= state.max_health
            assert 0 <= state.opponent_health <= state.max_health

    def test_invalid_max_health(self):
        """max_health must be positive."""
        with pytest.raises(ValueError):
            CombatLedger(max_health=0)
