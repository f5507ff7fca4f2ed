"""duel-combat - Health ledger and turn arbitration for the word duel."""
from __future__ import annotations

from duel_combat.ledger import CombatLedger, HealthState
from duel_combat.turns import Turn, TurnArbiter

__all__ = ["CombatLedger", "HealthState", "Turn", "TurnArbiter"]
