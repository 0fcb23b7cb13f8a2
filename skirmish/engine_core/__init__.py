"""
Engine Core - Stateless single-turn combat resolution.

The engine is the runtime that:
1. Normalizes card abilities
2. Resolves pre-damage effects in precedence order
3. Computes immediate and on-field hits
4. Maintains the persistent effect ledger
5. Updates hand, deck and discard piles

The turn orchestrator lives in engine_core.orchestrator; it depends on
the enemy policies in skirmish.bots, so it is not re-exported here.
"""

from .abilities import Ability, AbilityType, normalize_abilities, normalize_ability
from .action import ActionType, TurnAction
from .cards import CardSnapshot
from .errors import EngineError, RejectedAction, RejectionCode
from .ledger import EffectLedger
from .piles import Piles
from .rules import DEFAULT_RULES, EngineRules
from .state import Side, Stats

__all__ = [
    "Ability",
    "AbilityType",
    "normalize_abilities",
    "normalize_ability",
    "ActionType",
    "TurnAction",
    "CardSnapshot",
    "EngineError",
    "RejectedAction",
    "RejectionCode",
    "EffectLedger",
    "Piles",
    "DEFAULT_RULES",
    "EngineRules",
    "Side",
    "Stats",
]
