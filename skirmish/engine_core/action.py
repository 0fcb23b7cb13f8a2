"""
Action System - What a side does with its main action.

Actions represent:
1. Player choices sent with the request (play, skip, defend)
2. Enemy choices made by the decision policy
3. Forced outcomes (frozen sides cannot act)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import CardSnapshot


class ActionType(Enum):
    """Main actions available to a side."""
    PLAY = "play"
    SKIP = "skip"
    DEFEND = "defend"

    # Forced by a Freeze entry; no SP change, hand rotates like a skip
    FROZEN = "frozen"

    @classmethod
    def parse(cls, raw: Any) -> ActionType | None:
        if isinstance(raw, ActionType):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass
class TurnAction:
    """
    A complete main action for one side.

    `cards` are the hand cards selected for a PLAY.
    """
    action_type: ActionType
    cards: list[CardSnapshot] = field(default_factory=list)

    @classmethod
    def play(cls, cards: list[CardSnapshot]) -> TurnAction:
        """Factory for play action."""
        return cls(action_type=ActionType.PLAY, cards=list(cards))

    @classmethod
    def skip(cls) -> TurnAction:
        return cls(action_type=ActionType.SKIP)

    @classmethod
    def defend(cls) -> TurnAction:
        return cls(action_type=ActionType.DEFEND)

    @classmethod
    def frozen(cls) -> TurnAction:
        return cls(action_type=ActionType.FROZEN)

    @property
    def total_cost(self) -> float:
        return sum(card.sp_cost for card in self.cards)


@dataclass
class ActionOutcome:
    """
    Result of resolving one side's main action.

    Contains:
    - Damage dealt to the opponent by the action itself
    - The cards that left the hand for the field
    - A narrative message for the UI
    """
    action: TurnAction
    damage_dealt: float = 0.0
    fielded: list[CardSnapshot] = field(default_factory=list)
    message: str | None = None
    defend_used: bool = False
    defense_bonus: float = 0.0
