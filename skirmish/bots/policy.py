"""
Enemy Policy - Interface for enemy decision-making.

An EnemyPolicy looks at the enemy's hand and resources and returns a
decision: play a set of cards, skip to recover SP, or defend.
"""

from __future__ import annotations
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..engine_core.action import ActionType, TurnAction
from ..engine_core.cards import CardSnapshot
from .personality import AIConfig, Combo

logger = logging.getLogger(__name__)


@dataclass
class EnemyDecision:
    """
    A decision made by an enemy policy.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Scores per action (for debugging)
    """
    action: TurnAction
    explanation: str = ""
    scores: dict[str, float] = field(default_factory=dict)
    combo: list[str] = field(default_factory=list)

    @property
    def is_idle(self) -> bool:
        """A play with nothing affordable: the enemy does nothing."""
        return self.action.action_type == ActionType.PLAY and not self.action.cards

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.action_type.value,
            "cards": [c.instance_id for c in self.action.cards],
            "explanation": self.explanation,
            "scores": dict(self.scores),
        }


class EnemyPolicy(ABC):
    """
    Abstract base class for enemy policies.

    Implementations range from the authored scoring policy to simple
    baselines used in tests.
    """

    @abstractmethod
    def decide(
        self,
        hand: list[CardSnapshot],
        sp: float,
        hp: float,
        max_hp: float,
        max_sp: float,
        config: AIConfig,
    ) -> EnemyDecision:
        """
        Choose the enemy's main action.

        Args:
            hand: Cards in the enemy's hand
            sp: Current SP
            hp: Current HP
            max_hp: HP the ratio is measured against
            max_sp: SP the ratio is measured against
            config: Authored AI configuration

        Returns:
            EnemyDecision with the selected action
        """
        pass

    def get_name(self) -> str:
        return self.__class__.__name__


class ScoredEnemyPolicy(EnemyPolicy):
    """
    The authored-priority policy.

    1. Pick the highest-priority affordable combo
    2. Greedily add the remaining hand cards by priority while SP allows
    3. Without a combo, dump the greedy set with probability greedChance
    4. Otherwise score play / skip / defend; ties go play > defend > skip
    """

    def __init__(self, rng: random.Random | None = None, seed: int | None = None):
        self.rng = rng or random.Random(seed)

    def decide(
        self,
        hand: list[CardSnapshot],
        sp: float,
        hp: float,
        max_hp: float,
        max_sp: float,
        config: AIConfig,
    ) -> EnemyDecision:
        hand = [c for c in hand if c is not None]

        best_combo: list[CardSnapshot] | None = None
        best_combo_ids: list[str] = []
        combo_score = 0.0
        for combo in config.combos:
            cards = _match_combo(combo, hand)
            if cards is None:
                continue
            cost = sum(c.sp_cost for c in cards)
            if cost <= sp and combo.priority > combo_score:
                combo_score = combo.priority
                best_combo = cards
                best_combo_ids = list(combo.card_ids)

        in_combo = {c.instance_id for c in best_combo or []}
        singles = sorted(
            (c for c in hand if c.instance_id not in in_combo),
            key=lambda c: -config.priority_of(c.id),
        )

        play = list(best_combo or [])
        running = sum(c.sp_cost for c in play)
        for card in singles:
            if running + card.sp_cost <= sp:
                play.append(card)
                running += card.sp_cost

        if best_combo is None and play and self.rng.random() < config.greed_chance:
            return EnemyDecision(action=TurnAction.play(play), explanation="Greedy play")

        play_score = config.weights.play * (
            combo_score + sum(config.priority_of(c.id) for c in play)
        )
        skip_score = config.weights.skip * _boost(sp / max_sp if max_sp > 0 else 1.0, config.sp_skip_threshold)
        defend_score = config.weights.defend * _boost(hp / max_hp if max_hp > 0 else 1.0, config.defend_hp_threshold)
        scores = {"play": play_score, "skip": skip_score, "defend": defend_score}

        if play_score >= defend_score and play_score >= skip_score:
            return EnemyDecision(
                action=TurnAction.play(play),
                explanation="Play scored highest" if play else "Nothing affordable",
                scores=scores,
                combo=best_combo_ids,
            )
        if defend_score >= skip_score:
            return EnemyDecision(action=TurnAction.defend(), explanation="Low HP", scores=scores)
        return EnemyDecision(action=TurnAction.skip(), explanation="Low SP", scores=scores)


class RandomEnemyPolicy(EnemyPolicy):
    """
    Random policy - plays one random affordable card, else skips.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def decide(self, hand, sp, hp, max_hp, max_sp, config) -> EnemyDecision:
        affordable = [c for c in hand if c is not None and c.sp_cost <= sp]
        if not affordable:
            return EnemyDecision(action=TurnAction.skip(), explanation="Nothing affordable")
        card = self.rng.choice(affordable)
        return EnemyDecision(action=TurnAction.play([card]), explanation="Selected randomly")


def _boost(ratio: float, threshold: float) -> float:
    if threshold <= 0:
        return 0.0
    return max(0.0, (threshold - ratio) / threshold)


def _match_combo(combo: Combo, hand: list[CardSnapshot]) -> list[CardSnapshot] | None:
    """Map each combo card id to a distinct hand card, or None if any is missing."""
    used: set[str] = set()
    matched = []
    for card_id in combo.card_ids:
        card = next((c for c in hand if c.id == card_id and c.instance_id not in used), None)
        if card is None:
            return None
        used.add(card.instance_id)
        matched.append(card)
    return matched
