"""
Enemy Personalities - Authored AI configuration.

An enemy's aiConfig adjusts:
- Card priorities (which cards it likes to play)
- Combos (card sets worth more together)
- Thresholds for skipping to recover SP and defending at low HP
- Action weights and greed (chance to dump its hand regardless of score)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any

from ..engine_core.numeric import is_number, to_number


@dataclass
class AIWeights:
    """Multipliers on each action's score."""
    play: float = 1.0
    skip: float = 1.0
    defend: float = 1.0

    @classmethod
    def from_dict(cls, raw: Any) -> AIWeights:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            play=to_number(raw.get("play"), 1.0),
            skip=to_number(raw.get("skip"), 1.0),
            defend=to_number(raw.get("defend"), 1.0),
        )


@dataclass
class CardPriority:
    card_id: str
    priority: float = 0.0


@dataclass
class Combo:
    """A set of catalog cards worth `priority` when played together."""
    card_ids: list[str]
    priority: float = 0.0


@dataclass
class AIConfig:
    """
    An enemy's play style.

    Configs can be:
    - Authored per enemy in the catalog (aiConfig)
    - Predefined (balanced, aggressive, cautious)
    """
    card_priority: list[CardPriority] = field(default_factory=list)
    combos: list[Combo] = field(default_factory=list)
    sp_skip_threshold: float = 0.3
    defend_hp_threshold: float = 0.5
    weights: AIWeights = field(default_factory=AIWeights)
    greed_chance: float = 0.15

    @classmethod
    def from_dict(cls, raw: Any) -> AIConfig:
        if not isinstance(raw, dict):
            return cls()
        priorities = [
            CardPriority(card_id=str(p.get("cardId")), priority=to_number(p.get("priority")))
            for p in raw.get("cardPriority") or []
            if isinstance(p, dict) and p.get("cardId") is not None
        ]
        combos = [
            Combo(
                card_ids=[str(c) for c in combo.get("cards") or [] if c is not None],
                priority=to_number(combo.get("priority")),
            )
            for combo in raw.get("combos") or []
            if isinstance(combo, dict)
        ]
        defaults = cls()
        return cls(
            card_priority=priorities,
            combos=[c for c in combos if c.card_ids],
            sp_skip_threshold=_number_or(raw.get("spSkipThreshold"), defaults.sp_skip_threshold),
            defend_hp_threshold=_number_or(raw.get("defendHpThreshold"), defaults.defend_hp_threshold),
            weights=AIWeights.from_dict(raw.get("weights")),
            greed_chance=_number_or(raw.get("greedChance"), defaults.greed_chance),
        )

    def priority_of(self, card_id: str) -> float:
        for entry in self.card_priority:
            if entry.card_id == card_id:
                return entry.priority
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cardPriority": [{"cardId": p.card_id, "priority": p.priority} for p in self.card_priority],
            "combos": [{"cards": list(c.card_ids), "priority": c.priority} for c in self.combos],
            "spSkipThreshold": self.sp_skip_threshold,
            "defendHpThreshold": self.defend_hp_threshold,
            "weights": {"play": self.weights.play, "skip": self.weights.skip, "defend": self.weights.defend},
            "greedChance": self.greed_chance,
        }


def _number_or(value: Any, default: float) -> float:
    return float(value) if is_number(value) else default


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = AIConfig()

AGGRESSIVE = AIConfig(
    sp_skip_threshold=0.15,
    defend_hp_threshold=0.25,
    weights=AIWeights(play=1.5, skip=0.8, defend=0.6),
    greed_chance=0.35,
)

CAUTIOUS = AIConfig(
    sp_skip_threshold=0.5,
    defend_hp_threshold=0.7,
    weights=AIWeights(play=0.8, skip=1.2, defend=1.5),
    greed_chance=0.05,
)

PERSONALITIES: dict[str, AIConfig] = {
    "balanced": BALANCED,
    "aggressive": AGGRESSIVE,
    "cautious": CAUTIOUS,
}


def get_personality(name: str, overrides: dict[str, Any] | None = None) -> AIConfig:
    """
    Get a predefined config by name, optionally overlaying an authored aiConfig.

    Authored card priorities and combos always come from the overrides;
    numeric settings fall back to the named preset.
    """
    base = PERSONALITIES.get(name.lower(), BALANCED)
    if not overrides:
        return replace(base)
    authored = AIConfig.from_dict(overrides)
    return replace(
        base,
        card_priority=authored.card_priority,
        combos=authored.combos,
        sp_skip_threshold=_number_or(overrides.get("spSkipThreshold"), base.sp_skip_threshold),
        defend_hp_threshold=_number_or(overrides.get("defendHpThreshold"), base.defend_hp_threshold),
        weights=authored.weights if isinstance(overrides.get("weights"), dict) else base.weights,
        greed_chance=_number_or(overrides.get("greedChance"), base.greed_chance),
    )
