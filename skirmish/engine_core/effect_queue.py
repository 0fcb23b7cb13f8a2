"""
Effect Queue Builder - Precedence-ordered resolution queue.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from .abilities import Ability, AbilityType
from .cards import CardSnapshot


@dataclass(frozen=True)
class QueueEntry:
    card: CardSnapshot
    ability: Ability


def build_effect_queue(cards: Iterable[CardSnapshot]) -> list[QueueEntry]:
    """
    Flatten played cards' abilities into a resolution queue.

    Abilities of type None or with activation chance <= 0 are left out.
    The queue is stable-sorted by precedence, highest first; equal
    precedence keeps card order, then ability order.
    """
    entries = [
        QueueEntry(card, ability)
        for card in cards
        for ability in card.abilities
        if ability.type != AbilityType.NONE and ability.activation_chance > 0
    ]
    return sorted(entries, key=lambda e: -e.ability.precedence)
