"""
Piles - Hand, deck and discard bookkeeping.

The deck is a queue: draws come off the top (index 0) and returned
cards go to the bottom.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Iterable

from .cards import CardSnapshot
from .numeric import clamp, to_int

logger = logging.getLogger(__name__)


def _snapshots(raw: Any) -> list[CardSnapshot]:
    if not isinstance(raw, list):
        return []
    return [CardSnapshot.from_dict(c) for c in raw if isinstance(c, (dict, CardSnapshot))]


@dataclass
class Piles:
    """One side's hand, deck and discard pile."""
    hand: list[CardSnapshot] = field(default_factory=list)
    deck: list[CardSnapshot] = field(default_factory=list)
    discard: list[CardSnapshot] = field(default_factory=list)

    @classmethod
    def from_lists(cls, hand: Any = None, deck: Any = None, discard: Any = None) -> Piles:
        return cls(hand=_snapshots(hand), deck=_snapshots(deck), discard=_snapshots(discard))

    @property
    def is_empty(self) -> bool:
        """No hand and no deck: the side needs bootstrapping."""
        return not self.hand and not self.deck

    def find_in_hand(self, instance_id: Any) -> CardSnapshot | None:
        iid = str(instance_id)
        for card in self.hand:
            if card.instance_id == iid:
                return card
        return None

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "hand": [c.to_dict() for c in self.hand],
            "deck": [c.to_dict() for c in self.deck],
            "discard": [c.to_dict() for c in self.discard],
        }


def _draw_from_deck(piles: Piles, size: int, seen: set[str]) -> None:
    while len(piles.hand) < size and piles.deck:
        card = piles.deck.pop(0)
        if card.instance_id in seen:
            # A copy of a card already in hand waits in the discard pile
            piles.discard.append(card)
            continue
        piles.hand.append(card)
        seen.add(card.instance_id)


def draw_up_to(piles: Piles, size: int, rng: random.Random) -> int:
    """
    Refill the hand to `size`.

    When the deck runs dry the discard pile is shuffled into the deck and
    drawing continues. A card already in hand is never drawn twice.

    Returns:
        Number of cards drawn
    """
    before = len(piles.hand)
    seen = {c.instance_id for c in piles.hand}
    _draw_from_deck(piles, size, seen)
    if len(piles.hand) < size and piles.discard:
        reshuffled = list(piles.discard)
        rng.shuffle(reshuffled)
        piles.discard = []
        piles.deck.extend(reshuffled)
        _draw_from_deck(piles, size, seen)
    return len(piles.hand) - before


def return_played(piles: Piles, played: Iterable[CardSnapshot], fielded: Iterable[CardSnapshot]) -> None:
    """
    Take played cards out of the hand.

    Cards that went to the field stay out; the rest go to the deck bottom.
    """
    played_ids = {c.instance_id for c in played}
    fielded_ids = {c.instance_id for c in fielded}
    returning = [c for c in piles.hand if c.instance_id in played_ids and c.instance_id not in fielded_ids]
    piles.hand = [c for c in piles.hand if c.instance_id not in played_ids]
    piles.deck.extend(returning)


def return_hand(piles: Piles) -> int:
    """Put the whole hand at the bottom of the deck (skip, frozen)."""
    count = len(piles.hand)
    piles.deck.extend(piles.hand)
    piles.hand = []
    return count


def expand_deck(entries: Iterable[Any]) -> list[CardSnapshot]:
    """
    Expand starting-deck entries into card snapshots.

    An entry is a card dict, optionally with `qty` (1..30) copies. Each
    copy gets its own instance id.
    """
    deck: list[CardSnapshot] = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        card = entry.get("card") if isinstance(entry.get("card"), dict) else entry
        qty = int(clamp(to_int(entry.get("qty", 1), 1), 1, 30))
        for _ in range(qty):
            snapshot = CardSnapshot.from_dict({**card, "instanceId": str(len(deck) + 1)})
            deck.append(snapshot)
    return deck


def bootstrap(cards: list[CardSnapshot], hand_size: int, rng: random.Random) -> Piles:
    """
    Deal fresh piles: shuffle the cards and draw the opening hand.

    Instance ids are renumbered 1..n after the shuffle.
    """
    shuffled = list(cards)
    rng.shuffle(shuffled)
    dealt = [
        CardSnapshot.from_dict({**card.to_dict(), "instanceId": str(i + 1)})
        for i, card in enumerate(shuffled)
    ]
    count = min(hand_size, len(dealt))
    return Piles(hand=dealt[:count], deck=dealt[count:], discard=[])
