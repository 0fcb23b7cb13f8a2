"""
Tests for hand, deck and discard bookkeeping.
"""

import random

from ..engine_core.piles import Piles, bootstrap, draw_up_to, expand_deck, return_hand, return_played
from .conftest import make_card


def cards(*ids):
    return [make_card(f"c{i}", str(i)) for i in ids]


def ids(pile):
    return [c.instance_id for c in pile]


class TestDraw:
    """Tests for refilling the hand."""

    def test_draw_from_top(self):
        piles = Piles(hand=cards(1), deck=cards(2, 3, 4))
        assert draw_up_to(piles, 3, random.Random(0)) == 2
        assert ids(piles.hand) == ["1", "2", "3"]
        assert ids(piles.deck) == ["4"]

    def test_full_hand_draws_nothing(self):
        piles = Piles(hand=cards(1, 2, 3, 4, 5), deck=cards(6))
        assert draw_up_to(piles, 3, random.Random(0)) == 0
        assert len(piles.hand) == 5

    def test_reshuffles_discard_when_deck_runs_dry(self):
        piles = Piles(hand=cards(1), deck=cards(2), discard=cards(3, 4))
        draw_up_to(piles, 3, random.Random(0))
        assert len(piles.hand) == 3
        assert set(ids(piles.hand)) <= {"1", "2", "3", "4"}
        assert piles.discard == []
        assert len(piles.deck) == 1

    def test_never_duplicates_hand_card(self):
        piles = Piles(hand=cards(1), deck=cards(1, 2))
        draw_up_to(piles, 3, random.Random(0))
        assert ids(piles.hand) == ["1", "2"]
        assert ids(piles.discard) == ["1"]
        assert piles.deck == []


class TestReturn:
    """Tests for returning cards after an action."""

    def test_played_cards_go_to_deck_bottom(self):
        piles = Piles(hand=cards(1, 2, 3), deck=cards(4))
        played = [piles.hand[0], piles.hand[2]]
        return_played(piles, played, fielded=[])
        assert ids(piles.hand) == ["2"]
        assert ids(piles.deck) == ["4", "1", "3"]

    def test_fielded_cards_leave_the_piles(self):
        piles = Piles(hand=cards(1, 2), deck=[])
        return_played(piles, [piles.hand[0]], fielded=[piles.hand[0]])
        assert ids(piles.hand) == ["2"]
        assert piles.deck == []

    def test_return_hand(self):
        piles = Piles(hand=cards(1, 2), deck=cards(3))
        assert return_hand(piles) == 2
        assert piles.hand == []
        assert ids(piles.deck) == ["3", "1", "2"]


class TestBootstrap:
    """Tests for dealing fresh piles."""

    def test_expand_deck_quantities(self):
        deck = expand_deck([
            {"id": "slash", "name": "Slash", "qty": 2},
            {"id": "bolt", "name": "Bolt", "qty": 50},
            {"id": "brace", "name": "Brace", "qty": 0},
            "garbage",
        ])
        assert len(deck) == 2 + 30 + 1
        assert ids(deck) == [str(i) for i in range(1, 34)]

    def test_expand_nested_card_entries(self):
        deck = expand_deck([{"card": {"id": "slash", "name": "Slash"}, "qty": 3}])
        assert [c.id for c in deck] == ["slash"] * 3

    def test_bootstrap_deals_hand_and_renumbers(self):
        piles = bootstrap(cards(10, 11, 12, 13, 14, 15, 16), 5, random.Random(1))
        assert len(piles.hand) == 5
        assert len(piles.deck) == 2
        assert sorted(ids(piles.hand + piles.deck), key=int) == [str(i) for i in range(1, 8)]

    def test_bootstrap_small_deck(self):
        piles = bootstrap(cards(1, 2), 5, random.Random(1))
        assert len(piles.hand) == 2
        assert piles.deck == []

    def test_is_empty(self):
        assert Piles(discard=cards(1)).is_empty
        assert not Piles(deck=cards(1)).is_empty
