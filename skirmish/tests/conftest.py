"""
Pytest fixtures for Skirmish tests.
"""

import random

import pytest

from ..catalog import InMemoryCatalog
from ..engine_core.cards import CardSnapshot
from ..engine_core.state import Side, Stats, TurnContext


class ScriptedRandom(random.Random):
    """
    Random whose random() draws come from a script.

    Once the script runs out every draw returns `default`. Shuffles and
    samples keep using the seeded generator.
    """

    def __init__(self, values=(), default=0.0, seed=0):
        self.values = list(values)
        self.default = default
        super().__init__(seed)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.default

    def getrandbits(self, k):
        return super().getrandbits(k)


def make_card(card_id="card", instance_id="1", **fields) -> CardSnapshot:
    """Build a snapshot from camelCase fields."""
    raw = {"id": card_id, "instanceId": instance_id, "name": card_id.title()}
    raw.update(fields)
    return CardSnapshot.from_dict(raw)


@pytest.fixture
def always_hit():
    """Every roll succeeds (draw 0.0)."""
    return ScriptedRandom(default=0.0)


@pytest.fixture
def always_miss():
    """Every roll fails (draw just under 1.0)."""
    return ScriptedRandom(default=0.999)


@pytest.fixture
def base_stats():
    return {Side.PLAYER: Stats(), Side.ENEMY: Stats()}


@pytest.fixture
def context():
    return TurnContext()


@pytest.fixture
def slash():
    return make_card("slash", "1", spCost=1, potency=5, type="Physical")


@pytest.fixture
def flurry():
    return make_card(
        "flurry", "7",
        spCost=3,
        potency=4,
        type="Physical",
        abilities=[
            {"type": "Multi-Hit", "key": "flurry", "multiHit": {"turns": 3}},
            {
                "type": "Unluck",
                "power": 10,
                "duration": 1,
                "linkedTo": "flurry",
                "schedule": {"type": "list", "turns": [2]},
            },
        ],
    )


@pytest.fixture
def catalog():
    return InMemoryCatalog.starter()
