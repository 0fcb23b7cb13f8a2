"""
Tests for the pre-damage resolver.

Tests:
- Dependency gating and attack-linked deferral
- Ability Shield boundary
- Ability Negation ordering and pending drops
- Adoption into the right ledger bucket
"""

import pytest

from ..engine_core.abilities import AbilityType
from ..engine_core.field import FieldScheduler, OnField, make_field_card
from ..engine_core.ledger import EffectLedger
from ..engine_core.pre_damage import PreDamageResolver
from ..engine_core.state import PersistentEffect, Side, Stats, Toggle
from .conftest import ScriptedRandom, make_card


@pytest.fixture
def ledger():
    return EffectLedger()


def resolve(ledger, rng, cards, stats, context, defender_cards=()):
    return PreDamageResolver(ledger, rng).resolve(Side.PLAYER, cards, list(defender_cards), stats, context)


class TestGatingAndDeferral:
    """Tests for sibling gating and attack links."""

    def test_child_skipped_when_parent_misses(self, ledger, base_stats, context):
        card = make_card(abilities=[
            {"type": "Lucky", "key": "parent", "power": 5, "duration": 2, "activationChance": 50, "precedence": 2},
            {"type": "Guard", "key": "child", "duration": 1, "linkedTo": "parent", "precedence": 1},
        ])
        rng = ScriptedRandom([0.99])

        resolve(ledger, rng, [card], base_stats, context)

        assert ledger.is_empty()
        assert not context.player.guard.active
        # Only the parent consumed a draw
        assert rng.values == []

    def test_child_runs_after_parent_succeeds(self, ledger, base_stats, context, always_hit):
        card = make_card(abilities=[
            {"type": "Lucky", "key": "parent", "power": 5, "duration": 2, "precedence": 2},
            {"type": "Guard", "key": "child", "duration": 1, "linkedTo": "parent", "precedence": 1},
        ])

        resolve(ledger, always_hit, [card], base_stats, context)

        assert ledger.get(Side.PLAYER, "Lucky").power == 5
        assert ledger.get(Side.PLAYER, "Guard") is not None
        assert context.player.guard.active

    def test_attack_linked_is_deferred_without_roll(self, ledger, base_stats, context):
        card = make_card(type="Physical", abilities=[
            {"type": "Stats Down", "power": 2, "duration": 2, "linkedTo": "attack"},
        ])
        rng = ScriptedRandom([0.99])

        outcome = resolve(ledger, rng, [card], base_stats, context)

        assert [p.ability.key for p in outcome.deferred_for(card)] == ["Stats_Down_1"]
        assert ledger.is_empty()
        assert rng.values == [0.99]

    def test_scheduled_child_resolves_at_play_time(self, ledger, base_stats, context, always_hit):
        """A scheduled child is rolled with its card and again on its field turns."""
        card = make_card("volley", "7", abilities=[
            {"type": "Multi-Hit", "key": "volley", "multiHit": {"turns": 3}},
            {
                "type": "Stats Up",
                "power": 2,
                "duration": 2,
                "linkedTo": "volley",
                "schedule": {"type": "list", "turns": [2]},
            },
        ])

        resolve(ledger, always_hit, [card], base_stats, context)
        assert ledger.get(Side.PLAYER, "Stats Up:attackPower").power == 2

        on_field = OnField()
        on_field.player.append(make_field_card(Side.PLAYER, card, always_hit))
        scheduler = FieldScheduler(ledger)
        scheduler.tick(Side.PLAYER, on_field, Stats(), Stats())
        scheduler.tick(Side.PLAYER, on_field, Stats(), Stats())

        fired = ledger.events.of_kind("child_fired")
        assert [e.detail["turn"] for e in fired] == [2]


class TestAbilityShield:
    """Tests for the shield precedence boundary."""

    def card(self, precedence):
        return make_card(abilities=[
            {"type": "Stats Down", "power": 2, "duration": 2, "precedence": precedence, "target": "speed"},
        ])

    def test_equal_precedence_is_blocked(self, ledger, base_stats, context, always_hit):
        context.enemy.ability_shield = Toggle(True, 3, 1)
        resolve(ledger, always_hit, [self.card(3)], base_stats, context)
        assert ledger.get(Side.ENEMY, "Stats Down:speed") is None

    def test_higher_precedence_passes(self, ledger, base_stats, context, always_hit):
        context.enemy.ability_shield = Toggle(True, 3, 1)
        resolve(ledger, always_hit, [self.card(4)], base_stats, context)
        assert ledger.get(Side.ENEMY, "Stats Down:speed") is not None

    def test_self_targeting_ignores_opponent_shield(self, ledger, base_stats, context, always_hit):
        context.enemy.ability_shield = Toggle(True, 9, 1)
        card = make_card(abilities=[{"type": "Lucky", "power": 5, "duration": 1}])
        resolve(ledger, always_hit, [card], base_stats, context)
        assert ledger.get(Side.PLAYER, "Lucky") is not None

    def test_blocked_ability_consumes_no_roll(self, ledger, base_stats, context):
        context.enemy.ability_shield = Toggle(True, 3, 1)
        rng = ScriptedRandom([0.0])
        resolve(ledger, rng, [self.card(1)], base_stats, context)
        assert rng.values == [0.0]


class TestNegation:
    """Tests for Ability Negation."""

    def test_strips_lowest_entries_below_precedence(self, ledger, base_stats, context, always_hit):
        ledger.upsert(Side.ENEMY, PersistentEffect(AbilityType.LUCKY, 5, precedence=1, remaining=2))
        ledger.upsert(Side.ENEMY, PersistentEffect(AbilityType.GUARD, 0, precedence=3, remaining=2))
        ledger.upsert(Side.ENEMY, PersistentEffect(AbilityType.CURSE, 1, precedence=6, remaining=2))
        card = make_card(abilities=[{"type": "Ability Negation", "power": 2, "precedence": 5}])

        outcome = resolve(ledger, always_hit, [card], base_stats, context)

        assert outcome.negation_succeeded(Side.PLAYER)
        assert [e.type for e in ledger.entries(Side.ENEMY)] == [AbilityType.CURSE]

    def test_power_zero_does_nothing(self, ledger, base_stats, context, always_hit):
        ledger.upsert(Side.ENEMY, PersistentEffect(AbilityType.LUCKY, 5, precedence=1, remaining=2))
        card = make_card(abilities=[{"type": "Ability Negation", "power": 0, "precedence": 5}])

        outcome = resolve(ledger, always_hit, [card], base_stats, context)

        assert not outcome.negation_succeeded(Side.PLAYER)
        assert len(ledger) == 1

    def test_drops_lower_pending_of_defender(self, ledger, base_stats, context, always_hit):
        """Defender abilities in this pass below the negation precedence are never adopted."""
        negator = make_card("neg", "1", abilities=[{"type": "Ability Negation", "power": 1, "precedence": 5}])
        defender = make_card("buff", "2", abilities=[
            {"type": "Lucky", "power": 5, "duration": 2, "precedence": 2},
            {"type": "Guard", "duration": 2, "precedence": 7},
        ])

        resolve(ledger, always_hit, [negator], base_stats, context, defender_cards=[defender])

        assert ledger.get(Side.ENEMY, "Lucky") is None
        assert ledger.get(Side.ENEMY, "Guard") is not None


class TestAdoption:
    """Tests for where persistent abilities land."""

    def test_owner_bucket_with_type_target(self, ledger, base_stats, context, always_hit):
        card = make_card(type="Physical", abilities=[{"type": "Stats Up", "power": 3, "duration": 2}])
        resolve(ledger, always_hit, [card], base_stats, context)
        entry = ledger.get(Side.PLAYER, "Stats Up:physicalPower")
        assert entry.power == 3
        assert entry.remaining == 2

    def test_opponent_bucket(self, ledger, base_stats, context, always_hit):
        card = make_card(abilities=[{"type": "Freeze", "duration": 1}])
        resolve(ledger, always_hit, [card], base_stats, context)
        assert ledger.is_frozen(Side.ENEMY)

    def test_failed_roll_is_discarded(self, ledger, base_stats, context, always_miss):
        card = make_card(abilities=[{"type": "Freeze", "duration": 1, "activationChance": 50}])
        resolve(ledger, always_miss, [card], base_stats, context)
        assert ledger.is_empty()

    def test_per_card_flags(self, ledger, base_stats, context, always_hit):
        piercing = make_card("pierce", "1", abilities=[{"type": "Durability Negation"}])
        deadly = make_card("deadly", "2", abilities=[{"type": "Instant Death", "activationChance": 5}])
        linked = make_card("linked", "3", abilities=[{"type": "Durability Negation", "linkedTo": "attack"}])

        resolve(ledger, always_hit, [piercing, deadly, linked], base_stats, context)

        flags = context.player.per_card
        assert flags["1"].bypass_durability
        assert flags["2"].instant_death.activation_chance == 5
        assert not flags["3"].bypass_durability
