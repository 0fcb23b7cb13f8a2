"""
Tests for ability normalization.

Tests:
- Key synthesis and de-duplication
- Link parsing, including legacy numeric indices
- Multi-Hit primary rules and schedule clamping
- Stat target resolution
"""

import random

import pytest

from ..engine_core.abilities import (
    Ability,
    AbilityType,
    MultiHit,
    Schedule,
    ScheduleKind,
    TargetingMode,
    normalize_abilities,
    normalize_ability,
    primary_ability,
    resolve_stat_target,
)


class TestNormalizeAbility:
    """Tests for single-ability normalization."""

    def test_synthesized_key(self):
        """Missing keys become {type}_{index+1} with underscores."""
        ability = normalize_ability({"type": "Stats Up"}, index=0)
        assert ability.key == "Stats_Up_1"

    def test_type_from_legacy_fields(self):
        """Type falls back to name, then abilityType."""
        assert normalize_ability({"name": "Freeze"}).type == AbilityType.FREEZE
        assert normalize_ability({"abilityType": "Lucky"}).type == AbilityType.LUCKY

    def test_unknown_type_is_none(self):
        """Unknown types normalize to the None no-op type."""
        assert normalize_ability({"type": "Teleport"}).type == AbilityType.NONE
        assert normalize_ability({}).type == AbilityType.NONE

    def test_activation_chance_defaults_to_100(self):
        assert normalize_ability({"type": "Guard"}).activation_chance == 100

    def test_power_from_ability_power(self):
        """Legacy abilityPower is read when power is absent; garbage becomes 0."""
        assert normalize_ability({"type": "Stats Up", "abilityPower": 4}).power == 4
        assert normalize_ability({"type": "Stats Up", "power": "lots"}).power == 0

    def test_multi_hit_has_no_power_or_duration(self):
        """Multi-Hit power and duration are forced to zero."""
        ability = normalize_ability({
            "type": "Multi-Hit",
            "power": 5,
            "duration": 3,
            "multiHit": {"turns": 3, "targeting": {"mode": "retarget-choose"}},
        })
        assert ability.power == 0
        assert ability.duration == 0
        assert ability.multi_hit.turns == 3
        assert ability.multi_hit.link == "attack"
        assert ability.multi_hit.targeting.mode == TargetingMode.RETARGET_CHOOSE
        assert ability.is_primary

    def test_sub_structures_only_on_owning_kind(self):
        """Non Multi-Hit abilities cannot carry multi-hit settings."""
        with pytest.raises(ValueError):
            Ability(type=AbilityType.STATS_UP, key="x", multi_hit=MultiHit(turns=2))

    def test_durability_negation_defaults_to_auto(self):
        ability = normalize_ability({"type": "Durability Negation"})
        assert ability.durability_negation.auto is True

    def test_stat_target_code(self):
        """Legacy numeric target codes map onto stat names."""
        assert normalize_ability({"type": "Stats Down", "target": 4}).target == "durability"
        assert normalize_ability({"type": "Stats Down", "target": 9}).target is None
        assert normalize_ability({"type": "Stats Down", "target": "speed"}).target == "speed"


class TestNormalizeAbilities:
    """Tests for card-level normalization rules."""

    def test_duplicate_keys_are_suffixed(self):
        abilities = normalize_abilities([
            {"type": "Guard", "key": "boost"},
            {"type": "Lucky", "key": "boost"},
            {"type": "Lucky", "key": "boost"},
        ])
        assert [a.key for a in abilities] == ["boost", "boost_2", "boost_3"]

    def test_link_forms(self):
        """linkedTo accepts a list, a string, or a legacy sibling index."""
        abilities = normalize_abilities([
            {"type": "Guard", "key": "a"},
            {"type": "Lucky", "linkedTo": ["a", "", None, "attack"]},
            {"type": "Lucky", "linkedTo": "a"},
            {"type": "Lucky", "linkedTo": 0},
            {"type": "Lucky", "linkedTo": 7},
        ])
        assert abilities[1].linked_to == ("a", "attack")
        assert abilities[1].is_attack_linked
        assert abilities[1].parents == ("a",)
        assert abilities[2].linked_to == ("a",)
        assert abilities[3].linked_to == ("a",)
        assert abilities[4].linked_to == ()

    def test_single_primary(self):
        """Later Multi-Hits with turns are demoted to turns 0."""
        abilities = normalize_abilities([
            {"type": "Multi-Hit", "key": "first", "multiHit": {"turns": 3}},
            {"type": "Multi-Hit", "key": "second", "multiHit": {"turns": 2}},
        ])
        assert primary_ability(abilities).key == "first"
        assert abilities[1].multi_hit.turns == 0
        assert not abilities[1].is_primary

    def test_child_schedule_clamped_to_window(self):
        abilities = normalize_abilities([
            {"type": "Multi-Hit", "key": "mh", "multiHit": {"turns": 3}},
            {"type": "Lucky", "linkedTo": "mh", "schedule": {"type": "list", "turns": [1, 2, 5]}},
            {"type": "Unluck", "linkedTo": "mh", "schedule": {"type": "random", "times": 5}},
        ])
        assert abilities[1].schedule.turns == (2,)
        assert abilities[2].schedule.times == 2

    def test_child_schedule_under_multi_hit_key(self):
        """A child's schedule may be stored under its multiHit field."""
        abilities = normalize_abilities([
            {"type": "Multi-Hit", "key": "mh", "multiHit": {"turns": 4}},
            {"type": "Lucky", "linkedTo": "mh", "multiHit": {"schedule": {"type": "list", "turns": [3]}}},
        ])
        assert abilities[1].multi_hit is None
        assert abilities[1].schedule.turns == (3,)

    def test_schedule_without_primary_is_dropped(self):
        abilities = normalize_abilities([
            {"type": "Lucky", "schedule": {"type": "list", "turns": [2]}},
        ])
        assert abilities[0].schedule is None

    def test_empty_list(self):
        assert normalize_abilities(None) == ()
        assert normalize_abilities([]) == ()


class TestSchedule:
    """Tests for schedule parsing and turn picking."""

    def test_list_drops_non_positive_turns(self):
        schedule = Schedule.from_dict({"type": "list", "turns": [0, 2, -1, 3]})
        assert schedule.kind == ScheduleKind.LIST
        assert schedule.turns == (2, 3)

    def test_unknown_schedule_type(self):
        assert Schedule.from_dict({"type": "sometimes"}) is None

    def test_random_picks_unique_sorted_turns(self):
        schedule = Schedule(kind=ScheduleKind.RANDOM, times=2)
        turns = schedule.pick_turns([2, 3, 4, 5], random.Random(3))
        assert len(turns) == 2
        assert len(set(turns)) == 2
        assert turns == sorted(turns)
        assert set(turns) <= {2, 3, 4, 5}

    def test_random_capped_by_pool(self):
        schedule = Schedule(kind=ScheduleKind.RANDOM, times=5)
        assert schedule.pick_turns([2, 3], random.Random(0)) == [2, 3]

    def test_list_filtered_by_pool(self):
        schedule = Schedule(kind=ScheduleKind.LIST, turns=(1, 2, 3))
        assert schedule.pick_turns([2, 3], random.Random(0)) == [2, 3]


class TestStatTarget:
    """Tests for Stats Up / Stats Down target resolution."""

    def test_explicit_target_wins(self):
        ability = normalize_ability({"type": "Stats Up", "target": "speed"})
        assert resolve_stat_target(ability, ["Physical"]) == "speed"

    def test_from_card_type(self):
        ability = normalize_ability({"type": "Stats Up"})
        assert resolve_stat_target(ability, ["Physical"]) == "physicalPower"
        assert resolve_stat_target(ability, ["Supernatural"]) == "supernaturalPower"

    def test_fallback_attack_power(self):
        ability = normalize_ability({"type": "Stats Up"})
        assert resolve_stat_target(ability, ["Utility"]) == "attackPower"
