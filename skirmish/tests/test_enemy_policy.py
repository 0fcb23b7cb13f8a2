"""
Tests for enemy decision-making.

Tests:
- Combo selection and greedy fill
- Greed shortcut
- Skip / defend scoring and tie-breaking
- Authored configuration parsing
"""

from ..bots.personality import AIConfig, PERSONALITIES, get_personality
from ..bots.policy import RandomEnemyPolicy, ScoredEnemyPolicy
from ..engine_core.action import ActionType
from .conftest import ScriptedRandom, make_card


def config(priorities=None, combos=None, **extra):
    raw = {
        "cardPriority": [{"cardId": k, "priority": v} for k, v in (priorities or {}).items()],
        "combos": [{"cards": c, "priority": p} for c, p in (combos or [])],
    }
    raw.update(extra)
    return AIConfig.from_dict(raw)


def hand():
    return [
        make_card("jab", "1", spCost=1),
        make_card("hook", "2", spCost=1),
        make_card("uppercut", "3", spCost=2),
    ]


def no_greed():
    return ScriptedRandom(default=0.99)


class TestScoredEnemyPolicy:
    """Tests for the authored-priority policy."""

    def test_combo_played_before_singles(self):
        policy = ScoredEnemyPolicy(rng=ScriptedRandom(default=0.0))
        decision = policy.decide(
            hand(), sp=3, hp=100, max_hp=100, max_sp=5,
            config=config({"jab": 1, "hook": 1, "uppercut": 2}, [(["jab", "uppercut"], 5)]),
        )
        assert decision.action.action_type == ActionType.PLAY
        assert [c.id for c in decision.action.cards] == ["jab", "uppercut"]
        assert decision.combo == ["jab", "uppercut"]
        assert decision.scores["play"] == 5 + 1 + 2

    def test_unaffordable_combo_ignored(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            hand(), sp=2, hp=100, max_hp=100, max_sp=5,
            config=config({"hook": 3, "uppercut": 1}, [(["jab", "hook", "uppercut"], 9)]),
        )
        assert decision.combo == []
        assert [c.id for c in decision.action.cards] == ["hook", "jab"]

    def test_combo_needs_distinct_cards(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            hand(), sp=5, hp=100, max_hp=100, max_sp=5,
            config=config({"jab": 1}, [(["jab", "jab"], 9)]),
        )
        assert decision.combo == []

    def test_singles_by_priority_within_sp(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            hand(), sp=1, hp=100, max_hp=100, max_sp=5,
            config=config({"jab": 1, "hook": 3}),
        )
        assert [c.id for c in decision.action.cards] == ["hook"]

    def test_greed_shortcut(self):
        decision = ScoredEnemyPolicy(rng=ScriptedRandom([0.1])).decide(
            hand(), sp=4, hp=10, max_hp=100, max_sp=5,
            config=config(),
        )
        assert decision.explanation == "Greedy play"
        assert len(decision.action.cards) == 3

    def test_defend_at_low_hp(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            [], sp=3, hp=10, max_hp=100, max_sp=5, config=config(),
        )
        assert decision.action.action_type == ActionType.DEFEND
        assert decision.scores["defend"] == (0.5 - 0.1) / 0.5

    def test_skip_at_low_sp(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            hand(), sp=0, hp=100, max_hp=100, max_sp=5, config=config(),
        )
        assert decision.action.action_type == ActionType.SKIP

    def test_tie_prefers_play(self):
        """With nothing affordable and no pressure the enemy idles."""
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            [], sp=3, hp=100, max_hp=100, max_sp=5, config=config(),
        )
        assert decision.action.action_type == ActionType.PLAY
        assert decision.is_idle

    def test_defend_beats_skip_on_tie(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            [], sp=0, hp=0, max_hp=100, max_sp=5, config=config(),
        )
        assert decision.action.action_type == ActionType.DEFEND

    def test_zero_max_sp_counts_as_full(self):
        decision = ScoredEnemyPolicy(rng=no_greed()).decide(
            [], sp=0, hp=100, max_hp=100, max_sp=0, config=config(),
        )
        assert decision.scores["skip"] == 0


class TestRandomEnemyPolicy:
    def test_skips_without_affordable_cards(self):
        decision = RandomEnemyPolicy(seed=1).decide(hand(), 0, 100, 100, 5, AIConfig())
        assert decision.action.action_type == ActionType.SKIP

    def test_plays_one_affordable_card(self):
        decision = RandomEnemyPolicy(seed=1).decide(hand(), 1, 100, 100, 5, AIConfig())
        assert len(decision.action.cards) == 1
        assert decision.action.cards[0].sp_cost <= 1


class TestAIConfig:
    """Tests for authored configuration parsing."""

    def test_defaults(self):
        cfg = AIConfig.from_dict(None)
        assert cfg.sp_skip_threshold == 0.3
        assert cfg.defend_hp_threshold == 0.5
        assert cfg.greed_chance == 0.15
        assert cfg.weights.play == 1

    def test_priority_lookup(self):
        cfg = config({"jab": 4})
        assert cfg.priority_of("jab") == 4
        assert cfg.priority_of("missing") == 0

    def test_personality_overlay(self):
        cfg = get_personality("aggressive", {"cardPriority": [{"cardId": "jab", "priority": 2}]})
        assert cfg.priority_of("jab") == 2
        assert cfg.greed_chance == PERSONALITIES["aggressive"].greed_chance

    def test_unknown_personality_is_balanced(self):
        assert get_personality("reckless").greed_chance == PERSONALITIES["balanced"].greed_chance
