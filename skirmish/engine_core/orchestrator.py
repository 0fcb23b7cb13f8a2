"""
Turn Orchestrator - Sequences one full combat turn.

States per turn:

    [bootstrap exit] -> FieldTick(player) -> [seed / no-op exit]
        -> MainAction(player) -> PileUpdate(player)
        -> FieldTick(enemy) -> MainAction(enemy) -> PileUpdate(enemy)
        -> DurationTick -> Respond

The engine is stateless: a TurnRequest carries the complete prior state
(piles, ledger, field, stats) and the TurnResult carries the complete
next state. All randomness comes from the engine's injected rng.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from ..bots.personality import AIConfig
from ..bots.policy import EnemyDecision, EnemyPolicy, ScoredEnemyPolicy
from .action import ActionOutcome, ActionType, TurnAction
from .cards import CardSnapshot
from .damage import DamageCalculator, revive_if_down
from .errors import RejectedAction, RejectionCode
from .events import EventLog
from .field import FieldScheduler, OnField, apply_retarget_choices, make_field_card
from .ledger import EffectLedger
from .numeric import is_number, to_int
from .piles import Piles, bootstrap, draw_up_to, expand_deck, return_hand, return_played
from .pre_damage import PreDamageResolver
from .rules import DEFAULT_RULES, EngineRules
from .state import RetargetPrompt, Side, Stats, TurnContext

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result
# =============================================================================

def _selection_ids(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    ids = []
    for item in raw:
        if isinstance(item, dict):
            if item.get("instanceId") is not None:
                ids.append(str(item["instanceId"]))
        elif isinstance(item, CardSnapshot):
            ids.append(item.instance_id)
        elif item is not None:
            ids.append(str(item))
    return ids


@dataclass
class TurnRequest:
    """
    Everything the engine needs to resolve one turn.

    The surrounding layer fills in catalog data (enemy move set, enemy
    record stats, AI config) before handing the request over.
    """
    action: ActionType | None = None
    selected_cards: list[str] = field(default_factory=list)
    seed: bool = False

    player_stats: dict[str, Any] = field(default_factory=dict)
    enemy_stats: dict[str, Any] = field(default_factory=dict)
    extra_stats: dict[str, Any] = field(default_factory=dict)
    enemy_defaults: dict[str, Any] = field(default_factory=dict)

    player_piles: Piles = field(default_factory=Piles)
    enemy_piles: Piles = field(default_factory=Piles)
    starting_deck: list[dict[str, Any]] = field(default_factory=list)
    start_hand_size: int | None = None
    enemy_move_set: list[dict[str, Any]] = field(default_factory=list)

    active_effects: dict[str, Any] | None = None
    on_field: dict[str, Any] | None = None
    retarget_choices: list[dict[str, Any]] = field(default_factory=list)
    negation_target: dict[str, Any] | None = None

    ai_config: AIConfig = field(default_factory=AIConfig)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TurnRequest:
        """Build a request from the camelCase wire payload."""
        hand_size = raw.get("startingHandSize")
        return cls(
            action=ActionType.parse(raw.get("action")),
            selected_cards=_selection_ids(raw.get("selectedCards")),
            seed=raw.get("seed") is True,
            player_stats=raw.get("playerStats") or {},
            enemy_stats=raw.get("enemyStats") or {},
            extra_stats=raw.get("extraStats") or {},
            enemy_defaults=raw.get("enemyDefaults") or {},
            player_piles=Piles.from_lists(
                raw.get("hand"), raw.get("deck"), raw.get("discardPile", raw.get("discard")),
            ),
            enemy_piles=Piles.from_lists(
                raw.get("enemyHand"), raw.get("enemyDeck"), raw.get("enemyDiscard"),
            ),
            starting_deck=raw.get("startingDeck") or [],
            start_hand_size=to_int(hand_size) if is_number(hand_size) else None,
            enemy_move_set=raw.get("enemyMoveSet") or [],
            active_effects=raw.get("activeEffects"),
            on_field=raw.get("onField"),
            retarget_choices=raw.get("retargetChoices") or [],
            negation_target=raw.get("negationTarget"),
            ai_config=AIConfig.from_dict(raw.get("aiConfig")),
        )

    @property
    def is_noop(self) -> bool:
        return self.action is None and not self.selected_cards


@dataclass
class SideResult:
    """One side's state after the turn."""
    stats: Stats
    effective: Stats
    piles: Piles
    defense: float = 0.0
    message: str | None = None

    @property
    def is_dead(self) -> bool:
        return self.stats.hp <= 0

    def to_dict(self) -> dict[str, Any]:
        data = self.stats.to_dict()
        data.update({
            "hpRemaining": data["hp"],
            "defense": self.defense,
            "message": self.message,
            "effectiveStats": self.effective.to_dict(),
        })
        data.update(self.piles.to_dict())
        return data


@dataclass
class TurnResult:
    """The complete next state plus display fields."""
    player: SideResult
    enemy: SideResult
    ledger: EffectLedger
    on_field: OnField
    retarget_prompts: list[RetargetPrompt] = field(default_factory=list)
    defend_used: bool = False
    seeded: bool = False
    enemy_decision: EnemyDecision | None = None
    events: EventLog = field(default_factory=EventLog)

    @property
    def player_is_dead(self) -> bool:
        return self.player.is_dead

    @property
    def enemy_is_dead(self) -> bool:
        return self.enemy.is_dead

    def to_dict(self) -> dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "enemy": self.enemy.to_dict(),
            "activeEffects": self.ledger.dump(),
            "onField": self.on_field.to_dict(),
            "retargetPrompts": [p.to_dict() for p in self.retarget_prompts],
            "defendUsed": self.defend_used,
            "seeded": self.seeded,
            "playerIsDead": self.player_is_dead,
            "enemyIsDead": self.enemy_is_dead,
            "enemyDecision": self.enemy_decision.to_dict() if self.enemy_decision else None,
            "events": self.events.to_list(),
        }


# =============================================================================
# Engine
# =============================================================================

class TurnEngine:
    """
    Resolves turns.

    Usage:
        engine = TurnEngine(rng=random.Random(7))
        result = engine.resolve(TurnRequest.from_dict(payload))
    """

    def __init__(
        self,
        rules: EngineRules = DEFAULT_RULES,
        rng: random.Random | None = None,
        policy: EnemyPolicy | None = None,
        seed: int | None = None,
    ):
        self.rules = rules
        self.rng = rng or random.Random(seed)
        self.policy = policy or ScoredEnemyPolicy(rng=self.rng)

    def resolve(self, request: TurnRequest) -> TurnResult:
        return _Turn(self, request).run()


class _Turn:
    """Mutable working state of one resolution."""

    def __init__(self, engine: TurnEngine, request: TurnRequest):
        self.rules = engine.rules
        self.rng = engine.rng
        self.policy = engine.policy
        self.request = request

        self.events = EventLog()
        self.ledger = EffectLedger.load(request.active_effects, self.events)
        self.stats = {
            Side.PLAYER: Stats.from_dict(request.player_stats, extra=request.extra_stats),
            Side.ENEMY: Stats.from_dict(request.enemy_stats, defaults=request.enemy_defaults),
        }
        self.piles = {
            Side.PLAYER: request.player_piles,
            Side.ENEMY: request.enemy_piles,
        }
        self.on_field = OnField.from_dict(request.on_field, self.rules.max_field_slots)
        self.defense = {Side.PLAYER: 0.0, Side.ENEMY: 0.0}
        self.messages: dict[Side, str | None] = {Side.PLAYER: None, Side.ENEMY: None}
        self.prompts: list[RetargetPrompt] = []
        self.defend_used = False
        self.enemy_decision: EnemyDecision | None = None

        self.field = FieldScheduler(self.ledger, self.events)
        self.pre_damage = PreDamageResolver(self.ledger, self.rng, self.events)
        self.damage = DamageCalculator(self.ledger, self.rng, self.events)

    # =========================================================================
    # Main sequence
    # =========================================================================

    def run(self) -> TurnResult:
        bootstrapped = self._bootstrap()
        apply_retarget_choices(self.on_field, self.request.retarget_choices)

        if bootstrapped:
            return self._seed_exit(bootstrapped=True)

        self._field_tick(Side.PLAYER)
        if self.request.seed or self.request.is_noop:
            return self._seed_exit(bootstrapped=False)

        player_action = self._player_action()
        outcome = self._main_action(Side.PLAYER, player_action)
        self.messages[Side.PLAYER] = outcome.message
        self.defend_used = outcome.defend_used
        self._pile_update(Side.PLAYER, outcome)

        if self.stats[Side.ENEMY].hp > 0:
            self._field_tick(Side.ENEMY)
            enemy_action = self._enemy_action()
            outcome = self._main_action(Side.ENEMY, enemy_action)
            self.messages[Side.ENEMY] = outcome.message
            self._pile_update(Side.ENEMY, outcome)

        for stats in self.stats.values():
            stats.hp = max(0.0, stats.hp)
            stats.sp = max(0.0, stats.sp)
        self.ledger.tick()
        return self._respond(seeded=False)

    def _seed_exit(self, bootstrapped: bool) -> TurnResult:
        """Refill both hands and return before the enemy phases."""
        for side in Side:
            draw_up_to(self.piles[side], self.rules.hand_size, self.rng)
        self.events.emit("turn", "seed_exit", bootstrapped=bootstrapped, seed=self.request.seed)
        return self._respond(seeded=True)

    # =========================================================================
    # Setup
    # =========================================================================

    def _bootstrap(self) -> bool:
        """Deal fresh piles to sides that have neither hand nor deck."""
        dealt = False
        player = self.piles[Side.PLAYER]
        if player.is_empty and self.request.starting_deck:
            hand_size = self.request.start_hand_size or self.rules.start_hand_size
            self.piles[Side.PLAYER] = bootstrap(expand_deck(self.request.starting_deck), hand_size, self.rng)
            self.events.emit("piles", "bootstrap", Side.PLAYER, hand=len(self.piles[Side.PLAYER].hand))
            dealt = True
        enemy = self.piles[Side.ENEMY]
        if enemy.is_empty and self.request.enemy_move_set:
            move_set = [CardSnapshot.from_dict(c) for c in self.request.enemy_move_set if isinstance(c, dict)]
            self.piles[Side.ENEMY] = bootstrap(move_set, self.rules.hand_size, self.rng)
            self.events.emit("piles", "bootstrap", Side.ENEMY, hand=len(self.piles[Side.ENEMY].hand))
            dealt = True
        return dealt

    def _player_action(self) -> TurnAction:
        """Validate the player's request into a TurnAction."""
        if self.ledger.is_frozen(Side.PLAYER):
            return TurnAction.frozen()

        action = self.request.action
        if action == ActionType.SKIP:
            return TurnAction.skip()
        if action == ActionType.DEFEND:
            return TurnAction.defend()

        piles = self.piles[Side.PLAYER]
        cards = []
        for iid in self.request.selected_cards:
            card = piles.find_in_hand(iid)
            if card is None:
                raise RejectedAction(
                    RejectionCode.UNKNOWN_CARD,
                    f"Selected card {iid} is not in hand.",
                    {"instanceId": iid},
                )
            if card not in cards:
                cards.append(card)

        play = TurnAction.play(cards)
        sp = self.stats[Side.PLAYER].sp
        if play.total_cost > sp:
            raise RejectedAction(
                RejectionCode.INSUFFICIENT_SP,
                "Not enough SP to play selected cards.",
                {"cost": play.total_cost, "sp": sp},
            )
        return play

    def _enemy_action(self) -> TurnAction:
        if self.ledger.is_frozen(Side.ENEMY):
            self.events.emit("ai", "frozen", Side.ENEMY)
            return TurnAction.frozen()
        stats = self.stats[Side.ENEMY]
        decision = self.policy.decide(
            self.piles[Side.ENEMY].hand,
            stats.sp,
            stats.hp,
            stats.max_hp,
            stats.max_sp,
            self.request.ai_config,
        )
        self.enemy_decision = decision
        self.events.emit(
            "ai", "decision", Side.ENEMY,
            action=decision.action.action_type.value,
            cards=[c.instance_id for c in decision.action.cards],
            explanation=decision.explanation,
        )
        return decision.action

    # =========================================================================
    # Phases
    # =========================================================================

    def _field_tick(self, side: Side) -> None:
        opponent = side.opponent
        target = self.stats[opponent]
        before = target.hp
        result = self.field.tick(
            side,
            self.on_field,
            self.stats[side],
            target,
            self.defense[opponent],
        )
        self.prompts.extend(result.prompts)

        if result.damage > 0:
            target.hp = max(0.0, target.hp - result.damage)
        if target.hp > before:
            logger.warning("%s HP increased during field resolution; clamping", opponent.value)
            target.hp = before

        for fc in result.expired:
            self.piles[side].deck.append(fc.card)
        target.hp = revive_if_down(self.ledger, opponent, target.hp, target.vitality)

    def _main_action(self, side: Side, action: TurnAction) -> ActionOutcome:
        stats = self.stats[side]
        you = side is Side.PLAYER
        kind = action.action_type

        if kind == ActionType.FROZEN:
            message = "You are frozen and cannot act this turn." if you else "Enemy is frozen."
            return ActionOutcome(action=action, message=message)
        if kind == ActionType.SKIP:
            stats.sp = min(stats.max_sp, stats.sp + self.rules.skip_sp_gain)
            message = f"Skipped turn. +{self.rules.skip_sp_gain:g} SP recovered."
            return ActionOutcome(action=action, message=message if you else "Enemy skipped.")
        if kind == ActionType.DEFEND:
            stats.sp = min(stats.max_sp, stats.sp + self.rules.defend_sp_gain)
            message = f"Defended. +{self.rules.defend_sp_gain:g} SP recovered."
            return ActionOutcome(
                action=action,
                message=message if you else "Enemy defended.",
                defend_used=True,
            )
        if not action.cards:
            return ActionOutcome(action=action, message=None if you else "Enemy holds.")
        return self._resolve_play(side, action)

    def _resolve_play(self, side: Side, action: TurnAction) -> ActionOutcome:
        opponent = side.opponent
        cards = action.cards
        self.defense[side] = sum(card.defense for card in cards)

        temp = {s: self.stats[s].copy() for s in Side}
        context = TurnContext()
        for s in Side:
            self.ledger.apply(s, temp[s], context[s])

        outcome = self.pre_damage.resolve(side, cards, [], temp, context)
        if side is Side.PLAYER and self.request.negation_target and outcome.negation_succeeded(side):
            self._remove_negation_target(self.request.negation_target)

        target = self.stats[opponent]
        if self.damage.instant_death(side, cards, temp, context):
            target.hp = 0.0
        target.hp = revive_if_down(self.ledger, opponent, target.hp, target.vitality)

        self.stats[side].sp -= action.total_cost

        report = self.damage.resolve(side, cards, temp, context, outcome, self.defense[opponent])
        target.hp = max(0.0, target.hp - report.total)
        if self.damage.resolve_on_hit(side, report.landed, temp, context, outcome):
            target.hp = 0.0
        target.hp = revive_if_down(self.ledger, opponent, target.hp, target.vitality)

        fielded = self._stage_field_cards(side, cards)

        dealt = int(report.total)
        if side is Side.PLAYER:
            message = f"You dealt {dealt} damage." if report.total > 0 else "No damage dealt this turn."
        else:
            message = f"Enemy dealt {dealt} damage." if report.total > 0 else "Enemy dealt no damage."
        return ActionOutcome(
            action=action,
            damage_dealt=report.total,
            fielded=fielded,
            message=message,
            defense_bonus=self.defense[side],
        )

    def _stage_field_cards(self, side: Side, cards: list[CardSnapshot]) -> list[CardSnapshot]:
        """Put multi-hit cards on the field while slots remain."""
        fielded = []
        for card in cards:
            if not card.has_multi_hit:
                continue
            if card.instance_id in self.on_field.instance_ids(side):
                continue
            if len(self.on_field[side]) >= self.rules.max_field_slots:
                self.events.emit("field", "overflow", side, card=card.instance_id)
                continue
            fc = make_field_card(side, card, self.rng)
            if fc is None:
                continue
            self.on_field[side].append(fc)
            fielded.append(card)
            self.events.emit("field", "staged", side, card=card.instance_id, turns=fc.turns_remaining)
        return fielded

    def _remove_negation_target(self, raw: dict[str, Any]) -> None:
        owner = Side.parse(raw.get("owner"), Side.ENEMY) if isinstance(raw, dict) else Side.ENEMY
        iid = str(raw.get("instanceId")) if isinstance(raw, dict) else ""
        removed = self.on_field.remove(owner, iid)
        if removed is None:
            return
        if removed.card is not None:
            self.piles[owner].deck.append(removed.card)
        self.events.emit("field", "negated", owner, card=iid)

    def _pile_update(self, side: Side, outcome: ActionOutcome) -> None:
        piles = self.piles[side]
        kind = outcome.action.action_type
        if kind == ActionType.PLAY:
            return_played(piles, outcome.action.cards, outcome.fielded)
        elif kind in (ActionType.SKIP, ActionType.FROZEN):
            return_hand(piles)
        draw_up_to(piles, self.rules.hand_size, self.rng)

    # =========================================================================
    # Response
    # =========================================================================

    def _respond(self, seeded: bool) -> TurnResult:
        effective = {}
        context = TurnContext()
        for side in Side:
            effective[side] = self.stats[side].copy()
            self.ledger.apply(side, effective[side], context[side])

        sides = {
            side: SideResult(
                stats=self.stats[side],
                effective=effective[side],
                piles=self.piles[side],
                defense=self.defense[side],
                message=self.messages[side],
            )
            for side in Side
        }
        return TurnResult(
            player=sides[Side.PLAYER],
            enemy=sides[Side.ENEMY],
            ledger=self.ledger,
            on_field=self.on_field,
            retarget_prompts=self.prompts,
            defend_used=self.defend_used,
            seeded=seeded,
            enemy_decision=self.enemy_decision,
            events=self.events,
        )
