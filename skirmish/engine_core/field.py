"""
On-Field Scheduler - Multi-turn hits and scheduled child abilities.

A card whose primary Multi-Hit has turns N hits immediately when played
(overall turn 1) and is then staged as a FieldCard with N-1 turns left.
Each of its owner's later turns ticks it once (overall turns 2..N):
- resolve its target (character, live field card, or retarget)
- hit with the shared damage formula using base stats
- fire child abilities scheduled for this overall turn straight into
  the ledger, with no activation roll
- count down, and recycle the card to its owner's deck at zero
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from .abilities import Ability, AbilityType, ScheduleKind, TargetingMode
from .cards import CardSnapshot
from .damage import compute_hit
from .events import EventLog
from .ledger import EffectLedger
from .pre_damage import adopt
from .state import FieldCard, RetargetPrompt, ScheduleState, Side, Stats, TargetRef

logger = logging.getLogger(__name__)

# Sentinel: the card waits for a retarget choice and does not advance
_HOLD = object()


@dataclass
class OnField:
    """Both sides' live field cards."""
    player: list[FieldCard] = field(default_factory=list)
    enemy: list[FieldCard] = field(default_factory=list)

    def __getitem__(self, side: Side) -> list[FieldCard]:
        return self.player if side is Side.PLAYER else self.enemy

    def __setitem__(self, side: Side, cards: list[FieldCard]) -> None:
        if side is Side.PLAYER:
            self.player = cards
        else:
            self.enemy = cards

    @classmethod
    def from_dict(cls, raw: Any, max_slots: int = 3) -> OnField:
        on_field = cls()
        raw = raw if isinstance(raw, dict) else {}
        for side in Side:
            entries = raw.get(side.value)
            cards = []
            for entry in (entries if isinstance(entries, list) else [])[:max_slots]:
                card = FieldCard.from_dict(entry, side)
                if card is not None:
                    cards.append(card)
            on_field[side] = cards
        return on_field

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "player": [fc.to_dict() for fc in self.player],
            "enemy": [fc.to_dict() for fc in self.enemy],
        }

    def instance_ids(self, side: Side) -> set[str]:
        return {fc.instance_id for fc in self[side]}

    def remove(self, side: Side, instance_id: str) -> FieldCard | None:
        """Take a field card off the field, e.g. for a negation target."""
        for fc in self[side]:
            if fc.instance_id == instance_id:
                self[side] = [x for x in self[side] if x is not fc]
                return fc
        return None


def make_field_card(owner: Side, card: CardSnapshot, rng: random.Random) -> FieldCard | None:
    """
    Stage a played card on the field after its immediate hit.

    Returns:
        FieldCard, or None if the card has no primary Multi-Hit or no
        turns remain after the immediate hit
    """
    primary = card.primary
    if primary is None:
        return None
    total = max(1, primary.multi_hit.turns)
    if total - 1 <= 0:
        return None

    dn = next((a for a in card.abilities if a.type == AbilityType.DURABILITY_NEGATION), None)
    dn_auto = dn is not None and dn.durability_negation.auto
    dn_turns = None
    if dn is not None and not dn_auto and dn.durability_negation.schedule is not None:
        dn_turns = dn.durability_negation.schedule.pick_turns(range(1, total + 1), rng)

    # Overall turn 1 is the immediate hit; children can fire on 2..total
    pool = list(range(2, total + 1))
    child_turns: dict[str, list[int]] = {}
    for ability in card.abilities:
        if ability.type == AbilityType.MULTI_HIT or ability.schedule is None:
            continue
        if not ability.links_to_primary(primary.key):
            continue
        child_turns[ability.key] = ability.schedule.pick_turns(pool, rng)

    return FieldCard(
        instance_id=card.instance_id,
        owner=owner,
        card=card,
        turns_remaining=total - 1,
        link=primary.multi_hit.link,
        targeting=primary.multi_hit.targeting,
        target_ref=TargetRef(),
        schedule_state=ScheduleState(
            turn_index=0,
            dn_auto=dn_auto,
            dn_turns=dn_turns,
            child_turns=child_turns or None,
        ),
    )


def apply_retarget_choices(on_field: OnField, choices: list[dict[str, Any]] | None) -> int:
    """
    Apply client retarget choices to field cards.

    Returns:
        Number of field cards retargeted
    """
    applied = 0
    for choice in choices or []:
        if not isinstance(choice, dict):
            continue
        side = Side.ENEMY if choice.get("owner") == "enemy" else Side.PLAYER
        iid = str(choice.get("instanceId"))
        for fc in on_field[side]:
            if fc.instance_id == iid:
                fc.target_ref = TargetRef.from_dict(choice.get("targetRef"))
                applied += 1
                break
    return applied


@dataclass
class FieldTickResult:
    damage: float = 0.0
    expired: list[FieldCard] = field(default_factory=list)
    prompts: list[RetargetPrompt] = field(default_factory=list)


class FieldScheduler:
    """
    Advances one side's field cards by one tick.

    Usage:
        scheduler = FieldScheduler(ledger, events)
        result = scheduler.tick(Side.PLAYER, on_field, player_base, enemy_base)
        enemy_hp -= result.damage
    """

    def __init__(self, ledger: EffectLedger, events: EventLog | None = None):
        self.ledger = ledger
        self.events = events if events is not None else ledger.events

    def tick(
        self,
        side: Side,
        on_field: OnField,
        attacker: Stats,
        defender: Stats,
        defense_bonus: float = 0.0,
    ) -> FieldTickResult:
        result = FieldTickResult()
        kept: list[FieldCard] = []

        for fc in on_field[side]:
            if fc.turns_remaining <= 0:
                logger.warning("Dropping field card %s with no turns remaining", fc.instance_id)
                continue
            if fc.card is None:
                logger.warning("Skipping malformed field card %s", fc.instance_id)
                kept.append(fc)
                continue

            target = self._resolve_target(fc, on_field, result)
            if target is _HOLD:
                kept.append(fc)
                continue

            next_index = fc.schedule_state.turn_index + 1
            overall = next_index + 1
            dn_active = fc.schedule_state.dn_auto or overall in (fc.schedule_state.dn_turns or [])

            if target is not None and target.is_character:
                damage = compute_hit(fc.card, attacker, defender, defense_bonus, dn_active)
                result.damage += damage
                self.events.emit(
                    "field", "hit", side,
                    card=fc.instance_id, turn=overall, damage=damage, bypass=dn_active,
                )
            elif target is None:
                self.events.emit("field", "hit_dropped", side, card=fc.instance_id, turn=overall)

            self._fire_children(side, fc, overall)

            fc.turns_remaining -= 1
            fc.schedule_state.turn_index = next_index
            if fc.turns_remaining > 0:
                kept.append(fc)
            else:
                result.expired.append(fc)
                self.events.emit("field", "expired", side, card=fc.instance_id)

        on_field[side] = kept
        return result

    def _resolve_target(self, fc: FieldCard, on_field: OnField, result: FieldTickResult):
        ref = fc.target_ref
        if ref.is_character:
            return ref
        owner_side = ref.side or fc.owner.opponent
        if ref.instance_id in on_field.instance_ids(owner_side):
            return ref

        mode = fc.targeting.mode
        if mode == TargetingMode.RETARGET_RANDOM:
            fc.target_ref = TargetRef()
            return fc.target_ref
        if mode == TargetingMode.RETARGET_CHOOSE:
            prompt = RetargetPrompt(owner=fc.owner, instance_id=fc.instance_id)
            result.prompts.append(prompt)
            self.events.emit("field", "retarget_prompt", fc.owner, card=fc.instance_id)
            return _HOLD
        return None

    def _fire_children(self, side: Side, fc: FieldCard, overall: int) -> None:
        card = fc.card
        primary = card.primary
        if primary is None:
            return
        scheduled = fc.schedule_state.child_turns or {}
        for ability in card.abilities:
            if ability.type == AbilityType.MULTI_HIT or not ability.type.is_persistent:
                continue
            if not ability.links_to_primary(primary.key):
                continue
            if not _fires_on(ability, scheduled, overall):
                continue
            dest = adopt(self.ledger, side, ability, card.types)
            self.events.emit(
                "field", "child_fired", side,
                card=fc.instance_id, ability=ability.key, turn=overall, dest=dest.value,
            )


def _fires_on(ability: Ability, scheduled: dict[str, list[int]], overall: int) -> bool:
    if ability.schedule is None:
        return True
    if ability.key in scheduled:
        return overall in scheduled[ability.key]
    if ability.schedule.kind == ScheduleKind.LIST:
        return overall in ability.schedule.turns
    return False
