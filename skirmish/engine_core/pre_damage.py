"""
Pre-Damage Resolver - Activation, shields, negation and adoption.

Runs once per main action, attacker queue first, then defender queue.
Steps for each queued ability:
1. Dependency gating on sibling keys (linkedTo minus "attack")
2. Shield block for opponent-targeting abilities (no roll consumed)
3. Attack-linked deferral to the on-hit step (optimistic success)
4. One activation roll against the final chance
5. Immediate Guard / Ability Shield toggles

After both queues: Ability Negation (symmetric), persistent adoption
into the ledger, and per-card damage flags.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Iterable

from .abilities import Ability, AbilityType, resolve_stat_target
from .cards import CardSnapshot
from .chance import final_chance, roll
from .effect_queue import QueueEntry, build_effect_queue
from .events import EventLog
from .ledger import EffectLedger
from .numeric import clamp
from .state import CardFlags, PersistentEffect, Side, Stats, Toggle, TurnContext

logger = logging.getLogger(__name__)


@dataclass
class PendingAbility:
    """An ability that passed its roll and awaits negation/adoption."""
    card: CardSnapshot
    ability: Ability
    owner: Side


@dataclass
class PreDamageOutcome:
    """
    What the damage step needs from the pre-damage pass.

    attack_linked maps card instance id -> abilities deferred to the hit.
    negations holds each side's Ability Negations that took effect.
    """
    attack_linked: dict[str, list[PendingAbility]] = field(default_factory=dict)
    negations: dict[Side, list[Ability]] = field(
        default_factory=lambda: {Side.PLAYER: [], Side.ENEMY: []}
    )
    pending: dict[Side, list[PendingAbility]] = field(
        default_factory=lambda: {Side.PLAYER: [], Side.ENEMY: []}
    )

    def negation_succeeded(self, side: Side) -> bool:
        return bool(self.negations[side])

    def deferred_for(self, card: CardSnapshot) -> list[PendingAbility]:
        return self.attack_linked.get(card.instance_id, [])


def adopt(
    ledger: EffectLedger,
    owner: Side,
    ability: Ability,
    card_types: Iterable[str],
) -> Side | None:
    """
    Upsert a persistent ability into the right bucket.

    Opponent-targeting types land in the opponent's bucket, the rest in
    the owner's. Non-persistent types are ignored.

    Returns:
        The side whose bucket received the entry, or None
    """
    if not ability.type.is_persistent:
        return None
    dest = owner.opponent if ability.type.targets_opponent else owner
    target = None
    if ability.type in (AbilityType.STATS_UP, AbilityType.STATS_DOWN):
        target = resolve_stat_target(ability, card_types)
    ledger.upsert(dest, PersistentEffect.from_ability(ability, target))
    return dest


def card_flags(card: CardSnapshot) -> CardFlags:
    """Per-card flags from unlinked Durability Negation / Instant Death."""
    flags = CardFlags()
    for ability in card.abilities:
        if ability.linked_to:
            continue
        if ability.type == AbilityType.DURABILITY_NEGATION:
            flags.bypass_durability = True
        elif ability.type == AbilityType.INSTANT_DEATH:
            flags.instant_death = ability
    return flags


class PreDamageResolver:
    """
    Resolves one main action's abilities before damage.

    Usage:
        resolver = PreDamageResolver(ledger, rng, events)
        outcome = resolver.resolve(Side.PLAYER, played, [], stats, context)
    """

    def __init__(self, ledger: EffectLedger, rng: random.Random, events: EventLog | None = None):
        self.ledger = ledger
        self.rng = rng
        self.events = events if events is not None else ledger.events

    def resolve(
        self,
        attacker: Side,
        attacker_cards: list[CardSnapshot],
        defender_cards: list[CardSnapshot],
        stats: dict[Side, Stats],
        context: TurnContext,
    ) -> PreDamageOutcome:
        """
        Run the full pre-damage pass.

        Args:
            attacker: Side taking its main action
            attacker_cards: Cards it played
            defender_cards: Cards the defender has in play this pass (usually none)
            stats: Working (ledger-applied) stats per side
            context: Per-side context, already folded from the ledger

        Returns:
            PreDamageOutcome for the damage step
        """
        defender = attacker.opponent
        outcome = PreDamageOutcome()
        succeeded: dict[str, set[str]] = {}

        self._run_queue(build_effect_queue(attacker_cards), attacker, stats, context, outcome, succeeded)
        self._run_queue(build_effect_queue(defender_cards), defender, stats, context, outcome, succeeded)

        self._apply_negation(attacker, outcome)
        self._apply_negation(defender, outcome)

        for owner in (attacker, defender):
            for pending in outcome.pending[owner]:
                dest = adopt(self.ledger, owner, pending.ability, pending.card.types)
                if dest is not None:
                    self.events.emit(
                        "pre_damage", "adopted", owner,
                        ability=pending.ability.key, type=pending.ability.type.value, dest=dest.value,
                    )

        context[attacker].per_card = {c.instance_id: card_flags(c) for c in attacker_cards}
        context[defender].per_card = {c.instance_id: card_flags(c) for c in defender_cards}
        return outcome

    def _run_queue(
        self,
        queue: list[QueueEntry],
        owner: Side,
        stats: dict[Side, Stats],
        context: TurnContext,
        outcome: PreDamageOutcome,
        succeeded: dict[str, set[str]],
    ) -> None:
        target = owner.opponent
        for entry in queue:
            card, ability = entry.card, entry.ability
            done = succeeded.setdefault(card.instance_id, set())

            if ability.parents and not all(p in done for p in ability.parents):
                continue

            chance = final_chance(
                ability.activation_chance,
                context[owner].chance_up,
                context[target].chance_down,
                stats[owner].intelligence,
            )

            shield = context[target].ability_shield
            if ability.type.targets_opponent and shield.active and shield.precedence >= ability.precedence:
                self.events.emit(
                    "pre_damage", "blocked", owner,
                    ability=ability.key, shield_precedence=shield.precedence,
                )
                continue

            if ability.is_attack_linked:
                outcome.attack_linked.setdefault(card.instance_id, []).append(
                    PendingAbility(card, ability, owner)
                )
                done.add(ability.key)
                self.events.emit("pre_damage", "deferred", owner, ability=ability.key, card=card.instance_id)
                continue

            if not roll(self.rng, chance):
                self.events.emit("pre_damage", "miss", owner, ability=ability.key, chance=chance)
                continue

            outcome.pending[owner].append(PendingAbility(card, ability, owner))
            done.add(ability.key)
            self.events.emit("pre_damage", "activated", owner, ability=ability.key, chance=chance)

            if ability.type == AbilityType.ABILITY_SHIELD:
                context[owner].ability_shield = Toggle(True, ability.precedence, ability.duration or 1)
            elif ability.type == AbilityType.GUARD:
                context[owner].guard = Toggle(True, ability.precedence, ability.duration or 1)

    def _apply_negation(self, owner: Side, outcome: PreDamageOutcome) -> None:
        negations = [
            p.ability for p in outcome.pending[owner]
            if p.ability.type == AbilityType.ABILITY_NEGATION and p.ability.power > 0
        ]
        if not negations:
            return
        target = owner.opponent
        for ability in negations:
            limit = int(clamp(math.floor(ability.power), 1, 3))
            self.ledger.remove_below(target, ability.precedence, limit)
        outcome.negations[owner].extend(negations)

        highest = max(a.precedence for a in negations)
        kept = [p for p in outcome.pending[target] if p.ability.precedence >= highest]
        dropped = len(outcome.pending[target]) - len(kept)
        outcome.pending[target] = kept
        if dropped:
            self.events.emit("pre_damage", "pending_negated", target, dropped=dropped, precedence=highest)
