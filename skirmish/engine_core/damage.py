"""
Damage Calculator - Hits, instant death and revive.

The hit formula is shared by immediate and field hits:

    raw     = (potency + typePower) * attackPower
    defense = (durability + cardDefenseBonus) * opposingTypePower / 2
    net     = max(raw - defense, 0)

Durability Negation zeroes the durability term. A Guard on the defender
zeroes the whole hit unless the hit bypasses durability.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field

from .abilities import AbilityType
from .cards import CardSnapshot
from .chance import final_chance, roll, will_dodge
from .events import EventLog
from .ledger import EffectLedger
from .numeric import clamp
from .pre_damage import PreDamageOutcome, adopt
from .state import CardFlags, Side, Stats, TurnContext

logger = logging.getLogger(__name__)


def compute_hit(
    card: CardSnapshot,
    attacker: Stats,
    defender: Stats,
    defense_bonus: float = 0.0,
    bypass_durability: bool = False,
) -> float:
    """Net damage of one hit, never negative."""
    physical = card.is_physical
    raw = (card.potency + attacker.type_power(physical)) * attacker.attack_power
    durability = 0.0 if bypass_durability else defender.durability + defense_bonus
    effective_defense = durability * defender.type_power(physical) / 2
    net = max(raw - effective_defense, 0.0)
    return 0.0 if math.isnan(net) else net


def revive_hp(vitality: float, power: float) -> float:
    """HP restored by a Revive of the given power (percent of max HP)."""
    return max(1, math.floor(vitality * 100 * clamp(power, 0, 100) / 100))


def revive_if_down(ledger: EffectLedger, side: Side, hp: float, vitality: float) -> float:
    """
    Apply a pending Revive when HP has dropped to zero.

    Called at every point where HP can go down. The Revive entry is
    consumed when it fires.
    """
    if hp > 0:
        return hp
    revive = ledger.take_revive(side)
    if revive is None:
        return hp
    restored = revive_hp(vitality, revive.power)
    ledger.events.emit("damage", "revived", side, hp=restored)
    return restored


@dataclass
class DamageReport:
    """Result of a side's immediate hits."""
    total: float = 0.0
    landed: list[CardSnapshot] = field(default_factory=list)
    guarded: list[str] = field(default_factory=list)
    dodged: list[str] = field(default_factory=list)


class DamageCalculator:
    """
    Resolves instant death, immediate hits and on-hit abilities.

    Usage:
        calc = DamageCalculator(ledger, rng)
        if calc.instant_death(Side.PLAYER, cards, stats, context):
            enemy_hp = 0
        report = calc.resolve(Side.PLAYER, cards, stats, context, outcome, enemy_bonus)
        killed = calc.resolve_on_hit(Side.PLAYER, report.landed, stats, context, outcome)
    """

    def __init__(self, ledger: EffectLedger, rng: random.Random, events: EventLog | None = None):
        self.ledger = ledger
        self.rng = rng
        self.events = events if events is not None else ledger.events

    def instant_death(
        self,
        attacker: Side,
        cards: list[CardSnapshot],
        stats: dict[Side, Stats],
        context: TurnContext,
    ) -> bool:
        """Roll every unlinked Instant Death; True if any succeeds."""
        defender = attacker.opponent
        killed = False
        for card in cards:
            flags = context[attacker].per_card.get(card.instance_id)
            if flags is None or flags.instant_death is None:
                continue
            if context[defender].ability_shield.active:
                self.events.emit("damage", "instant_death_blocked", attacker, card=card.instance_id)
                continue
            ability = flags.instant_death
            chance = final_chance(
                ability.activation_chance,
                context[attacker].chance_up,
                context[defender].chance_down,
                stats[attacker].intelligence,
            )
            if roll(self.rng, chance):
                killed = True
                self.events.emit("damage", "instant_death", attacker, card=card.instance_id, chance=chance)
        return killed

    def resolve(
        self,
        attacker: Side,
        cards: list[CardSnapshot],
        stats: dict[Side, Stats],
        context: TurnContext,
        outcome: PreDamageOutcome,
        defense_bonus: float = 0.0,
    ) -> DamageReport:
        """
        Sum the immediate hits of a side's played cards.

        Args:
            defense_bonus: The defender's card defense for this turn
        """
        defender = attacker.opponent
        report = DamageReport()
        for card in cards:
            if not card.deals_damage:
                continue
            flags = context[attacker].per_card.get(card.instance_id) or CardFlags()
            bypass = flags.bypass_durability or any(
                d.ability.type == AbilityType.DURABILITY_NEGATION
                for d in outcome.deferred_for(card)
            )

            if context[defender].guard.active and not bypass:
                report.guarded.append(card.instance_id)
                self.events.emit("damage", "guarded", attacker, card=card.instance_id)
                continue
            if will_dodge(
                self.rng,
                stats[attacker].speed,
                stats[defender].speed,
                context[defender].chance_up,
                context[attacker].chance_down,
            ):
                report.dodged.append(card.instance_id)
                self.events.emit("damage", "dodged", attacker, card=card.instance_id)
                continue

            net = compute_hit(card, stats[attacker], stats[defender], defense_bonus, bypass)
            report.total += net
            report.landed.append(card)
            self.events.emit("damage", "hit", attacker, card=card.instance_id, damage=net, bypass=bypass)
        return report

    def resolve_on_hit(
        self,
        attacker: Side,
        landed: list[CardSnapshot],
        stats: dict[Side, Stats],
        context: TurnContext,
        outcome: PreDamageOutcome,
    ) -> bool:
        """
        Roll attack-linked abilities of cards whose hit landed.

        Durability Negation already acted through the bypass. Persistent
        successes are adopted into the ledger, Ability Negation strips the
        opponent's ledger, Instant Death kills.

        Returns:
            True if an attack-linked Instant Death succeeded
        """
        defender = attacker.opponent
        killed = False
        for card in landed:
            for deferred in outcome.deferred_for(card):
                ability = deferred.ability
                if ability.type == AbilityType.DURABILITY_NEGATION:
                    continue
                chance = final_chance(
                    ability.activation_chance,
                    context[attacker].chance_up,
                    context[defender].chance_down,
                    stats[attacker].intelligence,
                )
                if not roll(self.rng, chance):
                    self.events.emit("damage", "on_hit_miss", attacker, ability=ability.key, chance=chance)
                    continue
                self.events.emit("damage", "on_hit", attacker, ability=ability.key, chance=chance)
                if ability.type == AbilityType.INSTANT_DEATH:
                    killed = True
                elif ability.type == AbilityType.ABILITY_NEGATION and ability.power > 0:
                    limit = int(clamp(math.floor(ability.power), 1, 3))
                    self.ledger.remove_below(defender, ability.precedence, limit)
                else:
                    adopt(self.ledger, attacker, ability, card.types)
        return killed
