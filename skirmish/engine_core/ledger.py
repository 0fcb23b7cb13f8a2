"""
Persistent Effect Ledger - Standing effects per side.

The ledger is rebuilt from the request's `activeEffects` every turn and
dumped back into the response; nothing survives in memory between
calls. Each side holds at most one entry per `type[:target]` key.

Operations:
- upsert: insert or REPLACE (never stack) an entry
- apply: fold a side's entries into working stats and context
- tick: end-of-round countdown and expiry
- remove_below: Ability Negation stripping
"""

from __future__ import annotations
import logging
import math
from typing import Any, Iterator

from .abilities import AbilityType
from .events import EventLog
from .numeric import clamp
from .state import PersistentEffect, Side, SideContext, Stats, Toggle

logger = logging.getLogger(__name__)


class EffectLedger:
    """
    Per-side maps of PersistentEffect keyed by `type[:target]`.

    Usage:
        ledger = EffectLedger.load(request["activeEffects"])
        ledger.apply(Side.PLAYER, temp_stats, context.player)
        ...
        ledger.tick()
        response["activeEffects"] = ledger.dump()
    """

    def __init__(self, events: EventLog | None = None):
        self._buckets: dict[Side, dict[str, PersistentEffect]] = {
            Side.PLAYER: {},
            Side.ENEMY: {},
        }
        self.events = events if events is not None else EventLog()

    @classmethod
    def load(cls, raw: dict[str, Any] | None, events: EventLog | None = None) -> EffectLedger:
        """Build a ledger from the wire shape `{player: [...], enemy: [...]}`."""
        ledger = cls(events=events)
        raw = raw if isinstance(raw, dict) else {}
        for side in Side:
            entries = raw.get(side.value)
            for entry in entries if isinstance(entries, list) else []:
                effect = PersistentEffect.from_dict(entry)
                if effect is not None:
                    ledger._buckets[side][effect.key] = effect
        return ledger

    def dump(self) -> dict[str, list[dict[str, Any]]]:
        return {
            side.value: [effect.to_dict() for effect in bucket.values()]
            for side, bucket in self._buckets.items()
        }

    # =========================================================================
    # Queries
    # =========================================================================

    def bucket(self, side: Side) -> dict[str, PersistentEffect]:
        return self._buckets[side]

    def entries(self, side: Side) -> Iterator[PersistentEffect]:
        return iter(list(self._buckets[side].values()))

    def get(self, side: Side, key: str) -> PersistentEffect | None:
        return self._buckets[side].get(key)

    def is_frozen(self, side: Side) -> bool:
        """A side with a live Freeze entry cannot take its main action."""
        return any(
            e.type == AbilityType.FREEZE and e.remaining > 0
            for e in self._buckets[side].values()
        )

    def is_empty(self) -> bool:
        return not any(self._buckets.values())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    # =========================================================================
    # Mutations
    # =========================================================================

    def upsert(self, side: Side, effect: PersistentEffect) -> bool:
        """
        Insert an entry or replace an existing one with the same key.

        Power, precedence and remaining are all taken from the new entry.

        Returns:
            True if an existing entry was refreshed
        """
        bucket = self._buckets[side]
        existing = bucket.get(effect.key)
        if existing is not None:
            before = existing.remaining
            existing.power = effect.power
            existing.precedence = effect.precedence
            existing.remaining = max(effect.remaining, 0)
            self.events.emit(
                "ledger", "refresh", side,
                key=effect.key, remaining_before=before, remaining=existing.remaining,
            )
            return True

        bucket[effect.key] = PersistentEffect(
            type=effect.type,
            power=effect.power,
            precedence=effect.precedence,
            remaining=max(effect.remaining, 0),
            target=effect.target,
        )
        self.events.emit("ledger", "insert", side, key=effect.key, remaining=effect.remaining)
        return False

    def remove(self, side: Side, key: str) -> PersistentEffect | None:
        return self._buckets[side].pop(key, None)

    def remove_below(self, side: Side, precedence: int, limit: int) -> list[PersistentEffect]:
        """
        Strip up to `limit` entries with precedence strictly below `precedence`,
        lowest precedence first.
        """
        bucket = self._buckets[side]
        ordered = sorted(bucket.values(), key=lambda e: e.precedence)
        removed = []
        for effect in ordered:
            if len(removed) >= limit:
                break
            if effect.precedence < precedence:
                del bucket[effect.key]
                removed.append(effect)
        if removed:
            self.events.emit(
                "ledger", "negated", side,
                keys=[e.key for e in removed], precedence=precedence,
            )
        return removed

    def take_revive(self, side: Side) -> PersistentEffect | None:
        """Consume the side's Revive entry, if any."""
        revive = self._buckets[side].pop(AbilityType.REVIVE.value, None)
        if revive is not None:
            self.events.emit("ledger", "revive_consumed", side, power=revive.power)
        return revive

    def tick(self) -> list[PersistentEffect]:
        """
        End-of-round countdown.

        Decrements every entry by one and deletes entries that reach zero.
        Ticking an empty ledger does nothing.

        Returns:
            The expired entries
        """
        expired = []
        for side, bucket in self._buckets.items():
            for effect in list(bucket.values()):
                if effect.remaining > 0:
                    effect.remaining -= 1
                if effect.remaining <= 0:
                    del bucket[effect.key]
                    expired.append(effect)
                    self.events.emit("ledger", "expired", side, key=effect.key)
        return expired

    # =========================================================================
    # Application
    # =========================================================================

    def apply(self, side: Side, stats: Stats, context: SideContext) -> None:
        """
        Fold a side's unexpired entries into working stats and context.

        Entries apply in insertion order; two entries mutating the same stat
        both apply, and where they overwrite (speed under Freeze) the last
        one applied wins.
        """
        for effect in self._buckets[side].values():
            if effect.remaining <= 0:
                continue
            kind = effect.type
            if kind == AbilityType.STATS_UP:
                stats.adjust(effect.target or "attackPower", effect.power)
            elif kind == AbilityType.STATS_DOWN:
                stats.adjust(effect.target or "attackPower", -effect.power)
            elif kind == AbilityType.LUCKY:
                context.chance_up += effect.power
            elif kind == AbilityType.UNLUCK:
                context.chance_down += effect.power
            elif kind == AbilityType.FREEZE:
                context.frozen_turns = max(context.frozen_turns, 1)
                stats.speed = 0
            elif kind == AbilityType.CURSE:
                level = int(clamp(math.floor(effect.power), 0, 3))
                context.curse_suppress = max(context.curse_suppress, level)
            elif kind == AbilityType.GUARD:
                context.guard = Toggle(True, effect.precedence, effect.remaining)
            elif kind == AbilityType.ABILITY_SHIELD:
                context.ability_shield = Toggle(True, effect.precedence, effect.remaining)
            elif kind == AbilityType.REVIVE:
                context.revive = effect
