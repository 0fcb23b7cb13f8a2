"""
Ability Normalizer - Canonical shape for authored card abilities.

Authored abilities arrive as loosely shaped dicts: legacy field names,
numeric link indices, optional sub-structures. Normalization turns them
into immutable Ability objects the rest of the engine can trust:
- Every ability has a type (unknown types become AbilityType.NONE)
- Every ability has a key, unique within its card
- linkedTo is always a tuple of sibling keys and/or "attack"
- Per-kind sub-structures exist only on the kind that owns them
  (multi_hit on Multi-Hit, durability_negation on Durability Negation)
"""

from __future__ import annotations
import logging
import random
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Sequence

from .numeric import to_int, to_number, tidy

logger = logging.getLogger(__name__)

ATTACK_LINK = "attack"


class AbilityType(str, Enum):
    """All ability kinds the engine understands."""
    STATS_UP = "Stats Up"
    STATS_DOWN = "Stats Down"
    FREEZE = "Freeze"
    UNLUCK = "Unluck"
    CURSE = "Curse"
    LUCKY = "Lucky"
    GUARD = "Guard"
    ABILITY_SHIELD = "Ability Shield"
    REVIVE = "Revive"
    DURABILITY_NEGATION = "Durability Negation"
    ABILITY_NEGATION = "Ability Negation"
    INSTANT_DEATH = "Instant Death"
    MULTI_HIT = "Multi-Hit"
    NONE = "None"

    @classmethod
    def parse(cls, raw: Any) -> AbilityType:
        """Parse an authored type string; anything unknown is a no-op."""
        if isinstance(raw, AbilityType):
            return raw
        if raw is None:
            return cls.NONE
        try:
            return cls(str(raw).strip())
        except ValueError:
            logger.debug("Unknown ability type %r normalized to None", raw)
            return cls.NONE

    @property
    def is_persistent(self) -> bool:
        """Persistent types are stored in the effect ledger."""
        return self in PERSISTENT_TYPES

    @property
    def targets_opponent(self) -> bool:
        return self in OPPONENT_TARGETING_TYPES


PERSISTENT_TYPES = frozenset({
    AbilityType.STATS_UP,
    AbilityType.STATS_DOWN,
    AbilityType.LUCKY,
    AbilityType.UNLUCK,
    AbilityType.FREEZE,
    AbilityType.CURSE,
    AbilityType.GUARD,
    AbilityType.ABILITY_SHIELD,
    AbilityType.REVIVE,
})

OPPONENT_TARGETING_TYPES = frozenset({
    AbilityType.STATS_DOWN,
    AbilityType.FREEZE,
    AbilityType.UNLUCK,
    AbilityType.CURSE,
    AbilityType.ABILITY_NEGATION,
    AbilityType.INSTANT_DEATH,
    AbilityType.DURABILITY_NEGATION,
})

# Stats that Stats Up / Stats Down may target, in legacy code order (1..5)
STAT_TARGETS = (
    "attackPower",
    "physicalPower",
    "supernaturalPower",
    "durability",
    "speed",
)


# =============================================================================
# Schedules and sub-structures
# =============================================================================

class ScheduleKind(str, Enum):
    LIST = "list"
    RANDOM = "random"


@dataclass(frozen=True)
class Schedule:
    """
    When a scheduled ability fires inside a multi-turn window.

    LIST fires on the explicit overall turn numbers in `turns`.
    RANDOM fires on `times` distinct turns sampled without replacement.
    """
    kind: ScheduleKind
    turns: tuple[int, ...] = ()
    times: int = 1

    @classmethod
    def from_dict(cls, raw: Any) -> Schedule | None:
        if not isinstance(raw, dict):
            return None
        kind = raw.get("type")
        if kind == ScheduleKind.LIST.value:
            turns = raw.get("turns") if isinstance(raw.get("turns"), list) else []
            return cls(
                kind=ScheduleKind.LIST,
                turns=tuple(to_int(t) for t in turns if to_number(t) > 0),
            )
        if kind == ScheduleKind.RANDOM.value:
            return cls(kind=ScheduleKind.RANDOM, times=max(1, to_int(raw.get("times", 1), 1)))
        return None

    def clamp_to(self, window: int) -> Schedule:
        """
        Restrict the schedule to field turns 2..window.

        Overall turn 1 is the immediate hit, so a child never fires from the
        field on it.
        """
        if self.kind == ScheduleKind.LIST:
            return replace(self, turns=tuple(t for t in self.turns if 2 <= t <= window))
        return replace(self, times=min(max(self.times, 1), max(window - 1, 1)))

    def pick_turns(self, pool: Sequence[int], rng: random.Random) -> list[int]:
        """Resolve the schedule against a pool of eligible turn numbers."""
        if self.kind == ScheduleKind.LIST:
            allowed = set(pool)
            return [t for t in self.turns if t in allowed]
        count = min(self.times, len(pool))
        return sorted(rng.sample(list(pool), count))

    def to_dict(self) -> dict[str, Any]:
        if self.kind == ScheduleKind.LIST:
            return {"type": self.kind.value, "turns": list(self.turns)}
        return {"type": self.kind.value, "times": self.times}


class TargetingMode(str, Enum):
    """What a field card does when its locked field target disappears."""
    LOCK = "lock"
    RETARGET_RANDOM = "retarget-random"
    RETARGET_CHOOSE = "retarget-choose"


class TargetScope(str, Enum):
    CHARACTER = "character"
    ON_FIELD_OPPONENT = "onField-opponent"
    ON_FIELD_ANY = "onField-any"


class Overlap(str, Enum):
    INHERIT = "inherit"
    SEPARATE = "separate"


def _parse_enum(enum_cls, raw: Any, default):
    try:
        return enum_cls(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Targeting:
    mode: TargetingMode = TargetingMode.LOCK
    scope: TargetScope = TargetScope.CHARACTER

    @classmethod
    def from_dict(cls, raw: Any) -> Targeting:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            mode=_parse_enum(TargetingMode, raw.get("mode"), TargetingMode.LOCK),
            scope=_parse_enum(TargetScope, raw.get("scope"), TargetScope.CHARACTER),
        )

    def to_dict(self) -> dict[str, str]:
        return {"mode": self.mode.value, "scope": self.scope.value}


@dataclass(frozen=True)
class MultiHit:
    """Multi-turn driver carried only by Multi-Hit abilities."""
    turns: int = 0
    link: str = ATTACK_LINK
    overlap: Overlap = Overlap.INHERIT
    schedule: Schedule | None = None
    targeting: Targeting = field(default_factory=Targeting)

    @classmethod
    def from_dict(cls, raw: Any) -> MultiHit:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            turns=max(0, to_int(raw.get("turns", 0))),
            link=str(raw.get("link") or ATTACK_LINK),
            overlap=_parse_enum(Overlap, raw.get("overlap"), Overlap.INHERIT),
            schedule=Schedule.from_dict(raw.get("schedule")),
            targeting=Targeting.from_dict(raw.get("targeting")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "turns": self.turns,
            "link": self.link,
            "overlap": self.overlap.value,
            "targeting": self.targeting.to_dict(),
        }
        if self.schedule is not None:
            data["schedule"] = self.schedule.to_dict()
        return data


@dataclass(frozen=True)
class DurabilityNegation:
    """DN timing: every hit when auto, otherwise only on scheduled turns."""
    auto: bool = True
    schedule: Schedule | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> DurabilityNegation:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            auto=raw.get("auto") is not False,
            schedule=Schedule.from_dict(raw.get("schedule")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"auto": self.auto}
        if self.schedule is not None:
            data["schedule"] = self.schedule.to_dict()
        return data


# =============================================================================
# Ability
# =============================================================================

@dataclass(frozen=True)
class Ability:
    """
    A normalized ability.

    `schedule` is the firing schedule of a child ability inside its
    card's multi-hit window; it is meaningless for the Multi-Hit itself,
    whose own timing lives in `multi_hit`.
    """
    type: AbilityType
    key: str
    power: float = 0.0
    duration: int = 0
    activation_chance: float = 100.0
    precedence: int = 0
    linked_to: tuple[str, ...] = ()
    desc: str | None = None
    target: str | None = None
    schedule: Schedule | None = None
    multi_hit: MultiHit | None = None
    durability_negation: DurabilityNegation | None = None

    def __post_init__(self):
        if self.multi_hit is not None and self.type != AbilityType.MULTI_HIT:
            raise ValueError(f"{self.type.value} ability cannot carry multi-hit settings")
        if self.durability_negation is not None and self.type != AbilityType.DURABILITY_NEGATION:
            raise ValueError(f"{self.type.value} ability cannot carry durability-negation settings")

    @property
    def is_attack_linked(self) -> bool:
        return ATTACK_LINK in self.linked_to

    @property
    def parents(self) -> tuple[str, ...]:
        """Sibling keys this ability depends on."""
        return tuple(k for k in self.linked_to if k != ATTACK_LINK)

    @property
    def is_primary(self) -> bool:
        """True for the Multi-Hit that puts its card on the field."""
        return self.multi_hit is not None and self.multi_hit.turns > 0

    def links_to_primary(self, primary_key: str | None) -> bool:
        if self.is_attack_linked:
            return True
        return primary_key is not None and primary_key in self.linked_to

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "key": self.key,
            "power": tidy(self.power),
            "duration": self.duration,
            "activationChance": tidy(self.activation_chance),
            "precedence": self.precedence,
            "linkedTo": list(self.linked_to),
        }
        if self.desc is not None:
            data["desc"] = self.desc
        if self.target is not None:
            data["target"] = self.target
        if self.schedule is not None:
            data["schedule"] = self.schedule.to_dict()
        if self.multi_hit is not None:
            data["multiHit"] = self.multi_hit.to_dict()
        if self.durability_negation is not None:
            data["durabilityNegation"] = self.durability_negation.to_dict()
        return data


# =============================================================================
# Normalization
# =============================================================================

def _raw_type(raw: dict[str, Any]) -> Any:
    for name in ("type", "name", "abilityType"):
        if raw.get(name) is not None:
            return raw[name]
    return "None"


def synthesize_key(raw: dict[str, Any], index: int) -> str:
    """The authored key, or "{type}_{index+1}" with whitespace collapsed to underscores."""
    key = raw.get("key")
    if key is not None and str(key).strip():
        return str(key).strip()
    type_name = re.sub(r"\s+", "_", str(_raw_type(raw)))
    return f"{type_name}_{index + 1}"


def _parse_target(raw: Any) -> str | None:
    if isinstance(raw, str) and raw in STAT_TARGETS:
        return raw
    if raw is None or isinstance(raw, bool):
        return None
    code = to_number(raw, 0.0)
    if code.is_integer() and 1 <= code <= len(STAT_TARGETS):
        return STAT_TARGETS[int(code) - 1]
    return None


def _parse_links(raw: Any, siblings: Sequence[str] | None) -> tuple[str, ...]:
    if isinstance(raw, list):
        return tuple(str(link) for link in raw if link)
    if isinstance(raw, str):
        return (raw,) if raw else ()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        # Legacy positional index into the card's own ability list
        index = to_number(raw, -1.0)
        if siblings is not None and index.is_integer() and 0 <= index < len(siblings):
            return (siblings[int(index)],)
        logger.debug("Legacy linkedTo index %r has no sibling; treating as unlinked", raw)
    return ()


def normalize_ability(
    raw: dict[str, Any] | Ability,
    index: int = 0,
    siblings: Sequence[str] | None = None,
    key: str | None = None,
) -> Ability:
    """
    Canonicalize one authored ability.

    Args:
        raw: Authored ability dict (legacy field names accepted)
        index: Position within the card, used to synthesize a key
        siblings: Keys of the card's abilities, for legacy numeric links
        key: Pre-computed unique key (overrides the authored one)

    Returns:
        Immutable Ability
    """
    if isinstance(raw, Ability):
        return raw
    if not isinstance(raw, dict):
        raw = {}

    ability_type = AbilityType.parse(_raw_type(raw))
    power = to_number(raw.get("power", raw.get("abilityPower")))
    duration = to_int(raw.get("duration", 0))
    chance_raw = raw.get("activationChance")
    activation_chance = 100.0 if chance_raw is None else to_number(chance_raw)

    multi_hit = None
    durability_negation = None
    schedule = Schedule.from_dict(raw.get("schedule"))

    if ability_type == AbilityType.MULTI_HIT:
        multi_hit = MultiHit.from_dict(raw.get("multiHit"))
        # Multi-Hit carries no strength or duration of its own
        power = 0.0
        duration = 0
        schedule = None
    elif schedule is None and isinstance(raw.get("multiHit"), dict):
        # Children historically stored their firing schedule under multiHit
        schedule = Schedule.from_dict(raw["multiHit"].get("schedule"))

    if ability_type == AbilityType.DURABILITY_NEGATION:
        durability_negation = DurabilityNegation.from_dict(raw.get("durabilityNegation"))

    desc = raw.get("desc")

    return Ability(
        type=ability_type,
        key=key or synthesize_key(raw, index),
        power=power,
        duration=duration,
        activation_chance=activation_chance,
        precedence=to_int(raw.get("precedence", 0)),
        linked_to=_parse_links(raw.get("linkedTo"), siblings),
        desc=str(desc) if desc else None,
        target=_parse_target(raw.get("target")),
        schedule=schedule,
        multi_hit=multi_hit,
        durability_negation=durability_negation,
    )


def unique_keys(raws: Sequence[dict[str, Any]]) -> list[str]:
    """Synthesize keys for a card's abilities, suffixing duplicates with _2, _3..."""
    seen: set[str] = set()
    keys = []
    for index, raw in enumerate(raws):
        base = synthesize_key(raw if isinstance(raw, dict) else {}, index)
        key, n = base, 1
        while key in seen:
            n += 1
            key = f"{base}_{n}"
        seen.add(key)
        keys.append(key)
    return keys


def normalize_abilities(raws: Iterable[Any] | None) -> tuple[Ability, ...]:
    """
    Normalize a card's full ability list.

    On top of per-ability normalization this enforces card-level rules:
    unique keys, legacy numeric links resolved to sibling keys, a single
    primary Multi-Hit, and child schedules clamped to the primary window.
    """
    raw_list = [r for r in (raws or []) if isinstance(r, (dict, Ability))]
    if raw_list and all(isinstance(r, Ability) for r in raw_list):
        return tuple(raw_list)

    dicts = [r.to_dict() if isinstance(r, Ability) else r for r in raw_list]
    keys = unique_keys(dicts)
    abilities = [
        normalize_ability(raw, index, siblings=keys, key=keys[index])
        for index, raw in enumerate(dicts)
    ]

    primary: Ability | None = None
    for i, ability in enumerate(abilities):
        if not ability.is_primary:
            continue
        if primary is None:
            primary = ability
            continue
        logger.warning(
            "Ability %r demoted: card already has primary Multi-Hit %r",
            ability.key, primary.key,
        )
        abilities[i] = replace(ability, multi_hit=replace(ability.multi_hit, turns=0))

    window = primary.multi_hit.turns if primary else 0
    for i, ability in enumerate(abilities):
        if ability.schedule is None or ability.type == AbilityType.MULTI_HIT:
            continue
        if primary is None:
            logger.warning("Ability %r has a schedule but its card has no primary Multi-Hit", ability.key)
            abilities[i] = replace(ability, schedule=None)
        else:
            abilities[i] = replace(ability, schedule=ability.schedule.clamp_to(window))

    return tuple(abilities)


def primary_ability(abilities: Iterable[Ability]) -> Ability | None:
    """The card's primary Multi-Hit, if any."""
    for ability in abilities:
        if ability.is_primary:
            return ability
    return None


def resolve_stat_target(ability: Ability, card_types: Iterable[str] = ()) -> str:
    """
    Stat a Stats Up / Stats Down ability modifies.

    Explicit target first, then the card's damage type, then attackPower.
    """
    if ability.target:
        return ability.target
    types = set(card_types)
    if "Physical" in types:
        return "physicalPower"
    if "Supernatural" in types:
        return "supernaturalPower"
    return "attackPower"
