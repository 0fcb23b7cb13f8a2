"""
Turn State - Value types that flow through one turn resolution.

Design principles:
- Stateless engine: everything here is built from the request and
  serialized back into the response
- Wire format is camelCase; attributes are snake_case
- Loose input, strict internals: from_dict never raises on bad numbers
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .abilities import Ability, AbilityType, Targeting
from .cards import CardSnapshot
from .numeric import is_number, to_int, to_number, tidy


class Side(str, Enum):
    """The two combatants."""
    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> Side:
        return Side.ENEMY if self is Side.PLAYER else Side.PLAYER

    @classmethod
    def parse(cls, raw: Any, default: Side | None = None) -> Side:
        try:
            return cls(raw)
        except ValueError:
            return default or cls.PLAYER


# =============================================================================
# Stats
# =============================================================================

# wire name -> attribute name
STAT_FIELDS = {
    "attackPower": "attack_power",
    "physicalPower": "physical_power",
    "supernaturalPower": "supernatural_power",
    "durability": "durability",
    "vitality": "vitality",
    "intelligence": "intelligence",
    "speed": "speed",
    "sp": "sp",
    "maxSp": "max_sp",
}

DEFAULT_STATS: dict[str, float] = {
    "attackPower": 10,
    "physicalPower": 10,
    "supernaturalPower": 10,
    "durability": 10,
    "vitality": 1,
    "intelligence": 1,
    "speed": 5,
    "sp": 3,
    "maxSp": 5,
}


def hp_from_vitality(vitality: float) -> float:
    return max(1.0, (vitality or 1) * 100)


@dataclass
class Stats:
    """Numeric attributes of one side."""
    attack_power: float = 10
    physical_power: float = 10
    supernatural_power: float = 10
    durability: float = 10
    vitality: float = 1
    intelligence: float = 1
    speed: float = 5
    sp: float = 3
    max_sp: float = 5
    hp: float = 100

    @classmethod
    def from_dict(
        cls,
        raw: dict[str, Any] | None,
        defaults: dict[str, Any] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> Stats:
        """
        Build stats from a loosely typed dict.

        Args:
            raw: Incoming stats; numeric values win
            defaults: Overrides for DEFAULT_STATS (e.g. an enemy record)
            extra: Run-level deltas added onto the defaults (may be negative)
        """
        raw = raw or {}
        base = dict(DEFAULT_STATS)
        for name, value in (defaults or {}).items():
            if name in STAT_FIELDS and is_number(value):
                base[name] = float(value)
        for name, delta in (extra or {}).items():
            if name in STAT_FIELDS and is_number(delta):
                base[name] = base[name] + delta

        values: dict[str, float] = {}
        for wire, attr in STAT_FIELDS.items():
            value = raw.get(wire)
            values[attr] = float(value) if is_number(value) else float(base[wire])

        hp = raw.get("hp")
        if not is_number(hp):
            hp = raw.get("hpRemaining")
        if is_number(hp) and hp > 0:
            values["hp"] = float(hp)
        else:
            values["hp"] = hp_from_vitality(values["vitality"])
        return cls(**values)

    def get(self, name: str) -> float:
        return getattr(self, STAT_FIELDS[name])

    def adjust(self, name: str, delta: float) -> None:
        """Add delta to a stat by wire name; unknown names are ignored."""
        attr = STAT_FIELDS.get(name)
        if attr is None:
            return
        setattr(self, attr, getattr(self, attr) + delta)

    def copy(self) -> Stats:
        return replace(self)

    @property
    def max_hp(self) -> float:
        return hp_from_vitality(self.vitality)

    def type_power(self, physical: bool) -> float:
        """Power stat matching a card's damage type."""
        return self.physical_power if physical else self.supernatural_power

    def to_dict(self) -> dict[str, Any]:
        data = {wire: tidy(getattr(self, attr)) for wire, attr in STAT_FIELDS.items()}
        data["hp"] = tidy(self.hp)
        return data


# =============================================================================
# Persistent effects
# =============================================================================

def effect_key(effect_type: AbilityType, target: str | None) -> str:
    """Ledger key: `type` or `type:target`."""
    return f"{effect_type.value}:{target}" if target else effect_type.value


@dataclass
class PersistentEffect:
    """A standing modifier in one side's ledger bucket."""
    type: AbilityType
    power: float = 0.0
    precedence: int = 0
    remaining: int = 0
    target: str | None = None

    @property
    def key(self) -> str:
        return effect_key(self.type, self.target)

    @classmethod
    def from_ability(cls, ability: Ability, target: str | None = None) -> PersistentEffect:
        return cls(
            type=ability.type,
            power=ability.power,
            precedence=ability.precedence,
            remaining=max(ability.duration, 0),
            target=target,
        )

    @classmethod
    def from_dict(cls, raw: Any) -> PersistentEffect | None:
        """Parse a wire entry; entries without a usable type yield None."""
        if not isinstance(raw, dict) or not raw.get("type"):
            return None
        effect_type = AbilityType.parse(raw["type"])
        if effect_type == AbilityType.NONE:
            return None
        return cls(
            type=effect_type,
            power=to_number(raw.get("power")),
            precedence=to_int(raw.get("precedence")),
            remaining=max(0, to_int(raw.get("remaining"))),
            target=raw.get("target") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "target": self.target,
            "power": tidy(self.power),
            "precedence": self.precedence,
            "remaining": self.remaining,
        }


# =============================================================================
# Per-pass context
# =============================================================================

@dataclass
class Toggle:
    """Guard / Ability Shield state for one pass."""
    active: bool = False
    precedence: int = 0
    duration: int = 0


@dataclass
class CardFlags:
    """Damage-phase flags derived from a played card's abilities."""
    bypass_durability: bool = False
    instant_death: Ability | None = None


@dataclass
class SideContext:
    """
    Ephemeral per-side record for one resolution pass.

    Created fresh for every pass and never persisted.
    """
    chance_up: float = 0.0
    chance_down: float = 0.0
    ability_shield: Toggle = field(default_factory=Toggle)
    guard: Toggle = field(default_factory=Toggle)
    frozen_turns: int = 0
    curse_suppress: int = 0
    per_card: dict[str, CardFlags] = field(default_factory=dict)
    revive: PersistentEffect | None = None

    @property
    def frozen(self) -> bool:
        return self.frozen_turns > 0


@dataclass
class TurnContext:
    player: SideContext = field(default_factory=SideContext)
    enemy: SideContext = field(default_factory=SideContext)

    def __getitem__(self, side: Side) -> SideContext:
        return self.player if side is Side.PLAYER else self.enemy


# =============================================================================
# Field cards
# =============================================================================

@dataclass
class TargetRef:
    """What a field card hits: the opposing character or a field card."""
    kind: str = "character"
    side: Side | None = None
    instance_id: str | None = None

    @property
    def is_character(self) -> bool:
        return self.kind != "field"

    @classmethod
    def from_dict(cls, raw: Any) -> TargetRef:
        if not isinstance(raw, dict):
            return cls()
        kind = "field" if raw.get("kind") == "field" else "character"
        side = Side(raw["side"]) if raw.get("side") in ("player", "enemy") else None
        iid = raw.get("instanceId")
        return cls(kind=kind, side=side, instance_id=str(iid) if iid is not None else None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        if self.side is not None:
            data["side"] = self.side.value
        if self.instance_id is not None:
            data["instanceId"] = self.instance_id
        return data


@dataclass
class ScheduleState:
    """
    Precomputed timing for a field card.

    turn_index counts completed field ticks; overall turn 1 is the
    initial play, so the next tick is overall turn turn_index + 2.
    """
    turn_index: int = 0
    dn_auto: bool = False
    dn_turns: list[int] | None = None
    child_turns: dict[str, list[int]] | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> ScheduleState:
        if not isinstance(raw, dict):
            return cls()
        dn_turns = raw.get("dnTurns")
        child_turns = raw.get("childTurns")
        return cls(
            turn_index=max(0, to_int(raw.get("turnIndex"))),
            dn_auto=bool(raw.get("dnAuto")),
            dn_turns=[to_int(t) for t in dn_turns] if isinstance(dn_turns, list) else None,
            child_turns={
                str(k): [to_int(t) for t in v]
                for k, v in child_turns.items()
                if isinstance(v, list)
            } if isinstance(child_turns, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "turnIndex": self.turn_index,
            "dnAuto": self.dn_auto,
            "dnTurns": self.dn_turns,
            "childTurns": self.child_turns,
        }


@dataclass
class FieldCard:
    """A played card staged to repeat its hit on future turns."""
    instance_id: str
    owner: Side
    card: CardSnapshot | None
    turns_remaining: int
    link: str = "attack"
    targeting: Targeting = field(default_factory=Targeting)
    target_ref: TargetRef = field(default_factory=TargetRef)
    schedule_state: ScheduleState = field(default_factory=ScheduleState)

    @classmethod
    def from_dict(cls, raw: Any, owner: Side) -> FieldCard | None:
        if not isinstance(raw, dict):
            return None
        card_raw = raw.get("card")
        iid = raw.get("instanceId")
        turns = raw.get("turnsRemaining")
        return cls(
            instance_id=str(iid) if iid is not None else "",
            owner=Side.parse(raw.get("owner"), owner),
            card=CardSnapshot.from_dict(card_raw, iid) if isinstance(card_raw, dict) else None,
            turns_remaining=to_int(turns) if is_number(turns) else 0,
            link=str(raw.get("link") or "attack"),
            targeting=Targeting.from_dict(raw.get("targeting")),
            target_ref=TargetRef.from_dict(raw.get("targetRef")),
            schedule_state=ScheduleState.from_dict(raw.get("scheduleState")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "instanceId": self.instance_id,
            "owner": self.owner.value,
            "card": self.card.to_dict() if self.card else None,
            "turnsRemaining": self.turns_remaining,
            "link": self.link,
            "targeting": self.targeting.to_dict(),
            "targetRef": self.target_ref.to_dict(),
            "scheduleState": self.schedule_state.to_dict(),
        }


@dataclass
class RetargetPrompt:
    """Asks the client to pick a new target for a field card."""
    owner: Side
    instance_id: str
    options: list[TargetRef] = field(default_factory=lambda: [TargetRef()])

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner.value,
            "instanceId": self.instance_id,
            "options": [o.to_dict() for o in self.options],
        }
