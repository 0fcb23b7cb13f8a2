"""
Card snapshots - Runtime projection of catalog cards.

A snapshot is what travels inside hands, decks, discard piles and field
entries. It is distinct from the catalog record: it carries an
instance id (so duplicate copies can be told apart) and only the fields
the engine reads.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from .abilities import Ability, normalize_abilities, primary_ability
from .numeric import to_number, tidy

DAMAGE_TYPES = ("Physical", "Supernatural")


def parse_types(raw: dict[str, Any]) -> tuple[str, ...]:
    """Card types from either `type` or `types`, as a tuple of strings."""
    value = raw.get("type")
    if value is None:
        value = raw.get("types")
    if isinstance(value, (list, tuple)):
        return tuple(str(t) for t in value if t)
    return (str(value),) if value else ()


@dataclass
class CardSnapshot:
    """
    A card instance in play.

    Note: `abilities_raw` keeps the authored ability dicts so the snapshot
    round-trips unchanged; `abilities` is the normalized view.
    """
    id: str
    instance_id: str
    name: str = "Card"
    rating: str | None = None
    sp_cost: float = 0.0
    potency: float = 0.0
    defense: float = 0.0
    types: tuple[str, ...] = ()
    abilities_raw: list[dict[str, Any]] = field(default_factory=list)
    default_attack_type: str = "Single"

    @classmethod
    def from_dict(cls, raw: dict[str, Any], instance_id: Any = None) -> CardSnapshot:
        if isinstance(raw, CardSnapshot):
            return raw
        iid = raw.get("instanceId", instance_id)
        abilities = raw.get("abilities")
        return cls(
            id=str(raw.get("id") or raw.get("_id") or ""),
            instance_id=str(iid if iid is not None else ""),
            name=str(raw.get("name") or "Card"),
            rating=raw.get("rating"),
            sp_cost=to_number(raw.get("spCost")),
            potency=to_number(raw.get("potency")),
            defense=to_number(raw.get("defense")),
            types=parse_types(raw),
            abilities_raw=[
                a.to_dict() if isinstance(a, Ability) else dict(a)
                for a in (abilities if isinstance(abilities, list) else [])
                if isinstance(a, (dict, Ability))
            ],
            default_attack_type=str(raw.get("defaultAttackType") or "Single"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "instanceId": self.instance_id,
            "name": self.name,
            "rating": self.rating,
            "spCost": tidy(self.sp_cost),
            "potency": tidy(self.potency),
            "defense": tidy(self.defense),
            "types": list(self.types),
            "abilities": [dict(a) for a in self.abilities_raw],
            "defaultAttackType": self.default_attack_type,
        }

    @cached_property
    def abilities(self) -> tuple[Ability, ...]:
        return normalize_abilities(self.abilities_raw)

    @property
    def primary(self) -> Ability | None:
        return primary_ability(self.abilities)

    @property
    def has_multi_hit(self) -> bool:
        """True when playing this card puts it on the field."""
        return self.primary is not None

    @property
    def deals_damage(self) -> bool:
        return any(t in DAMAGE_TYPES for t in self.types)

    @property
    def is_physical(self) -> bool:
        return "Physical" in self.types

    def __hash__(self):
        return hash(self.instance_id)

    def __eq__(self, other):
        if not isinstance(other, CardSnapshot):
            return False
        return self.instance_id == other.instance_id
