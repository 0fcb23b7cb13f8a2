"""
Card Catalog - Read-only lookup of cards and enemies.

The engine never talks to storage. The service layer resolves enemy
records and their move sets through a CardCatalog before building a
TurnRequest.

Catalog files are JSON:

    {
      "cards":   [{"id": "slash", "name": "Slash", ...}],
      "enemies": [{"id": "golem", "stats": {...}, "moveSet": ["slash"], "aiConfig": {...}}]
    }
"""

from __future__ import annotations
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .bots.personality import AIConfig, get_personality

logger = logging.getLogger(__name__)


@dataclass
class EnemyRecord:
    """An authored enemy: base stats, move set and play style."""
    id: str
    name: str
    stats: dict[str, Any] = field(default_factory=dict)
    move_set: list[str] = field(default_factory=list)
    ai_config: dict[str, Any] = field(default_factory=dict)
    personality: str = "balanced"
    description: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> EnemyRecord:
        move_set = []
        for entry in raw.get("moveSet") or []:
            card_id = entry.get("id") or entry.get("_id") if isinstance(entry, dict) else entry
            if card_id:
                move_set.append(str(card_id))
        return cls(
            id=str(raw.get("id") or raw.get("_id") or ""),
            name=str(raw.get("name") or "Enemy"),
            stats=dict(raw.get("stats") or {}),
            move_set=move_set,
            ai_config=dict(raw.get("aiConfig") or {}),
            personality=str(raw.get("personality") or "balanced"),
            description=str(raw.get("description") or ""),
        )

    def ai(self) -> AIConfig:
        """Authored aiConfig layered over the named personality."""
        return get_personality(self.personality, self.ai_config)


class CatalogError(Exception):
    """A catalog file could not be loaded."""


class CardCatalog(ABC):
    """Read-only card and enemy lookup."""

    @abstractmethod
    def get_card(self, card_id: str) -> dict[str, Any] | None:
        pass

    @abstractmethod
    def get_enemy(self, enemy_id: str) -> EnemyRecord | None:
        pass

    @abstractmethod
    def list_enemies(self) -> list[EnemyRecord]:
        pass

    def move_set(self, enemy: EnemyRecord) -> list[dict[str, Any]]:
        """Resolve an enemy's move set to card dicts, skipping unknown ids."""
        cards = []
        for card_id in enemy.move_set:
            card = self.get_card(card_id)
            if card is None:
                logger.warning("Enemy %s references unknown card %s", enemy.id, card_id)
                continue
            cards.append(card)
        return cards


class InMemoryCatalog(CardCatalog):
    """
    Dict-backed catalog.

    Usage:
        catalog = InMemoryCatalog.from_json("content.json")
        enemy = catalog.get_enemy("golem")
        cards = catalog.move_set(enemy)
    """

    def __init__(
        self,
        cards: list[dict[str, Any]] | None = None,
        enemies: list[EnemyRecord] | None = None,
    ):
        self._cards: dict[str, dict[str, Any]] = {}
        self._enemies: dict[str, EnemyRecord] = {}
        for card in cards or []:
            self.add_card(card)
        for enemy in enemies or []:
            self.add_enemy(enemy)

    def add_card(self, card: dict[str, Any]) -> None:
        card_id = str(card.get("id") or card.get("_id") or "")
        if not card_id:
            raise CatalogError(f"Card without id: {card.get('name')!r}")
        self._cards[card_id] = {**card, "id": card_id}

    def add_enemy(self, enemy: EnemyRecord) -> None:
        if not enemy.id:
            raise CatalogError(f"Enemy without id: {enemy.name!r}")
        self._enemies[enemy.id] = enemy

    def get_card(self, card_id: str) -> dict[str, Any] | None:
        card = self._cards.get(str(card_id))
        return dict(card) if card is not None else None

    def get_enemy(self, enemy_id: str) -> EnemyRecord | None:
        return self._enemies.get(str(enemy_id))

    def list_enemies(self) -> list[EnemyRecord]:
        return list(self._enemies.values())

    def __len__(self) -> int:
        return len(self._cards)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryCatalog:
        return cls(
            cards=[c for c in data.get("cards") or [] if isinstance(c, dict)],
            enemies=[EnemyRecord.from_dict(e) for e in data.get("enemies") or [] if isinstance(e, dict)],
        )

    @classmethod
    def from_json(cls, path: str | Path) -> InMemoryCatalog:
        path = Path(path).expanduser()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Could not load catalog {path}: {e}") from e
        if not isinstance(data, dict):
            raise CatalogError(f"Catalog {path} must be a JSON object")
        catalog = cls.from_dict(data)
        logger.info("Loaded catalog %s: %d cards, %d enemies", path, len(catalog), len(catalog._enemies))
        return catalog

    @classmethod
    def starter(cls) -> InMemoryCatalog:
        """The bundled starter content."""
        from .content.starter import STARTER_CONTENT
        return cls.from_dict(STARTER_CONTENT)
