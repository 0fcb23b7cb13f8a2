"""
API Service - Business logic layer between API and engine.

The service:
1. Looks up the enemy and its move set in the catalog
2. Expands catalog references in the starting deck
3. Runs the turn engine
4. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, the CLI, etc.)
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from .schemas import (
    # Requests
    TurnRequestBody,
    NormalizeRequest,
    DecisionRequest,
    # Responses
    TurnResponse,
    NormalizeResponse,
    EnemyDecisionInfo,
    EnemyListResponse,
    EnemySummary,
    ErrorResponse,
    # Enums
    ErrorCode,
)
from ..bots.personality import AIConfig
from ..bots.policy import ScoredEnemyPolicy
from ..catalog import CardCatalog, InMemoryCatalog
from ..engine_core.abilities import normalize_abilities, primary_ability
from ..engine_core.cards import CardSnapshot
from ..engine_core.errors import RejectedAction
from ..engine_core.orchestrator import TurnEngine, TurnRequest, TurnResult
from ..engine_core.rules import DEFAULT_RULES, EngineRules
from ..engine_core.state import Stats

logger = logging.getLogger(__name__)


@dataclass
class TurnService:
    """
    Main API service for game clients.

    Usage:
        service = TurnService()

        # Resolve a turn
        response = service.resolve_turn(TurnRequestBody(enemy_id="training-golem", seed=True))

        # Normalize a card's abilities
        normalized = service.normalize(NormalizeRequest(abilities=[...]))
    """
    catalog: CardCatalog = field(default_factory=InMemoryCatalog.starter)
    rules: EngineRules = DEFAULT_RULES

    # Seed for reproducible resolutions (tests, replays)
    random_seed: int | None = None

    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self):
        self._rng = random.Random(self.random_seed)

    # =========================================================================
    # Turns
    # =========================================================================

    def resolve_turn(self, request: TurnRequestBody) -> TurnResponse | ErrorResponse:
        """
        Resolve one turn.

        Returns ErrorResponse when the enemy is unknown or the engine
        rejects the action; nothing is resolved in that case.
        """
        payload = request.model_dump(by_alias=True, mode="json")
        payload["startingDeck"] = self._expand_starting_deck(request.starting_deck)

        if request.enemy_id is not None:
            enemy = self.catalog.get_enemy(request.enemy_id)
            if enemy is None:
                return ErrorResponse(
                    error="Enemy not found",
                    error_code=ErrorCode.ENEMY_NOT_FOUND,
                    details={"enemyId": request.enemy_id},
                )
            payload["enemyDefaults"] = enemy.stats
            payload["enemyMoveSet"] = self.catalog.move_set(enemy)
            payload["aiConfig"] = enemy.ai().to_dict()

        engine = TurnEngine(rules=self.rules, rng=self._rng)
        try:
            result = engine.resolve(TurnRequest.from_dict(payload))
        except RejectedAction as e:
            logger.info("Rejected turn: %s", e.message)
            return ErrorResponse(
                error=e.message,
                error_code=ErrorCode(e.code.value),
                details=e.details,
            )
        return self._result_to_response(result)

    def _expand_starting_deck(self, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Replace {cardId, qty} references with catalog cards."""
        deck = []
        for entry in entries:
            card_id = entry.get("cardId")
            if card_id is None:
                deck.append(entry)
                continue
            card = self.catalog.get_card(str(card_id))
            if card is None:
                logger.warning("Starting deck references unknown card %s", card_id)
                continue
            deck.append({**card, "qty": entry.get("qty", 1)})
        return deck

    def _result_to_response(self, result: TurnResult) -> TurnResponse:
        return TurnResponse.model_validate(result.to_dict())

    # =========================================================================
    # Abilities
    # =========================================================================

    def normalize(self, request: NormalizeRequest) -> NormalizeResponse:
        abilities = normalize_abilities(request.abilities)
        primary = primary_ability(abilities)
        return NormalizeResponse(
            abilities=[a.to_dict() for a in abilities],
            primary_key=primary.key if primary else None,
        )

    # =========================================================================
    # Enemies
    # =========================================================================

    def list_enemies(self) -> EnemyListResponse:
        return EnemyListResponse(
            enemies=[
                EnemySummary(id=e.id, name=e.name, description=e.description, move_set=e.move_set)
                for e in self.catalog.list_enemies()
            ]
        )

    def preview_decision(self, enemy_id: str, request: DecisionRequest) -> EnemyDecisionInfo | ErrorResponse:
        """Run the enemy policy on a hand without resolving a turn."""
        enemy = self.catalog.get_enemy(enemy_id)
        if enemy is None:
            return ErrorResponse(
                error="Enemy not found",
                error_code=ErrorCode.ENEMY_NOT_FOUND,
                details={"enemyId": enemy_id},
            )
        stats = Stats.from_dict({}, defaults=enemy.stats)
        hand = [
            CardSnapshot.from_dict(card, instance_id=str(i + 1))
            for i, card in enumerate(request.hand)
        ]
        config: AIConfig = enemy.ai()
        policy = ScoredEnemyPolicy(seed=request.random_seed)
        decision = policy.decide(
            hand,
            request.sp if request.sp is not None else stats.sp,
            request.hp if request.hp is not None else stats.hp,
            stats.max_hp,
            stats.max_sp,
            config,
        )
        return EnemyDecisionInfo.model_validate(decision.to_dict())
