"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between game clients and the
engine. The wire format is camelCase; attributes are snake_case.

Error Codes:
- VALIDATION_ERROR: Request body failed validation
- INSUFFICIENT_SP: Selected cards cost more SP than the player has
- UNKNOWN_CARD: A selected card is not in the player's hand
- ENEMY_NOT_FOUND: Enemy id not found in the catalog
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INSUFFICIENT_SP = "INSUFFICIENT_SP"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    ENEMY_NOT_FOUND = "ENEMY_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ActionName(str, Enum):
    """Main actions a player can request."""
    PLAY = "play"
    SKIP = "skip"
    DEFEND = "defend"


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Models
# =============================================================================

class TurnRequestBody(CamelModel):
    """
    One turn's complete prior state.

    Piles, ledger and field come back from the previous response; the
    engine keeps nothing between calls.
    """
    enemy_id: Optional[str] = Field(None, description="Catalog enemy to fight")
    action: Optional[ActionName] = Field(None, description="play, skip or defend")
    selected_cards: list[Any] = Field(
        default_factory=list, description="Instance ids (or card objects) from the hand"
    )
    seed: bool = Field(False, description="Deal the opening state and return without resolving")

    player_stats: dict[str, Any] = Field(default_factory=dict)
    enemy_stats: dict[str, Any] = Field(default_factory=dict)
    extra_stats: dict[str, Any] = Field(
        default_factory=dict, description="Run-level stat deltas added onto base stats"
    )

    hand: list[dict[str, Any]] = Field(default_factory=list)
    deck: list[dict[str, Any]] = Field(default_factory=list)
    discard_pile: list[dict[str, Any]] = Field(default_factory=list)
    enemy_hand: list[dict[str, Any]] = Field(default_factory=list)
    enemy_deck: list[dict[str, Any]] = Field(default_factory=list)
    enemy_discard: list[dict[str, Any]] = Field(default_factory=list)
    starting_deck: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Cards (or {cardId, qty} catalog references) to deal from when piles are empty",
    )
    starting_hand_size: Optional[int] = Field(None, ge=0, le=30)

    active_effects: Optional[dict[str, Any]] = Field(None, description="Persistent effect ledger")
    on_field: Optional[dict[str, Any]] = Field(None, description="Live field cards per side")
    retarget_choices: list[dict[str, Any]] = Field(default_factory=list)
    negation_target: Optional[dict[str, Any]] = Field(
        None, description="Opponent field card to remove if a negation succeeds"
    )


class NormalizeRequest(CamelModel):
    """A card's authored ability list."""
    abilities: list[dict[str, Any]] = Field(default_factory=list)


class DecisionRequest(CamelModel):
    """Preview what an enemy would do with a given hand."""
    hand: list[dict[str, Any]] = Field(default_factory=list)
    sp: Optional[float] = None
    hp: Optional[float] = None
    random_seed: Optional[int] = Field(None, description="Seed for reproducible greed rolls")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SideState(CamelModel):
    """One combatant after the turn."""
    hp: float
    hp_remaining: float
    sp: float
    max_sp: float
    attack_power: float
    physical_power: float
    supernatural_power: float
    durability: float
    vitality: float
    intelligence: float
    speed: float
    defense: float = 0
    message: Optional[str] = None
    effective_stats: dict[str, float] = Field(default_factory=dict)
    hand: list[dict[str, Any]] = Field(default_factory=list)
    deck: list[dict[str, Any]] = Field(default_factory=list)
    discard: list[dict[str, Any]] = Field(default_factory=list)


class EnemyDecisionInfo(CamelModel):
    """What the enemy chose and why."""
    action: str
    cards: list[str] = Field(default_factory=list)
    explanation: str = ""
    scores: dict[str, float] = Field(default_factory=dict)


class TurnResponse(CamelModel):
    """The complete next state plus display fields."""
    player: SideState
    enemy: SideState
    active_effects: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    on_field: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    retarget_prompts: list[dict[str, Any]] = Field(default_factory=list)
    defend_used: bool = False
    seeded: bool = False
    player_is_dead: bool = False
    enemy_is_dead: bool = False
    enemy_decision: Optional[EnemyDecisionInfo] = None
    events: list[dict[str, Any]] = Field(default_factory=list)


class NormalizeResponse(CamelModel):
    """Normalized abilities with synthesized keys and enforced links."""
    abilities: list[dict[str, Any]] = Field(default_factory=list)
    primary_key: Optional[str] = Field(None, description="Key of the primary Multi-Hit, if any")


class EnemySummary(CamelModel):
    id: str
    name: str
    description: str = ""
    move_set: list[str] = Field(default_factory=list)


class EnemyListResponse(CamelModel):
    enemies: list[EnemySummary] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
