"""
API Module - Client interface.

Exposes the engine via REST API. A client:
1. Deals the opening state (empty piles or seed=true)
2. Sends each turn's action with the previous response's state
3. Answers retarget prompts on the following turn

All state travels with the request. Nothing is stored server-side.
"""

from .schemas import (
    # Requests
    TurnRequestBody,
    NormalizeRequest,
    DecisionRequest,
    # Responses
    TurnResponse,
    NormalizeResponse,
    EnemyDecisionInfo,
    ErrorResponse,
    ErrorCode,
)
from .service import TurnService
from .app import create_app

__all__ = [
    # Requests
    "TurnRequestBody",
    "NormalizeRequest",
    "DecisionRequest",
    # Responses
    "TurnResponse",
    "NormalizeResponse",
    "EnemyDecisionInfo",
    "ErrorResponse",
    "ErrorCode",
    # Service
    "TurnService",
    "create_app",
]
