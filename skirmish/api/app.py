"""
FastAPI Application - REST API for game clients.

Endpoints:
    POST   /api/v1/turns                     Resolve one turn
    POST   /api/v1/abilities/normalize       Normalize a card's abilities
    GET    /api/v1/enemies                   List catalog enemies
    POST   /api/v1/enemies/{id}/decision     Preview an enemy decision

Turn Flow:
    1. First call with empty piles (or seed=true) deals the opening hands
    2. Each later call sends back the previous response's piles,
       activeEffects and onField together with the chosen action
    3. retargetPrompts in a response are answered through
       retargetChoices on the next call

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union
import logging
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..catalog import InMemoryCatalog
from .service import TurnService
from .schemas import (
    # Request models
    TurnRequestBody,
    NormalizeRequest,
    DecisionRequest,
    # Response models
    TurnResponse,
    NormalizeResponse,
    EnemyDecisionInfo,
    EnemyListResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

# Environment configuration
SKIRMISH_ENV = os.getenv("SKIRMISH_ENV", "development")
SKIRMISH_CATALOG_PATH = os.getenv("SKIRMISH_CATALOG_PATH", None)
SKIRMISH_LOG_LEVEL = os.getenv("SKIRMISH_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.INSUFFICIENT_SP: 400,
    ErrorCode.UNKNOWN_CARD: 400,
    ErrorCode.ENEMY_NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional TurnService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    logging.basicConfig(
        level=SKIRMISH_LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Skirmish Engine API",
        description="""
Card battler turn-resolution engine.

The engine is stateless: every request carries the complete prior state
and every response carries the complete next state.

## Error Codes

| Code | Description |
|------|-------------|
| `VALIDATION_ERROR` | Request body failed validation |
| `INSUFFICIENT_SP` | Selected cards cost more SP than available |
| `UNKNOWN_CARD` | A selected card is not in hand |
| `ENEMY_NOT_FOUND` | Enemy id not in the catalog |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        catalog = InMemoryCatalog.from_json(SKIRMISH_CATALOG_PATH) if SKIRMISH_CATALOG_PATH else InMemoryCatalog.starter()
        service = TurnService(catalog=catalog)
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict | None = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_error(error: ErrorResponse) -> JSONResponse:
        return make_error_response(
            error.error_code,
            error.error,
            ERROR_STATUS.get(error.error_code, 400),
            error.details,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request body",
            status_code=422,
            details={"errors": jsonable_encoder(exc.errors())},
        )

    # =========================================================================
    # Turn Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/turns",
        response_model=TurnResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Combat"],
        summary="Resolve one combat turn",
    )
    async def resolve_turn(body: TurnRequestBody) -> Union[TurnResponse, JSONResponse]:
        """
        Resolve the player's action, the field, and the enemy's reply.

        Returns the full next state. Errors leave the submitted state
        untouched; resend it with a valid action.
        """
        result = api_service.resolve_turn(body)
        if isinstance(result, ErrorResponse):
            return from_error(result)
        return result

    # =========================================================================
    # Ability Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/abilities/normalize",
        response_model=NormalizeResponse,
        tags=["Cards"],
        summary="Normalize a card's ability list",
    )
    async def normalize_abilities(body: NormalizeRequest) -> NormalizeResponse:
        """Synthesize keys, enforce a single primary and clamp child schedules."""
        return api_service.normalize(body)

    # =========================================================================
    # Enemy Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/enemies",
        response_model=EnemyListResponse,
        tags=["Enemies"],
        summary="List catalog enemies",
    )
    async def list_enemies() -> EnemyListResponse:
        return api_service.list_enemies()

    @app.post(
        "/api/v1/enemies/{enemy_id}/decision",
        response_model=EnemyDecisionInfo,
        responses={404: {"model": ErrorResponse}},
        tags=["Enemies"],
        summary="Preview an enemy decision",
    )
    async def preview_decision(enemy_id: str, body: DecisionRequest) -> Union[EnemyDecisionInfo, JSONResponse]:
        """Run the enemy's AI on a hand without resolving a turn."""
        result = api_service.preview_decision(enemy_id, body)
        if isinstance(result, ErrorResponse):
            return from_error(result)
        return result

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="skirmish-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Skirmish Engine API",
            "version": __version__,
            "environment": SKIRMISH_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.info("Skirmish API ready (%s)", SKIRMISH_ENV)
    return app
