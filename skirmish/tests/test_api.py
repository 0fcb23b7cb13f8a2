"""
Tests for API layer.

Tests:
- TurnService methods
- HTTP endpoints through the FastAPI test client
- Error handling and status codes
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    DecisionRequest,
    ErrorCode,
    ErrorResponse,
    NormalizeRequest,
    TurnRequestBody,
    TurnResponse,
)
from ..api.service import TurnService
from ..content.starter import STARTER_CARDS

CARDS = {card["id"]: card for card in STARTER_CARDS}


def hand_of(*card_ids):
    return [{**CARDS[cid], "instanceId": str(i + 1)} for i, cid in enumerate(card_ids)]


class TestTurnService:
    """Tests for TurnService."""

    @pytest.fixture
    def service(self):
        return TurnService(random_seed=7)

    def test_seed_turn_against_catalog_enemy(self, service):
        """A seed request deals both sides and uses the enemy record's stats."""
        response = service.resolve_turn(TurnRequestBody(
            enemy_id="training-golem",
            seed=True,
            starting_deck=[{"cardId": "slash", "qty": 6}],
        ))

        assert isinstance(response, TurnResponse)
        assert response.seeded
        assert len(response.player.hand) == 5
        assert len(response.enemy.hand) == 3
        assert response.enemy.hp == 200
        assert response.enemy.attack_power == 8

    def test_unknown_enemy(self, service):
        response = service.resolve_turn(TurnRequestBody(enemy_id="dragon"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.ENEMY_NOT_FOUND
        assert response.details == {"enemyId": "dragon"}

    def test_insufficient_sp(self, service):
        response = service.resolve_turn(TurnRequestBody(
            action="play",
            selected_cards=["1"],
            hand=hand_of("slash"),
            player_stats={"sp": 0},
        ))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INSUFFICIENT_SP

    def test_unknown_starting_card_is_dropped(self, service):
        response = service.resolve_turn(TurnRequestBody(starting_deck=[{"cardId": "nope"}]))

        assert isinstance(response, TurnResponse)
        assert response.player.hand == []

    def test_normalize(self, service):
        response = service.normalize(NormalizeRequest(abilities=[
            {"type": "Multi-Hit", "multiHit": {"turns": 3}},
            {"type": "Lucky", "power": 5, "duration": 2},
        ]))

        assert [a["key"] for a in response.abilities] == ["Multi-Hit_1", "Lucky_2"]
        assert response.primary_key == "Multi-Hit_1"

    def test_list_enemies(self, service):
        response = service.list_enemies()

        assert [e.id for e in response.enemies] == ["training-golem"]
        assert "flurry" in response.enemies[0].move_set

    def test_preview_decision_prefers_combo(self, service):
        response = service.preview_decision("training-golem", DecisionRequest(
            hand=[CARDS["hex"], CARDS["piercing-thrust"], CARDS["slash"]],
            sp=4,
            random_seed=1,
        ))

        assert response.action == "play"
        assert response.cards == ["1", "2"]

    def test_preview_unknown_enemy(self, service):
        response = service.preview_decision("dragon", DecisionRequest())
        assert response.error_code == ErrorCode.ENEMY_NOT_FOUND


class TestHTTP:
    """Tests through the FastAPI test client."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(service=TurnService(random_seed=7)))

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "skirmish-engine"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/api/docs"

    def test_list_enemies(self, client):
        data = client.get("/api/v1/enemies").json()
        assert data["enemies"][0]["moveSet"][0] == "slash"

    def test_seed_then_play(self, client):
        """A client loop: deal, then send the dealt state back with a play."""
        dealt = client.post("/api/v1/turns", json={
            "enemyId": "training-golem",
            "seed": True,
            "startingDeck": [{"cardId": "slash", "qty": 6}],
        })
        assert dealt.status_code == 200
        state = dealt.json()
        assert state["seeded"] is True

        played = client.post("/api/v1/turns", json={
            "enemyId": "training-golem",
            "action": "play",
            "selectedCards": [state["player"]["hand"][0]["instanceId"]],
            "playerStats": state["player"],
            "enemyStats": state["enemy"],
            "hand": state["player"]["hand"],
            "deck": state["player"]["deck"],
            "enemyHand": state["enemy"]["hand"],
            "enemyDeck": state["enemy"]["deck"],
            "activeEffects": state["activeEffects"],
            "onField": state["onField"],
        })

        assert played.status_code == 200
        data = played.json()
        assert data["seeded"] is False
        assert data["enemy"]["hp"] == 134
        assert data["player"]["message"] == "You dealt 66 damage."
        assert data["enemyDecision"] is not None

    def test_unknown_enemy_is_404(self, client):
        response = client.post("/api/v1/turns", json={"enemyId": "dragon"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "ENEMY_NOT_FOUND"

    def test_insufficient_sp_is_400(self, client):
        response = client.post("/api/v1/turns", json={
            "action": "play",
            "selectedCards": ["1"],
            "hand": hand_of("slash"),
            "playerStats": {"sp": 0},
        })

        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_SP"

    def test_unknown_card_is_400(self, client):
        response = client.post("/api/v1/turns", json={
            "action": "play",
            "selectedCards": ["42"],
            "hand": hand_of("slash"),
        })

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_CARD"

    def test_invalid_action_is_422(self, client):
        response = client.post("/api/v1/turns", json={"action": "attack"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_normalize(self, client):
        response = client.post("/api/v1/abilities/normalize", json={
            "abilities": [{"type": "Multi-Hit", "key": "barrage", "multiHit": {"turns": 2}}],
        })

        assert response.status_code == 200
        assert response.json()["primaryKey"] == "barrage"

    def test_decision_preview(self, client):
        response = client.post("/api/v1/enemies/training-golem/decision", json={
            "hand": [CARDS["brace"]],
            "sp": 0,
        })

        assert response.status_code == 200
        assert response.json()["action"] == "skip"

    def test_decision_preview_unknown_enemy(self, client):
        response = client.post("/api/v1/enemies/dragon/decision", json={})
        assert response.status_code == 404
