"""Integration tests for the local game HTTP and WebSocket API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from urban_balance.api import create_api
from urban_balance.api import dependencies as dependency_module
from urban_balance.api.dependencies import get_game_session_service
from urban_balance.api.services import GameSessionService
from urban_balance.game_logic import RulesConfiguration

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Return a test client backed by an isolated, timer-free session service."""

    dependency_module.get_game_session_service.cache_clear()
    app = create_api()
    session_service = GameSessionService(
        configuration=RulesConfiguration(
            max_stories=10,
            turn_duration_seconds=0,
            ai_turn_delay_seconds=60,
            ai_counter_delay_seconds=60,
        )
    )
    app.dependency_overrides[get_game_session_service] = lambda: session_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    dependency_module.get_game_session_service.cache_clear()


def _create_game(client: TestClient, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "human_role": "developer",
        "seed": 7,
        "human_seat": "a",
    }
    payload.update(overrides)
    response = client.post("/games", json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_game_deals_a_started_match(client: TestClient) -> None:
    body = _create_game(client)

    assert body["type"] == "game_state"
    state = body["state"]
    assert state["game_phase"] == "playing"
    assert state["current_floor"] == 1
    assert len(state["floors"]) == 10
    assert state["current_score"] == -15
    assert [player["id"] for player in state["players"]] == ["human", "ai"]

    fetched = client.get(f"/games/{body['session_id']}")
    assert fetched.status_code == 200
    assert fetched.json()["state"] == state


def test_create_game_rejects_unknown_strategy(client: TestClient) -> None:
    response = client.post(
        "/games", json={"human_role": "community", "strategy": "chaotic"}
    )
    assert response.status_code == 422


def test_submitting_actions_returns_events(client: TestClient) -> None:
    session_id = _create_game(client)["session_id"]

    rejected = client.post(
        f"/games/{session_id}/actions",
        json={"type": "PASS_PROPOSAL", "player_id": "ai"},
    )
    assert rejected.status_code == 200
    body = rejected.json()
    assert body["accepted"] is False
    assert body["events"][0]["code"] == "NOT_YOUR_TURN"

    accepted = client.post(
        f"/games/{session_id}/actions",
        json={"type": "PASS_PROPOSAL", "player_id": "human"},
    )
    body = accepted.json()
    assert body["accepted"] is True
    assert [event["event_type"] for event in body["events"]][:2] == [
        "PROPOSAL_PASSED",
        "FLOOR_FINALIZED",
    ]
    assert body["state"]["current_floor"] == 2

    history = client.get(f"/games/{session_id}/events")
    assert history.status_code == 200
    assert history.json()[0]["event_type"] == "GAME_STARTED"


def test_malformed_action_is_reported_as_unknown(client: TestClient) -> None:
    session_id = _create_game(client)["session_id"]

    response = client.post(f"/games/{session_id}/actions", json={"type": "FLY"})

    body = response.json()
    assert body["accepted"] is False
    assert body["events"][0]["code"] == "UNKNOWN_ACTION"


def test_unknown_session_returns_404(client: TestClient) -> None:
    assert client.get("/games/missing").status_code == 404
    assert client.get("/games/missing/events").status_code == 404
    assert client.delete("/games/missing").status_code == 404
    response = client.post(
        "/games/missing/actions", json={"type": "DRAW_CARD", "player_id": "human"}
    )
    assert response.status_code == 404


def test_delete_game_forgets_the_session(client: TestClient) -> None:
    session_id = _create_game(client)["session_id"]

    assert client.delete(f"/games/{session_id}").status_code == 204
    assert client.get(f"/games/{session_id}").status_code == 404


def test_websocket_streams_snapshot_and_events(client: TestClient) -> None:
    session_id = _create_game(client)["session_id"]

    with client.websocket_connect(f"/ws/games/{session_id}") as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "game_state"
        assert snapshot["session_id"] == session_id

        websocket.send_json({"type": "heartbeat", "nonce": "abc"})
        assert websocket.receive_json() == {"type": "heartbeat", "nonce": "abc"}

        websocket.send_json({"type": "shout"})
        error = websocket.receive_json()
        assert error["type"] == "error"

        websocket.send_json(
            {
                "type": "action",
                "action": {"type": "PASS_PROPOSAL", "player_id": "human"},
            }
        )
        streamed = [websocket.receive_json() for _ in range(3)]
        assert [message["type"] for message in streamed] == ["event"] * 3
        assert [message["event"]["event_type"] for message in streamed] == [
            "PROPOSAL_PASSED",
            "FLOOR_FINALIZED",
            "TURN_STARTED",
        ]

        websocket.send_json({"type": "state"})
        refreshed = websocket.receive_json()
        assert refreshed["type"] == "game_state"
        assert refreshed["state"]["current_floor"] == 2


def test_websocket_rejects_unknown_session(client: TestClient) -> None:
    with (
        pytest.raises(WebSocketDisconnect),
        client.websocket_connect("/ws/games/missing") as websocket,
    ):
        websocket.receive_json()
