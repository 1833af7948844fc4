"""
Tests: WebSocket viewer channel (initial sync, pushes, viewer requests, origin check)
"""
import pytest
from starlette.websockets import WebSocketDisconnect

from tests.conftest import SAMPLE_STATS


def test_first_message_is_current_snapshot(client):
    with client.websocket_connect("/ws") as ws:
        first = ws.receive_json()

    assert first["type"] == "statsUpdate"
    assert first["data"]["totalAttacks"] == 0


def test_late_joiner_receives_latest_snapshot(client):
    for attacks in (1, 2, 3):
        client.post("/api/stats", json={**SAMPLE_STATS, "totalAttacks": attacks})

    with client.websocket_connect("/ws") as ws:
        first = ws.receive_json()

    assert first["type"] == "statsUpdate"
    assert first["data"]["totalAttacks"] == 3


def test_posted_stats_are_pushed_to_all_viewers(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        a.receive_json()
        b.receive_json()

        response = client.post("/api/stats", json=SAMPLE_STATS)
        assert response.status_code == 200

        for ws in (a, b):
            pushed = ws.receive_json()
            assert pushed["type"] == "statsUpdate"
            assert pushed["data"]["hitRate"] == 70.0
            assert pushed["data"]["totalAttacks"] == 10
            assert "timestamp" in pushed["data"]


def test_game_event_is_pushed(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        client.post("/api/events", json={"eventType": "kick", "data": "roundhouse"})
        pushed = ws.receive_json()

    assert pushed["type"] == "gameEvent"
    assert pushed["data"]["eventType"] == "kick"
    assert pushed["data"]["data"] == "roundhouse"


def test_request_stats_repushes_current(client):
    client.post("/api/stats", json=SAMPLE_STATS)

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "requestStats"})
        again = ws.receive_json()

    assert again["type"] == "statsUpdate"
    assert again["data"]["totalAttacks"] == 10


def test_reset_from_viewer_broadcasts_and_clears_history(client):
    client.post("/api/stats", json=SAMPLE_STATS)

    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        a.receive_json()
        b.receive_json()

        a.send_text("resetStats")
        for ws in (a, b):
            pushed = ws.receive_json()
            assert pushed["type"] == "statsReset"
            assert pushed["data"]["totalAttacks"] == 0

    assert client.get("/api/stats").json()["totalAttacks"] == 0
    assert client.get("/api/stats/history").json() == []


def test_http_reset_is_pushed_to_viewers(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        client.post("/api/stats/reset")
        pushed = ws.receive_json()

    assert pushed["type"] == "statsReset"


def test_unknown_request_gets_error_and_session_stays_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        ws.send_json({"type": "launchMissiles"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert "launchMissiles" in error["data"]["message"]

        ws.send_json({"type": "requestStats"})
        assert ws.receive_json()["type"] == "statsUpdate"


def test_disconnect_unsubscribes_viewer(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        assert client.get("/status").json()["viewers"] == 1

    assert client.post("/api/stats", json=SAMPLE_STATS).status_code == 200
    assert client.get("/status").json()["viewers"] == 0


def test_disallowed_origin_is_rejected(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws", headers={"origin": "http://evil.example"}) as ws:
            ws.receive_json()


def test_allowed_origin_is_accepted(client):
    with client.websocket_connect("/ws", headers={"origin": "http://localhost:3000"}) as ws:
        assert ws.receive_json()["type"] == "statsUpdate"
