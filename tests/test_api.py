"""Tests for the HTTP API."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

import api.main as main
from gobblers import AITurnTicket, GameMode, Player


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    main.session.init_game(GameMode.LOCAL)
    monkeypatch.setattr(main.settings, "thinking_delay_ms", 0)
    monkeypatch.setattr(main.settings, "ai_player", Player.BLUE)
    return TestClient(main.app)


def place(client: TestClient, piece_id: str, row: int, col: int) -> dict[str, Any]:
    response = client.post("/select", json={"pieceId": piece_id})
    assert response.status_code == 200, response.json()
    response = client.post("/place", json={"row": row, "col": col})
    assert response.status_code == 200, response.json()
    return response.json()


class TestGameEndpoints:
    """Playing through the API."""

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok"}

    def test_initial_state(self, client: TestClient) -> None:
        state = client.get("/game").json()
        assert state["currentTurn"] == "Red"
        assert state["status"] == "in-progress"
        assert state["mode"] == "local"
        assert len(state["reserves"]["Red"]) == 6
        assert state["reserves"]["Red"][0] == {"id": "Red-S-1", "player": "Red", "size": "S", "isReserved": True}
        assert state["canUndo"] is False

    def test_place(self, client: TestClient) -> None:
        state = place(client, "Red-S-1", 1, 1)
        assert state["board"][1][1][0]["id"] == "Red-S-1"
        assert state["board"][1][1][0]["isReserved"] is False
        assert state["currentTurn"] == "Blue"
        assert state["moveHistory"][0]["moveType"] == "place"
        assert state["moveHistory"][0]["to"] == {"row": 1, "col": 1}

    def test_move(self, client: TestClient) -> None:
        place(client, "Red-L-5", 0, 0)
        place(client, "Blue-S-1", 2, 2)
        client.post("/select", json={"pieceId": "Red-L-5"})
        response = client.post("/move", json={"fromRow": 0, "fromCol": 0, "toRow": 2, "toCol": 2})

        assert response.status_code == 200
        state = response.json()
        assert [p["id"] for p in state["board"][2][2]] == ["Blue-S-1", "Red-L-5"]
        assert state["board"][0][0] == []

    def test_legal_moves(self, client: TestClient) -> None:
        moves = client.get("/moves").json()
        assert len(moves) == 54
        assert moves[0]["notation"] == "S(0,0)"
        assert moves[0]["fromPos"] is None

    def test_new_game(self, client: TestClient) -> None:
        place(client, "Red-S-1", 1, 1)
        state = client.post("/new", json={"mode": "ai"}).json()
        assert state["mode"] == "ai"
        assert state["moveHistory"] == []

    def test_mode_and_analysis(self, client: TestClient) -> None:
        place(client, "Red-S-1", 1, 1)
        state = client.post("/mode", json={"mode": "ai"}).json()
        assert state["mode"] == "ai"
        assert state["moveHistory"] != []

        assert client.post("/analysis").json()["analysisMode"] is True
        assert client.post("/analysis").json()["analysisMode"] is False

    def test_camel_case_keys(self, client: TestClient) -> None:
        state = client.get("/game").json()
        expected = {"currentTurn", "analysisMode", "selectedPieceId", "moveHistory", "lastExplanation", "canUndo", "canRedo"}
        assert expected <= set(state)
        assert not [key for key in state if "_" in key]
        move = client.get("/moves").json()[0]
        assert set(move) == {"pieceId", "size", "toPos", "fromPos", "notation"}

    def test_snake_case_requests_still_accepted(self, client: TestClient) -> None:
        response = client.post("/select", json={"piece_id": "Red-S-1"})
        assert response.status_code == 200
        assert response.json()["selectedPieceId"] == "Red-S-1"


class TestRejections:
    """Illegal actions come back as 400s."""

    def test_no_selection(self, client: TestClient) -> None:
        response = client.post("/place", json={"row": 0, "col": 0})
        assert response.status_code == 400
        assert response.json()["detail"] == "noSelection"

    def test_not_your_piece(self, client: TestClient) -> None:
        response = client.post("/select", json={"pieceId": "Blue-S-1"})
        assert response.status_code == 400
        assert response.json()["detail"] == "notYourPiece"

    def test_too_small(self, client: TestClient) -> None:
        place(client, "Red-M-3", 0, 0)
        client.post("/select", json={"pieceId": "Blue-S-1"})
        response = client.post("/place", json={"row": 0, "col": 0})
        assert response.status_code == 400
        assert response.json()["detail"] == "pieceTooSmall"
        assert client.get("/game").json()["currentTurn"] == "Blue"


class TestHistory:
    """Undo, redo, save and load."""

    def test_undo_redo(self, client: TestClient) -> None:
        assert client.post("/undo").status_code == 400

        place(client, "Red-S-1", 1, 1)
        state = client.post("/undo").json()
        assert state["board"][1][1] == []
        assert state["canRedo"] is True

        state = client.post("/redo").json()
        assert state["board"][1][1][0]["id"] == "Red-S-1"
        assert client.post("/redo").status_code == 400

    def test_save_and_load(self, client: TestClient) -> None:
        place(client, "Red-S-1", 1, 1)
        saved = client.get("/save").json()
        assert saved["currentTurn"] == "Blue"

        client.post("/new", json={"mode": "local"})
        state = client.post("/load", json=saved).json()
        assert state["board"][1][1][0]["id"] == "Red-S-1"
        assert state["canUndo"] is False

    def test_invalid_load(self, client: TestClient) -> None:
        place(client, "Red-S-1", 1, 1)
        before = client.get("/game").json()

        response = client.post("/load", json={"board": []})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid saved game")
        assert client.get("/game").json() == before


class TestAIEndpoints:
    """AI turns, hints and analysis."""

    def test_ai_move(self, client: TestClient) -> None:
        client.post("/new", json={"mode": "ai"})
        place(client, "Red-S-1", 1, 1)

        response = client.post("/ai/move")
        assert response.status_code == 200
        state = response.json()
        assert state["currentTurn"] == "Red"
        assert state["moveHistory"][-1]["player"] == "Blue"
        assert state["moveHistory"][-1]["reasonTag"] == "cornerControl"
        assert state["lastExplanation"] == "aiReasons.cornerControl"

    def test_not_ai_turn(self, client: TestClient) -> None:
        client.post("/new", json={"mode": "ai"})
        response = client.post("/ai/move")
        assert response.status_code == 400

    def test_stale_ticket(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        client.post("/new", json={"mode": "ai"})
        place(client, "Red-S-1", 1, 1)
        stale = AITurnTicket(side=Player.BLUE, version=main.session.version - 1)
        monkeypatch.setattr(main.session, "request_ai_turn", lambda side: stale)

        response = client.post("/ai/move")
        assert response.status_code == 409
        assert response.json()["detail"] == "staleAiTurn"
        assert len(client.get("/game").json()["moveHistory"]) == 1

    def test_hint(self, client: TestClient) -> None:
        hint = client.get("/ai/hint").json()
        assert hint["move"]["toPos"] == [1, 1]
        assert hint["move"]["size"] == "S"
        assert hint["explanation"] == "aiReasons.openingMove"
        assert client.get("/game").json()["moveHistory"] == []

    def test_position_analysis(self, client: TestClient) -> None:
        place(client, "Red-L-5", 1, 1)
        analysis = client.get("/analysis/position").json()
        assert analysis["side"] == "Blue"
        assert analysis["centerOwner"] == "Red"
        assert analysis["forkCells"] == {"Red": 0, "Blue": 0}
        assert "Red controls the center." in analysis["summary"]
        # The AI plays Blue, so Red holding the center is the player's edge
        assert analysis["advantage"] == "playerStrongAdvantage"
