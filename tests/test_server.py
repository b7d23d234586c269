"""
Tests for the HTTP API
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from triviaboard import server
from triviaboard.models import CategoryRef, RawRecord
from triviaboard.orchestrator import BoardOrchestrator
from triviaboard.server import app
from triviaboard.session import GameSession
from triviaboard.trivia_source import MockTriviaSource


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["source"] == "mock"
    assert response.json()["source_available"] is True


def test_health_reports_unreachable_source(client, monkeypatch):
    monkeypatch.setattr(server.source, "health_check", AsyncMock(return_value=False))
    
    body = client.get("/health").json()
    
    assert body["status"] == "degraded"
    assert body["source_available"] is False


def test_board_before_game_is_idle(client):
    response = client.get("/board")
    
    assert response.status_code == 200
    assert response.json()["status"] == "idle"
    assert response.json()["board"] is None


def test_reveal_before_game_conflicts(client):
    assert client.post("/board/0/0/reveal").status_code == 409


def test_start_game_returns_hidden_board(client):
    """Test that a new game is a full grid of hidden cells"""
    response = client.post("/game")
    
    assert response.status_code == 200
    state = response.json()
    assert state["status"] == "ready"
    assert state["generation"] == 1
    categories = state["board"]["categories"]
    assert len(categories) == 6
    for category in categories:
        assert len(category["clues"]) == 5
        assert all(cell == {"state": "hidden", "text": "?"} for cell in category["clues"])


def test_reveal_flow(client):
    """Test question, answer, then a no-op click"""
    client.post("/game")
    
    first = client.post("/board/3/1/reveal").json()
    second = client.post("/board/3/1/reveal").json()
    third = client.post("/board/3/1/reveal").json()
    
    assert first["state"] == "question" and first["changed"] is True
    assert second["state"] == "answer" and second["changed"] is True
    assert third == second | {"changed": False}
    
    cell = client.get("/board").json()["board"]["categories"][3]["clues"][1]
    assert cell == {"state": "answer", "text": second["text"]}


def test_reveal_out_of_range(client):
    client.post("/game")
    
    assert client.post("/board/6/0/reveal").status_code == 404
    assert client.post("/board/0/5/reveal").status_code == 404


def test_metrics(client):
    client.post("/game")
    client.post("/board/0/0/reveal")
    
    metrics = client.get("/metrics").json()
    
    assert metrics["counters"]["assemblies_ready"] == 1
    assert metrics["counters"]["reveals_question"] == 1
    assert metrics["orchestrator"]["boards_built"] == 1


def test_root(client):
    assert client.get("/").json()["health"] == "/health"


@pytest.fixture
def short_catalog_session(client, monkeypatch):
    """Swap in a session whose catalog always leaves one category short"""
    catalog = {
        CategoryRef(i, f"Cat{i}"): [RawRecord(f"Cat{i} q{j}", "a") for j in range(12)]
        for i in range(5)
    }
    catalog[CategoryRef(99, "Thin")] = [RawRecord("same question", "a")] * 10
    orchestrator = BoardOrchestrator(MockTriviaSource(catalog), num_categories=6,
                                     clues_per_category=5, max_attempts=2, sleep=AsyncMock())
    game = GameSession(orchestrator, monitor=server.monitor)
    monkeypatch.setattr(server, "orchestrator", orchestrator)
    monkeypatch.setattr(server, "session", game)
    return game


def test_unavailable_board_is_503(client, short_catalog_session):
    """Test that an exhausted attempt budget surfaces as 503, never a short board"""
    response = client.post("/game")
    
    assert response.status_code == 503
    assert "after 2 attempts" in response.json()["detail"]
    
    state = client.get("/board").json()
    assert state["status"] == "unavailable"
    assert state["board"] is None
    assert "after 2 attempts" in state["message"]
    assert client.post("/board/0/0/reveal").status_code == 409


def test_superseded_game_is_409(client, monkeypatch):
    monkeypatch.setattr(server.session, "start_game", AsyncMock(return_value=None))
    
    response = client.post("/game")
    
    assert response.status_code == 409
    assert response.json()["detail"] == "Superseded by a newer game"
