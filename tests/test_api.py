"""Integration tests for the automation and card endpoints."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from board_automation.config import Settings
from board_automation.domain.entities import Column
from board_automation.infrastructure.database import build_engine, build_session_factory
from board_automation.infrastructure.repositories import ColumnRepository


@pytest.fixture()
def app_parts(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'api.db'}")
    session_factory = build_session_factory(engine)
    settings = Settings(
        database_url=str(engine.url),
        automation_scheduler_enabled=False,
        automation_dispatch_workers=1,
    )
    return settings, session_factory


@pytest.fixture()
def client(app_parts):
    from main import create_app

    settings, session_factory = app_parts
    app = create_app(settings=settings, session_factory=session_factory)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def board(app_parts, client):
    _, session_factory = app_parts
    with session_factory() as session, session.begin():
        columns = ColumnRepository(session)
        todo = columns.create(Column(id="", board_id="board-1", title="Todo"))
        done = columns.create(Column(id="", board_id="board-1", title="Done"))
    return todo, done


def test_automation_rule_crud(client):
    payload = {
        "name": "Archive stale",
        "trigger_type": "TIME_BASED",
        "cron_expression": "0 * * * *",
        "condition": {"timeField": "updatedAt", "days": 7},
        "actions": [{"type": "ARCHIVE_CARD"}],
    }

    response = client.post("/boards/board-1/automations", json=payload)
    assert response.status_code == 201
    created = response.json()
    rule_id = created["id"]
    assert created["trigger_type"] == "TIME_BASED"
    assert created["condition"] == {"days": 7, "timeField": "updatedAt"}
    assert created["actions"] == [{"type": "ARCHIVE_CARD", "value": None}]

    listed = client.get("/boards/board-1/automations").json()
    assert [rule["id"] for rule in listed] == [rule_id]
    assert client.get("/boards/board-2/automations").json() == []

    response = client.patch(f"/automations/{rule_id}", json={"is_active": False, "name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert response.json()["name"] == "Renamed"

    assert client.get(f"/automations/{rule_id}").status_code == 200
    assert client.delete(f"/automations/{rule_id}").status_code == 204
    assert client.get(f"/automations/{rule_id}").status_code == 404
    assert client.delete(f"/automations/{rule_id}").status_code == 404


def test_invalid_rules_are_rejected(client):
    response = client.post(
        "/boards/board-1/automations",
        json={"name": "no cron", "trigger_type": "TIME_BASED", "actions": []},
    )
    assert response.status_code == 400

    response = client.post(
        "/boards/board-1/automations",
        json={"name": "bad", "trigger_type": "CARD_MOVE", "unexpected": True},
    )
    assert response.status_code == 422

    response = client.patch("/automations/missing", json={"name": "x"})
    assert response.status_code == 404


def test_card_lifecycle(client, board):
    todo, done = board

    first = client.post("/boards/board-1/cards", json={"column_id": todo.id, "title": "First"})
    second = client.post("/boards/board-1/cards", json={"column_id": todo.id, "title": "Second"})
    assert first.status_code == 201
    assert second.json()["order"] == 1

    card_id = first.json()["id"]
    moved = client.post(f"/boards/board-1/cards/{card_id}/move", json={"column_id": done.id})
    assert moved.status_code == 200
    assert moved.json()["column_id"] == done.id
    assert moved.json()["order"] == 0
    assert moved.json()["column_entered_at"] is not None

    archived = client.post(f"/boards/board-1/cards/{second.json()['id']}/archive")
    assert archived.status_code == 200
    assert archived.json()["archived_at"] is not None


def test_card_errors_map_to_http_status(client, board):
    todo, _ = board

    assert client.post("/boards/board-2/cards", json={"column_id": todo.id, "title": "x"}).status_code == 404
    assert client.post("/boards/board-1/cards", json={"column_id": todo.id, "title": " "}).status_code == 400
    assert (
        client.post("/boards/board-1/cards/missing/move", json={"column_id": todo.id}).status_code
        == 404
    )
    assert client.post("/boards/board-1/cards/missing/archive").status_code == 404


def test_scheduler_status(client):
    response = client.get("/automations/scheduler")

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "STOPPED"
    assert body["running"] is False
    assert body["last_scan"] is None
