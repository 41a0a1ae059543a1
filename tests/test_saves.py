from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from backend.config import Settings
from backend.main import create_app
from backend.models.game import GameSave


SAVE = {
    "version": 3,
    "player": {"name": "Alice", "level": 12, "position": [10.5, -3.25]},
    "party": [{"id": "m-1", "hp": 42}, {"id": "m-2", "hp": 0}],
    "flags": {"tutorialDone": True, "lastTown": None},
    "note": "héllo ✨",
}


def test_save_round_trip(client, register):
    register("alice01", "secret1")

    stored = client.post("/api/saves/alice01/1", json=SAVE)
    loaded = client.get("/api/saves/alice01/1")

    assert stored.status_code == 200
    assert stored.json()["success"] is True
    assert loaded.status_code == 200
    body = loaded.json()
    assert body["success"] is True
    assert body["data"] == SAVE
    assert body["updatedAt"]


def test_save_overwrites_same_slot(client, app, register):
    register("alice01", "secret1")

    client.post("/api/saves/alice01/2", json=SAVE)
    client.post("/api/saves/alice01/2", json={"version": 4})

    assert client.get("/api/saves/alice01/2").json()["data"] == {"version": 4}
    session = app.state.session_factory()
    try:
        assert session.query(GameSave).filter_by(slot=2).count() == 1
    finally:
        session.close()


def test_slots_are_independent(client, register):
    register("alice01", "secret1")
    register("bob_tamer", "secret2")

    client.post("/api/saves/alice01/1", json={"owner": "alice", "slot": 1})
    client.post("/api/saves/alice01/2", json={"owner": "alice", "slot": 2})
    client.post("/api/saves/bob_tamer/1", json={"owner": "bob", "slot": 1})

    assert client.get("/api/saves/alice01/1").json()["data"] == {"owner": "alice", "slot": 1}
    assert client.get("/api/saves/alice01/2").json()["data"] == {"owner": "alice", "slot": 2}
    assert client.get("/api/saves/bob_tamer/1").json()["data"] == {"owner": "bob", "slot": 1}


def test_save_document_may_be_any_json(client, register):
    register("alice01", "secret1")

    client.post("/api/saves/alice01/0", json=[1, "two", {"three": 3}])

    assert client.get("/api/saves/alice01/0").json()["data"] == [1, "two", {"three": 3}]


def test_save_for_unknown_user_creates_nothing(client, app):
    response = client.post("/api/saves/ghost/1", json=SAVE)

    assert response.status_code == 404
    session = app.state.session_factory()
    try:
        assert session.query(GameSave).count() == 0
    finally:
        session.close()


def test_load_missing_user_or_slot_returns_404(client, register):
    register("alice01", "secret1")

    assert client.get("/api/saves/ghost/1").status_code == 404
    assert client.get("/api/saves/alice01/9").status_code == 404


def test_non_numeric_slot_is_rejected(client, register):
    register("alice01", "secret1")

    response = client.get("/api/saves/alice01/first")

    assert response.status_code == 400
    assert response.json()["error"]


def test_database_failure_surfaces_message_and_code(database_url):
    settings = Settings(database_url=database_url, environment="development")
    failure = OperationalError("SELECT id FROM User", {}, Exception("connection lost"))

    with TestClient(create_app(settings)) as client:
        with patch("backend.api.saves.get_user_id", side_effect=failure):
            response = client.post("/api/saves/alice01/1", json=SAVE)

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "connection lost"
    assert body["code"] == "Exception"
    assert body["details"] == "SELECT id FROM User"


def test_sql_details_hidden_in_production(database_url):
    failure = OperationalError("SELECT id FROM User", {}, Exception("connection lost"))

    with TestClient(create_app(Settings(database_url=database_url))) as client:
        with patch("backend.api.saves.get_user_id", side_effect=failure):
            response = client.get("/api/saves/alice01/1")

    assert response.status_code == 500
    assert "details" not in response.json()


def test_empty_body_is_stored_as_empty_object(client, register):
    register("alice01", "secret1")

    stored = client.post("/api/saves/alice01/3")

    assert stored.status_code == 200
    assert client.get("/api/saves/alice01/3").json()["data"] == {}
