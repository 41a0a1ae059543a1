import logging

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from backend.config import Settings
from backend.core.bootstrap import ensure_admin_user
from backend.main import create_app
from backend.models.user import User


def _admin_settings(database_url, username="gm_admin", password="admin-pass"):
    return Settings(database_url=database_url, admin_username=username, admin_password=password)


def _login(client, username, password):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def _reset(client, **overrides):
    payload = {
        "username": "alice01",
        "newPassword": "brand-new",
        "adminUsername": "gm_admin",
        "adminPassword": "admin-pass",
    }
    payload.update(overrides)
    return client.post("/api/auth/admin/reset-password", json=payload)


def test_bootstrap_creates_admin_on_startup(database_url):
    with TestClient(create_app(_admin_settings(database_url))) as client:
        response = _login(client, "gm_admin", "admin-pass")

    assert response.status_code == 200
    assert response.json()["isAdmin"] is True


def test_bootstrap_promotes_existing_user(database_url):
    with TestClient(create_app(Settings(database_url=database_url))) as client:
        client.post("/api/auth/register", json={"username": "gm_admin", "password": "original"})
        assert _login(client, "gm_admin", "original").json()["isAdmin"] is False

    with TestClient(create_app(_admin_settings(database_url))) as client:
        response = _login(client, "gm_admin", "original")

    assert response.json()["isAdmin"] is True


def test_bootstrap_is_idempotent(database_url):
    for _ in range(2):
        with TestClient(create_app(_admin_settings(database_url))) as client:
            pass

    session = client.app.state.session_factory()
    try:
        assert session.query(User).filter(User.username == "gm_admin").count() == 1
    finally:
        session.close()


def test_bootstrap_skips_without_credentials(app):
    with TestClient(app):
        pass

    session = app.state.session_factory()
    try:
        assert session.query(User).count() == 0
    finally:
        session.close()


def test_bootstrap_logs_and_swallows_errors(caplog):
    class BrokenSession:
        def get_bind(self):
            raise OperationalError("SELECT 1", {}, Exception("database is gone"))

        def rollback(self):
            pass

        def close(self):
            pass

    with caplog.at_level(logging.ERROR):
        ensure_admin_user(BrokenSession, "gm_admin", "admin-pass")

    assert "ensure_admin_user error" in caplog.text


def test_admin_can_reset_password(database_url):
    with TestClient(create_app(_admin_settings(database_url))) as client:
        client.post("/api/auth/register", json={"username": "alice01", "password": "secret1"})

        response = _reset(client)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert _login(client, "alice01", "secret1").status_code == 401
        assert _login(client, "alice01", "brand-new").status_code == 200


def test_reset_rejects_bad_admin_credentials_with_same_message(database_url):
    with TestClient(create_app(_admin_settings(database_url))) as client:
        client.post("/api/auth/register", json={"username": "alice01", "password": "secret1"})
        client.post("/api/auth/register", json={"username": "mallory", "password": "mallory1"})

        wrong_password = _reset(client, adminPassword="not-it")
        unknown_admin = _reset(client, adminUsername="ghost")
        not_admin = _reset(client, adminUsername="mallory", adminPassword="mallory1")

        for response in (wrong_password, unknown_admin, not_admin):
            assert response.status_code == 403
        assert wrong_password.json() == unknown_admin.json() == not_admin.json()
        assert _login(client, "alice01", "secret1").status_code == 200


def test_reset_unknown_target_returns_404(database_url):
    with TestClient(create_app(_admin_settings(database_url))) as client:
        response = _reset(client, username="nobody")

    assert response.status_code == 404


def test_reset_validation(database_url):
    with TestClient(create_app(_admin_settings(database_url))) as client:
        missing = _reset(client, adminPassword="")
        short = _reset(client, newPassword="12345")

    assert missing.status_code == 400
    assert short.status_code == 400
