import pytest
from fastapi.testclient import TestClient
from backend.config import Settings
from backend.main import create_app


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'genmon.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(database_url=database_url)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    def _register(username="alice01", password="secret1"):
        response = client.post("/api/auth/register", json={"username": username, "password": password})
        assert response.status_code == 201, response.text
        return response.json()
    return _register
