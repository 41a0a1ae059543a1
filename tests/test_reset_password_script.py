from fastapi.testclient import TestClient

from backend.config import Settings
from backend.main import create_app
from backend.scripts.reset_password import main


def test_script_resets_existing_user(database_url, capsys):
    settings = Settings(database_url=database_url)
    with TestClient(create_app(settings)) as client:
        client.post("/api/auth/register", json={"username": "alice01", "password": "secret1"})

    assert main(["alice01", "brand-new"], settings=settings) == 0
    assert "Password has been reset" in capsys.readouterr().out

    with TestClient(create_app(settings)) as client:
        response = client.post("/api/auth/login", json={"username": "alice01", "password": "brand-new"})
    assert response.status_code == 200


def test_script_unknown_user(database_url, capsys):
    settings = Settings(database_url=database_url)
    with TestClient(create_app(settings)):
        pass

    assert main(["ghost", "brand-new"], settings=settings) == 1
    assert "does not exist" in capsys.readouterr().err


def test_script_rejects_short_password(database_url):
    assert main(["alice01", "123"], settings=Settings(database_url=database_url)) == 1


def test_script_requires_database_url():
    assert main(["alice01", "brand-new"], settings=Settings(database_url=None)) == 1
