import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from studly.main import create_app


@pytest.fixture()
def failing_client():
    app = create_app()

    @app.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/storage")
    def storage():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    return TestClient(app, raise_server_exceptions=False)


def test_unexpected_error_is_hidden(failing_client, caplog):
    response = failing_client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert "hunter2" not in response.text
    assert "Unhandled error on GET /boom" in caplog.text


def test_storage_error_is_hidden(failing_client):
    response = failing_client.get("/storage")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert "disk" not in response.text


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_api_root(client):
    response = client.get("/api")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_json_responses_declare_utf8(client):
    response = client.get("/api")
    assert response.headers["content-type"] == "application/json; charset=utf-8"
