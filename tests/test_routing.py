from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, DELETE, OPTIONS",
    "access-control-allow-headers": "Content-Type",
}


def _assert_cors(response) -> None:
    for name, value in CORS.items():
        assert response.headers.get(name) == value, name


@pytest.mark.parametrize(
    "path",
    ["/api/usuarios", "/api/usuarios/5", "/api/does-not-exist", "/", "/index.html", "/nope/at/all"],
)
def test_preflight_answers_any_path(client: TestClient, path: str) -> None:
    response = client.options(path)

    assert response.status_code == 200
    assert response.content == b""
    _assert_cors(response)


def test_preflight_never_touches_storage(client: TestClient, database, monkeypatch) -> None:
    def explode(*_args, **_kwargs):
        raise AssertionError("storage should not be called")

    monkeypatch.setattr(database, "list_active_users", explode)

    assert client.options("/api/usuarios").status_code == 200


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/api/unknown"),
        ("GET", "/api/usuarios/1"),
        ("PUT", "/api/usuarios"),
        ("PATCH", "/api/usuarios/1"),
        ("POST", "/api/usuarios/1"),
        ("DELETE", "/api/usuarios"),
        ("DELETE", "/api/usuarios/1/extra"),
        ("GET", "/api/usuarios/"),
    ],
)
def test_unmatched_api_routes_are_json_not_found(client: TestClient, method: str, path: str) -> None:
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.json() == {"error": "route not found"}
    _assert_cors(response)


def test_api_and_static_responses_carry_cors_headers(client: TestClient) -> None:
    _assert_cors(client.get("/api/usuarios"))
    _assert_cors(client.post("/api/usuarios", json={}))
    _assert_cors(client.get("/"))
    _assert_cors(client.get("/missing.png"))


def test_non_api_paths_fall_back_to_static(client: TestClient) -> None:
    response = client.get("/app.js")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/javascript")
