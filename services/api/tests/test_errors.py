"""Error envelope: every failure answers ``{"error": "..."}``."""

import pytest
from fastapi.testclient import TestClient

from cookbook.deps import get_vector_index
from cookbook.main import app


@pytest.mark.parametrize("endpoint", [
    "ingredientsCreate", "recipesGet", "recipesSearch", "suggestionsVote", "wipe",
])
def test_missing_group_header(client, endpoint):
    resp = client.post(f"/api/{endpoint}", json={"id": "x", "query": "q", "confirm": True})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required header: x-group-id"}


def test_blank_group_header(client):
    resp = client.post("/api/recipesList", json={}, headers={"x-group-id": "  "})
    assert resp.json() == {"error": "Missing required header: x-group-id"}


def test_missing_header_reported_before_body_errors(client):
    resp = client.post("/api/recipesCreate", json={})
    assert resp.json()["error"] == "Missing required header: x-group-id"


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_wrong_method(client, method):
    resp = getattr(client, method)("/api/recipesGet")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed: Only POST requests are accepted"}


def test_unknown_path(client):
    resp = client.post("/api/nope", json={}, headers={"x-group-id": "g"})
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_validation_error_envelope(as_group):
    resp = as_group("group-a", "recipesGet", {})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error.startswith("Validation failed:")
    assert "id" in error


def test_unexpected_error_is_500(client):
    class Exploding:
        def nearest(self, db, vector, top_k):
            raise RuntimeError("index offline")

    app.dependency_overrides[get_vector_index] = lambda: Exploding()
    with TestClient(app, raise_server_exceptions=False) as quiet:
        resp = quiet.post(
            "/api/recipesSemanticSearch", json={"query": "soup"}, headers={"x-group-id": "g"}
        )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
