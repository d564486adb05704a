"""Semantic search: pgvector statement shape and the endpoint with an in-memory index."""

import math

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from cookbook.ai.embeddings import get_embedder, recipe_embedding_text
from cookbook.deps import get_vector_index
from cookbook.main import app
from cookbook.models import Recipe
from cookbook.search.vector import PgVectorIndex
from cookbook.settings import settings


class InMemoryIndex:
    """Brute-force cosine similarity over the rows in the test database."""

    def __init__(self):
        self.calls = []

    def nearest(self, db, vector, top_k):
        self.calls.append(top_k)
        rows = db.execute(
            select(Recipe).where(Recipe.is_archived.is_(False), Recipe.embedding.is_not(None))
        ).scalars().all()

        def similarity(row):
            dot = sum(a * b for a, b in zip(row.embedding, vector))
            norm = math.sqrt(sum(a * a for a in row.embedding)) * math.sqrt(sum(b * b for b in vector))
            return dot / norm

        return sorted(rows, key=similarity, reverse=True)[:top_k]


@pytest.fixture
def index():
    idx = InMemoryIndex()
    app.dependency_overrides[get_vector_index] = lambda: idx
    yield idx
    app.dependency_overrides.pop(get_vector_index, None)


def test_pgvector_statement_orders_by_cosine_distance():
    stmt = PgVectorIndex().statement([0.1, 0.2, 0.3], top_k=5)
    sql = str(stmt.compile(dialect=postgresql.dialect()))

    assert "<=>" in sql
    assert "recipes.is_archived IS" in sql
    assert "recipes.embedding IS NOT NULL" in sql
    assert "LIMIT" in sql


def test_semantic_search_returns_exact_match_first(client, index, make_recipe, as_group):
    make_recipe(name="Pancakes", description="Fluffy breakfast")
    soup = make_recipe(name="Tomato Soup", description="A warm tomato soup")
    make_recipe(name="Green Salad", description="Crisp leaves")

    # The mock embedder is deterministic, so the stored text is its own nearest neighbour
    query = recipe_embedding_text("Tomato Soup", "A warm tomato soup")
    resp = as_group("group-b", "recipesSemanticSearch", {"query": query, "topK": 2})

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["topK"] == 2
    assert data["query"] == query
    assert len(data["items"]) == 2
    assert data["items"][0]["id"] == soup["id"]
    assert "embedding" not in data["items"][0]
    assert index.calls == [2]


def test_semantic_search_skips_archived(client, index, make_recipe, as_group):
    soup = make_recipe(name="Tomato Soup")
    as_group("group-a", "recipesDelete", {"id": soup["id"]})

    resp = as_group("group-a", "recipesSemanticSearch", {"query": "tomato"})
    assert resp.json()["items"] == []


def test_semantic_search_validates_top_k(client, index, as_group):
    resp = as_group("group-a", "recipesSemanticSearch", {"query": "soup", "topK": 51})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Validation failed")


def test_embedding_failure_is_reported(client, index, as_group):
    class Broken:
        def embed(self, text):
            from cookbook.errors import UpstreamFailure
            raise UpstreamFailure("Embedding generation", "quota exceeded")

    app.dependency_overrides[get_embedder] = lambda: Broken()
    try:
        resp = as_group("group-a", "recipesSemanticSearch", {"query": "soup"})
    finally:
        app.dependency_overrides.pop(get_embedder, None)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Embedding generation failed: quota exceeded"}


def test_semantic_search_disabled_embeddings_skips_embedder(client, index, as_group, monkeypatch):
    class MustNotEmbed:
        def embed(self, text):
            raise AssertionError("embedder called with embeddings disabled")

    monkeypatch.setattr(settings, "embeddings_enabled", False)
    app.dependency_overrides[get_embedder] = lambda: MustNotEmbed()
    try:
        resp = as_group("group-a", "recipesSemanticSearch", {"query": "soup", "topK": 3})
    finally:
        app.dependency_overrides.pop(get_embedder, None)

    assert resp.status_code == 200
    assert resp.json() == {"items": [], "query": "soup", "topK": 3}
    assert index.calls == []
