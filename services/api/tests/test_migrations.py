"""The initial migration and the ORM agree on the embedding width."""

import importlib.util
from pathlib import Path

from cookbook.models import Ingredient, Recipe
from cookbook.settings import settings

MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "001_initial_schema.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_migration_embedding_width_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "embedding_dimensions", 1536)
    assert _load_migration().EMBEDDING_DIMENSIONS == 1536


def test_migration_matches_orm_columns():
    width = _load_migration().EMBEDDING_DIMENSIONS
    for model in (Ingredient, Recipe):
        assert model.__table__.c.embedding.type.impl.dim == width
