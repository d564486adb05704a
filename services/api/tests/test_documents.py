"""Shared document helpers: active lookups, paging and slug-race retries."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from cookbook.core.audit import stamp_create
from cookbook.core import slugs
from cookbook.errors import NotFound
from cookbook.models import Recipe
from cookbook.services import documents
from cookbook.services.documents import (
    active_newest_first, get_active, insert_with_unique_slug, paginate, to_store,
)
from cookbook.schemas import RecipeIngredientLine


def _builder(name="Soup"):
    def build(slug):
        recipe = Recipe(slug=slug, name=name, description="", servings=1)
        return stamp_create(recipe, "group-a")
    return build


def test_get_active_hides_archived(db_session):
    recipe = insert_with_unique_slug(db_session, Recipe, "Soup", _builder())
    assert get_active(db_session, Recipe, recipe.id, "recipe") is recipe

    recipe.is_archived = True
    db_session.commit()
    with pytest.raises(NotFound):
        get_active(db_session, Recipe, recipe.id, "recipe")


def test_insert_retries_after_slug_race(db_session, monkeypatch):
    insert_with_unique_slug(db_session, Recipe, "Soup", _builder())

    # First read is stale, as if another request committed "soup" after we looked
    calls = []

    def stale_then_real(db, model, name, check_ids=False):
        calls.append(name)
        if len(calls) == 1:
            return "soup"
        return slugs.unique_slug(db, model, name, check_ids=check_ids)

    monkeypatch.setattr(documents, "unique_slug", stale_then_real)

    recipe = insert_with_unique_slug(db_session, Recipe, "Soup", _builder())

    assert recipe.slug == "soup-2"
    assert len(calls) == 2
    active = db_session.execute(select(Recipe.slug).where(Recipe.is_archived.is_(False))).scalars()
    assert sorted(active) == ["soup", "soup-2"]


def test_insert_gives_up_after_attempts(db_session, monkeypatch):
    insert_with_unique_slug(db_session, Recipe, "Soup", _builder())
    monkeypatch.setattr(documents, "unique_slug", lambda *a, **kw: "soup")

    with pytest.raises(IntegrityError):
        insert_with_unique_slug(db_session, Recipe, "Soup", _builder(), attempts=2)


def test_paginate_has_more_heuristic(db_session):
    for i in range(3):
        insert_with_unique_slug(db_session, Recipe, f"Soup {i}", _builder(f"Soup {i}"))

    items, has_more = paginate(db_session, active_newest_first(Recipe), limit=3, offset=0)
    assert len(items) == 3
    # Full page reports more even when nothing is left
    assert has_more is True


def test_to_store_drops_nones_and_uses_field_names():
    line = RecipeIngredientLine(ingredient_id="salt", unit="pinch")
    assert to_store([line]) == [{"ingredient_id": "salt", "unit": "pinch"}]
    assert to_store(None) is None
    assert to_store(["a"]) == ["a"]
