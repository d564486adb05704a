"""Keyword search over recipe name + description.

Scoring is pure Python so it can be unit tested without a database. The SQL
side only narrows candidates to rows that contain at least one term.
"""

from typing import Iterable, Optional, Sequence

from sqlalchemy import Select, String, func, or_, select

from ..models import Recipe


def query_terms(query: str) -> list[str]:
    return query.lower().split()


def searchable_text(recipe) -> str:
    return f"{recipe.name} {recipe.description or ''}".lower()


def keyword_score(text: str, terms: Sequence[str]) -> int:
    """Sum of non-overlapping occurrences of every term in ``text``."""
    return sum(text.count(term) for term in terms)


def _any_contains(values: Iterable[str], needles: Sequence[str]) -> bool:
    lowered = [v.lower() for v in values or []]
    return any(n.lower() in v for n in needles for v in lowered)


def passes_filters(
    recipe,
    ingredients: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
    categories: Optional[Sequence[str]] = None,
) -> bool:
    """Filters are AND'ed together; values inside one filter are OR'ed.

    Ingredient ids match exactly, tags and categories by case-insensitive
    substring.
    """
    if ingredients:
        line_ids = {line.get("ingredient_id") for line in recipe.ingredients or []}
        if not line_ids.intersection(ingredients):
            return False
    if tags and not _any_contains(recipe.tags, tags):
        return False
    if categories and not _any_contains(recipe.categories, categories):
        return False
    return True


def rank_recipes(
    candidates: Sequence,
    query: str,
    *,
    ingredients: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
    categories: Optional[Sequence[str]] = None,
    limit: int = 20,
) -> list:
    """Score, filter and order ``candidates``; ties keep their incoming order."""
    terms = query_terms(query)
    if not terms:
        return []

    scored = []
    for recipe in candidates:
        score = keyword_score(searchable_text(recipe), terms)
        if score == 0:
            continue
        if not passes_filters(recipe, ingredients, tags, categories):
            continue
        scored.append((score, recipe))

    # sorted() is stable
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [recipe for _, recipe in scored[:limit]]


def candidate_statement(query: str) -> Select:
    """Non-archived recipes containing any query term, newest first."""
    haystack = func.lower(Recipe.name + " " + func.coalesce(Recipe.description, ""), type_=String)
    terms = query_terms(query)
    stmt = select(Recipe).where(Recipe.is_archived.is_(False))
    if terms:
        stmt = stmt.where(or_(*(haystack.contains(t, autoescape=True) for t in terms)))
    return stmt.order_by(Recipe.updated_at.desc(), Recipe.id)
