"""SQLAlchemy ORM models for the Cookbook API.

Tables (one per document collection):
- ingredients: slug-addressed ingredient catalog
- recipes: recipes with nested ingredient lines and ordered steps (JSONB)
- suggestions: product feedback with per-group voting

Every row carries the same audit envelope (see ``AuditMixin``). Rows are never
physically removed; ``is_archived`` marks a soft delete.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Text, Integer, Boolean, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import false
from sqlalchemy.dialects.postgresql import JSONB

from .db import Base
from .orm_types import EmbeddingVector
from .settings import settings


def generate_uuid() -> str:
    return str(uuid.uuid4())


def _active_slug_index(table: str) -> Index:
    # At most one non-archived row per slug. Enforced by the store so that two
    # concurrent creates with the same name cannot both commit.
    return Index(
        f"uq_{table}_active_slug",
        "slug",
        unique=True,
        postgresql_where=text("is_archived = false"),
        sqlite_where=text("is_archived = 0"),
    )


class AuditMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by_group_id: Mapped[str] = mapped_column(String(120), nullable=False)
    updated_by_group_id: Mapped[str] = mapped_column(String(120), nullable=False)
    is_archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    # Set only on documents created through a Duplicate call
    variant_of: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


class Ingredient(AuditMixin, Base):
    """Ingredient catalog entry. The id is the slug the entry was created with."""
    __tablename__ = "ingredients"
    __table_args__ = (
        _active_slug_index("ingredients"),
        Index("ix_ingredients_archived_updated", "is_archived", "updated_at"),
        Index("ix_ingredients_created_by", "created_by_group_id"),
    )

    id: Mapped[str] = mapped_column(String(200), primary_key=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    aliases: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    allergens: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    nutrition: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSONB, nullable=True)
    supported_units: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    unit_conversions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    embedding: Mapped[Optional[list]] = mapped_column(
        EmbeddingVector(settings.embedding_dimensions), nullable=True
    )


class Recipe(AuditMixin, Base):
    """Recipe document. ``ingredients`` and ``steps`` keep their submitted order."""
    __tablename__ = "recipes"
    __table_args__ = (
        _active_slug_index("recipes"),
        Index("ix_recipes_archived_updated", "is_archived", "updated_at"),
        Index("ix_recipes_created_by", "created_by_group_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    servings: Mapped[int] = mapped_column(Integer, nullable=False)

    # [{ingredient_id, quantity?, unit, quantity_text?, note?}]
    ingredients: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # [{text, image_url?, equipment?}]
    steps: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    source_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Embedding of "<name> <description>"
    embedding: Mapped[Optional[list]] = mapped_column(
        EmbeddingVector(settings.embedding_dimensions), nullable=True
    )


class Suggestion(AuditMixin, Base):
    """Product suggestion. ``votes`` always equals ``len(voted_by_groups)``."""
    __tablename__ = "suggestions"
    __table_args__ = (
        Index("ix_suggestions_archived_votes", "is_archived", "votes", "created_at"),
        Index("ix_suggestions_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="feature")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")

    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    voted_by_groups: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    related_recipe_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


# Collection name -> model, in the order wipe processes them
COLLECTIONS = {
    "ingredients": Ingredient,
    "recipes": Recipe,
    "suggestions": Suggestion,
}
