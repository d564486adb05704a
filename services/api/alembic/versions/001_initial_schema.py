"""Initial schema: ingredients, recipes, suggestions

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

from cookbook.settings import settings

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match the ORM embedding columns; changing it later needs a new revision.
EMBEDDING_DIMENSIONS = settings.embedding_dimensions


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by_group_id", sa.String(120), nullable=False),
        sa.Column("updated_by_group_id", sa.String(120), nullable=False),
        sa.Column("is_archived", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("variant_of", sa.String(200), nullable=True),
    ]


def _json_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb"))


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # Ingredients (id is the slug the ingredient was created with)
    op.create_table(
        "ingredients",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        _json_list("aliases"),
        _json_list("categories"),
        _json_list("allergens"),
        sa.Column("nutrition", postgresql.JSONB, nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        _json_list("supported_units"),
        _json_list("unit_conversions"),
        sa.Column("embedding", Vector(EMBEDDING_DIMENSIONS), nullable=True),
        *_audit_columns(),
    )

    # Recipes
    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("servings", sa.Integer, nullable=False),
        _json_list("ingredients"),
        _json_list("steps"),
        _json_list("tags"),
        _json_list("categories"),
        sa.Column("source_url", sa.String(2048), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("embedding", Vector(EMBEDDING_DIMENSIONS), nullable=True),
        *_audit_columns(),
    )

    # Suggestions
    op.create_table(
        "suggestions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="feature"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="submitted"),
        sa.Column("votes", sa.Integer, nullable=False, server_default="0"),
        _json_list("voted_by_groups"),
        sa.Column("related_recipe_id", sa.String(200), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint("votes >= 0", name="ck_suggestions_votes_non_negative"),
    )

    # One active document per slug; archived rows release theirs
    for table in ("ingredients", "recipes"):
        op.create_index(
            f"uq_{table}_active_slug",
            table,
            ["slug"],
            unique=True,
            postgresql_where=sa.text("is_archived = false"),
        )
        op.create_index(f"ix_{table}_archived_updated", table, ["is_archived", "updated_at"])
        op.create_index(f"ix_{table}_created_by", table, ["created_by_group_id"])

    op.create_index("ix_suggestions_archived_votes", "suggestions", ["is_archived", "votes", "created_at"])
    op.create_index("ix_suggestions_status", "suggestions", ["status"])

    # Approximate nearest neighbour for semantic search
    op.execute(
        "CREATE INDEX ix_recipes_embedding_hnsw ON recipes "
        "USING hnsw (embedding vector_cosine_ops)"
    )


def downgrade() -> None:
    op.drop_table("suggestions")
    op.drop_table("recipes")
    op.drop_table("ingredients")
