"""Nearest-neighbour recipe lookup by embedding."""

from typing import Protocol, Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from ..models import Recipe


class VectorIndex(Protocol):
    def nearest(self, db: Session, vector: Sequence[float], top_k: int) -> list[Recipe]: ...


class PgVectorIndex:
    """Cosine distance over the ``recipes.embedding`` pgvector column."""

    def statement(self, vector: Sequence[float], top_k: int) -> Select:
        return (
            select(Recipe)
            .where(Recipe.is_archived.is_(False), Recipe.embedding.is_not(None))
            .order_by(Recipe.embedding.cosine_distance(list(vector)))
            .limit(top_k)
        )

    def nearest(self, db: Session, vector: Sequence[float], top_k: int) -> list[Recipe]:
        return list(db.execute(self.statement(vector, top_k)).scalars().all())


_index = PgVectorIndex()


def get_vector_index() -> VectorIndex:
    return _index
