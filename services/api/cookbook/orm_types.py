# cookbook/orm_types.py
from pgvector.sqlalchemy import Vector
from sqlalchemy.types import TypeDecorator, JSON


class EmbeddingVector(TypeDecorator):
    """Platform-independent embedding column.

    - PostgreSQL: pgvector VECTOR(n), searchable with cosine distance (<=>)
    - SQLite: JSON array of floats (tests only; no nearest-neighbour support)

    Values always come back as plain ``list[float]``.
    """
    impl = Vector
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Vector(self.impl.dim))
        return dialect.type_descriptor(JSON(none_as_null=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return [float(v) for v in value]

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        # pgvector hands back a numpy array
        return [float(v) for v in value]
