"""FastAPI dependencies for the Cookbook API.

Provides:
- Caller group resolution from the ``x-group-id`` header
- Re-exports of the injectable collaborators (db session, embedder, image
  generator, blob store, vector index) so routers import them from one place
"""

from typing import Optional

from fastapi import Header

from .ai.embeddings import get_embedder
from .ai.images import get_image_generator
from .db import get_db
from .errors import MissingHeader
from .search.vector import get_vector_index
from .services.storage import get_storage

GROUP_HEADER = "x-group-id"

__all__ = [
    "GROUP_HEADER",
    "get_db",
    "get_embedder",
    "get_group_id",
    "get_image_generator",
    "get_storage",
    "get_vector_index",
]


def get_group_id(x_group_id: Optional[str] = Header(None, alias=GROUP_HEADER)) -> str:
    """Calling group. The header is trusted as-is; there is no token check.

    Raises:
        MissingHeader if the header is absent or blank
    """
    group_id = (x_group_id or "").strip()
    if not group_id:
        raise MissingHeader(GROUP_HEADER)
    return group_id
