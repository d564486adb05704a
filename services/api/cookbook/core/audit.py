"""Audit stamping and ownership checks shared by every collection."""

from datetime import datetime, timezone
from typing import Any
import logging

from ..errors import AccessDenied

logger = logging.getLogger("cookbook.audit")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stamp_create(doc: Any, group_id: str) -> Any:
    """Stamp a new (or resurrected) document as created by ``group_id``."""
    now = utcnow()
    doc.created_at = now
    doc.updated_at = now
    doc.created_by_group_id = group_id
    doc.updated_by_group_id = group_id
    doc.is_archived = False
    return doc


def stamp_update(doc: Any, group_id: str) -> Any:
    # created_at / created_by_group_id are immutable after creation
    doc.updated_at = utcnow()
    doc.updated_by_group_id = group_id
    return doc


def can_edit(doc: Any, group_id: str) -> bool:
    return doc.created_by_group_id == group_id


def require_ownership(doc: Any, group_id: str, entity: str, doc_id: str, duplicate_endpoint: str) -> None:
    """Raise AccessDenied unless ``group_id`` created ``doc``.

    Used by Update and Delete. Reads are never restricted.
    """
    if can_edit(doc, group_id):
        return
    logger.warning(
        "Group %s denied write on %s %s owned by %s",
        group_id, entity, doc_id, doc.created_by_group_id,
    )
    raise AccessDenied(entity, doc_id, doc.created_by_group_id, duplicate_endpoint)
