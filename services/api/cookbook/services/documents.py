"""Document store helpers shared by the entity routers.

Each collection is one table; these functions cover the parts every
collection handles the same way: active lookups, paging, slug-safe inserts
and JSON conversion of nested request models.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.audit import can_edit
from ..core.slugs import unique_slug
from ..errors import NotFound

logger = logging.getLogger("cookbook.documents")

T = TypeVar("T")

SLUG_INSERT_ATTEMPTS = 5


def get_active(db: Session, model: type[T], doc_id: str, entity: str, *, for_update: bool = False) -> T:
    """Load a non-archived document or raise NotFound."""
    stmt = select(model).where(model.id == doc_id, model.is_archived.is_(False))
    if for_update:
        stmt = stmt.with_for_update()
    doc = db.execute(stmt).scalar_one_or_none()
    if doc is None:
        raise NotFound(entity, doc_id)
    return doc


def paginate(db: Session, stmt: Select, limit: int, offset: int) -> tuple[list, bool]:
    """Run ``stmt`` with limit/offset.

    ``has_more`` is true when the page came back full; it can be true on
    the last page.
    """
    items = list(db.execute(stmt.offset(offset).limit(limit)).scalars().all())
    return items, len(items) == limit


def active_newest_first(model) -> Select:
    return (
        select(model)
        .where(model.is_archived.is_(False))
        .order_by(model.updated_at.desc(), model.id)
    )


def to_store(value: Any) -> Any:
    """Request value -> JSON-safe value for a JSONB column."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, list):
        return [to_store(v) for v in value]
    if value is not None and not isinstance(value, (str, int, float, bool, dict)):
        # enums, decimals and other non-JSON scalars
        return str(value)
    return value


def find_archived_by_name(db: Session, model: type[T], name: str) -> Optional[T]:
    """Most recently archived document whose trimmed, case-folded name matches."""
    normalized = name.strip().lower()
    stmt = (
        select(model)
        .where(model.is_archived.is_(True), func.lower(func.trim(model.name)) == normalized)
        .order_by(model.updated_at.desc())
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()


def insert_with_unique_slug(
    db: Session,
    model: type[T],
    name: str,
    build: Callable[[str], T],
    *,
    check_ids: bool = False,
    attempts: int = SLUG_INSERT_ATTEMPTS,
) -> T:
    """Pick a free slug, build the row with it and commit.

    Two requests can pick the same slug between read and write; the partial
    unique index rejects the loser, which rolls back and tries again.
    ``build`` is called once per attempt and must not have side effects
    outside the returned row.
    """
    last_error: Optional[IntegrityError] = None
    for attempt in range(1, attempts + 1):
        slug = unique_slug(db, model, name, check_ids=check_ids)
        doc = build(slug)
        db.add(doc)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            last_error = e
            logger.warning(
                "Slug collision on %s '%s' (attempt %d/%d)",
                model.__tablename__, slug, attempt, attempts,
            )
            continue
        db.refresh(doc)
        return doc

    raise last_error


def commit_and_refresh(db: Session, doc: T) -> T:
    db.commit()
    db.refresh(doc)
    return doc


def audit_fields(doc: Any, group_id: str) -> dict:
    """Audit envelope plus ``can_be_edited_by_you`` for response models."""
    return {
        "id": doc.id,
        "created_at": doc.created_at,
        "updated_at": doc.updated_at,
        "created_by_group_id": doc.created_by_group_id,
        "updated_by_group_id": doc.updated_by_group_id,
        "is_archived": doc.is_archived,
        "variant_of": doc.variant_of,
        "can_be_edited_by_you": can_edit(doc, group_id),
    }
