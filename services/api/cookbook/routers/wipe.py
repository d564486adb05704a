"""Administrative wipe: archive documents in every collection.

POST /api/wipe with ``{"confirm": true}``. A normal group archives only what
it created; the ``wipe_all_group_id`` group archives everything.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.audit import stamp_update
from ..deps import get_db, get_group_id
from ..errors import ValidationError
from ..models import COLLECTIONS
from ..schemas import WipeOut, WipeRequest
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("cookbook.wipe")


def archive_collection(db: Session, model, group_id: str, *, wipe_all: bool, batch_size: int) -> int:
    """Archive active rows of ``model`` in batches, committing each batch."""
    archived = 0
    while True:
        stmt = select(model).where(model.is_archived.is_(False))
        if not wipe_all:
            stmt = stmt.where(model.created_by_group_id == group_id)
        batch = db.execute(stmt.order_by(model.id).limit(batch_size)).scalars().all()
        if not batch:
            break

        for doc in batch:
            doc.is_archived = True
            stamp_update(doc, group_id)
        db.commit()
        archived += len(batch)

        if len(batch) < batch_size:
            break
    return archived


@router.post("/wipe", response_model=WipeOut)
def wipe(
    body: Optional[WipeRequest] = None,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    body = body or WipeRequest()
    if body.confirm is not True:
        raise ValidationError("Confirmation required: Set 'confirm: true' to wipe the database")

    wipe_all = group_id == settings.wipe_all_group_id
    counts = {
        name: archive_collection(
            db, model, group_id, wipe_all=wipe_all, batch_size=settings.wipe_batch_size
        )
        for name, model in COLLECTIONS.items()
    }
    total = sum(counts.values())

    if wipe_all:
        message = "Database wiped successfully (all items archived)"
    else:
        message = f"Your group's items wiped successfully ({total} items archived)"

    logger.warning(f"Group {group_id} wiped {total} documents: {counts}")
    return WipeOut(message=message, archived_counts=counts, total_archived=total)
