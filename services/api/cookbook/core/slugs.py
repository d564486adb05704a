import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.orm import Session

MAX_SLUG_LENGTH = 180


def slugify(name: str) -> str:
    """Lowercase kebab-case, diacritics and punctuation stripped.

    "Crème Brûlée!" -> "creme-brulee"
    """
    normalized = unicodedata.normalize("NFKD", name or "")
    ascii_text = "".join(c for c in normalized if not unicodedata.combining(c))
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or "item"


def _is_taken(db: Session, model, candidate: str, check_ids: bool) -> bool:
    # Archived rows release their slug
    stmt = (
        select(model.id)
        .where(model.slug == candidate, model.is_archived.is_(False))
        .limit(1)
    )
    if db.execute(stmt).first() is not None:
        return True
    if check_ids and db.get(model, candidate) is not None:
        return True
    return False


def unique_slug(db: Session, model, name: str, *, check_ids: bool = False) -> str:
    """First free slug among base, base-2, base-3, ...

    ``check_ids`` additionally skips candidates used as a primary key by any
    row, archived or not (ingredient ids are slugs).

    The check is read-then-write: callers insert under the partial unique
    index on active slugs and retry on IntegrityError.
    """
    base = slugify(name)
    candidate = base
    counter = 2
    while _is_taken(db, model, candidate, check_ids):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
