"""Ingredient catalog API router.

Endpoints (all POST, body carries the id):
- /api/ingredientsCreate
- /api/ingredientsUpdate
- /api/ingredientsDelete
- /api/ingredientsGet
- /api/ingredientsList
- /api/ingredientsDuplicate

Reads are open to every group; update and delete are restricted to the
group that created the ingredient. Other groups fork via Duplicate.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..ai.embeddings import EmbeddingClient
from ..core.audit import require_ownership, stamp_create, stamp_update
from ..deps import get_db, get_embedder, get_group_id
from ..infra.rate_limit import limiter
from ..models import Ingredient
from ..schemas import (
    IdRequest, IngredientCreate, IngredientDuplicate, IngredientListRequest,
    IngredientOut, IngredientPage, IngredientUpdate, MessageOut,
)
from ..services.documents import (
    active_newest_first, audit_fields, commit_and_refresh, find_archived_by_name,
    get_active, insert_with_unique_slug, paginate, to_store,
)
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("cookbook.ingredients")

ENTITY = "ingredient"
DUPLICATE_ENDPOINT = "ingredientsDuplicate"

# request field -> column attribute
_COLUMNS = {"metadata": "metadata_"}


def _ingredient_to_out(ingredient: Ingredient, group_id: str) -> IngredientOut:
    return IngredientOut(
        **audit_fields(ingredient, group_id),
        slug=ingredient.slug,
        name=ingredient.name,
        aliases=ingredient.aliases or [],
        categories=ingredient.categories or [],
        allergens=ingredient.allergens or [],
        nutrition=ingredient.nutrition,
        metadata=ingredient.metadata_,
        supported_units=ingredient.supported_units or [],
        unit_conversions=ingredient.unit_conversions or [],
    )


def _embed_name(embedder: EmbeddingClient, name: str) -> Optional[list[float]]:
    if not settings.embeddings_enabled:
        return None
    return embedder.embed(name)


def _content(body, names) -> dict:
    """Column values for ``names`` taken from a request model."""
    return {_COLUMNS.get(n, n): to_store(getattr(body, n)) for n in names}


@router.post("/ingredientsCreate", response_model=IngredientOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ai_rate_limit)
def create_ingredient(
    request: Request,  # Required for rate limiter
    body: IngredientCreate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
):
    """Create an ingredient. Its id is the unique slug of its name."""
    content = _content(body, IngredientUpdate.FIELDS)
    content["embedding"] = _embed_name(embedder, body.name)

    archived = None
    if settings.resurrect_archived_on_create:
        archived = find_archived_by_name(db, Ingredient, body.name)

    if archived is not None:
        logger.warning(
            "Resurrecting archived ingredient %s for group %s (previous owner %s)",
            archived.id, group_id, archived.created_by_group_id,
        )

        def build(slug: str) -> Ingredient:
            for key, value in content.items():
                setattr(archived, key, value)
            archived.slug = slug
            archived.variant_of = None
            return stamp_create(archived, group_id)

        ingredient = insert_with_unique_slug(db, Ingredient, body.name, build)
    else:
        def build(slug: str) -> Ingredient:
            return stamp_create(Ingredient(id=slug, slug=slug, **content), group_id)

        ingredient = insert_with_unique_slug(db, Ingredient, body.name, build, check_ids=True)

    logger.info(f"Group {group_id} created ingredient {ingredient.id}")
    return _ingredient_to_out(ingredient, group_id)


@router.post("/ingredientsUpdate", response_model=IngredientOut)
@limiter.limit(settings.ai_rate_limit)
def update_ingredient(
    request: Request,  # Required for rate limiter
    body: IngredientUpdate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
):
    """Apply the fields present in the body. The id and slug never change."""
    ingredient = get_active(db, Ingredient, body.id, ENTITY)
    require_ownership(ingredient, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    provided = body.provided(*IngredientUpdate.FIELDS)
    if "name" in provided and body.name != ingredient.name:
        ingredient.embedding = _embed_name(embedder, body.name)

    for key, value in _content(body, provided).items():
        setattr(ingredient, key, value)

    stamp_update(ingredient, group_id)
    commit_and_refresh(db, ingredient)
    return _ingredient_to_out(ingredient, group_id)


@router.post("/ingredientsDelete", response_model=MessageOut)
def delete_ingredient(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Archive an ingredient. A second delete reports NotFound."""
    ingredient = get_active(db, Ingredient, body.id, ENTITY)
    require_ownership(ingredient, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    ingredient.is_archived = True
    stamp_update(ingredient, group_id)
    db.commit()

    logger.info(f"Group {group_id} archived ingredient {body.id}")
    return MessageOut(message="Ingredient deleted successfully")


@router.post("/ingredientsGet", response_model=IngredientOut)
def get_ingredient(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    return _ingredient_to_out(get_active(db, Ingredient, body.id, ENTITY), group_id)


@router.post("/ingredientsList", response_model=IngredientPage)
def list_ingredients(
    body: Optional[IngredientListRequest] = None,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    body = body or IngredientListRequest()
    items, has_more = paginate(db, active_newest_first(Ingredient), body.limit, body.offset)
    return IngredientPage(
        items=[_ingredient_to_out(i, group_id) for i in items],
        has_more=has_more,
    )


@router.post("/ingredientsDuplicate", response_model=IngredientOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ai_rate_limit)
def duplicate_ingredient(
    request: Request,  # Required for rate limiter
    body: IngredientDuplicate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
):
    """Copy an ingredient into a new one owned by the caller.

    Fields present in the body (even ``[]``) override the original's.
    """
    original = get_active(db, Ingredient, body.id, ENTITY)

    content = {
        _COLUMNS.get(n, n): getattr(original, _COLUMNS.get(n, n))
        for n in IngredientDuplicate.FIELDS
    }
    content.update(_content(body, body.provided(*IngredientDuplicate.FIELDS)))

    if content["name"] == original.name:
        content["embedding"] = original.embedding
    else:
        content["embedding"] = _embed_name(embedder, content["name"])

    def build(slug: str) -> Ingredient:
        ingredient = Ingredient(id=slug, slug=slug, variant_of=original.id, **content)
        return stamp_create(ingredient, group_id)

    ingredient = insert_with_unique_slug(db, Ingredient, content["name"], build, check_ids=True)

    logger.info(f"Group {group_id} duplicated ingredient {original.id} as {ingredient.id}")
    return _ingredient_to_out(ingredient, group_id)
