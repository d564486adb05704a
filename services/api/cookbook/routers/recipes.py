"""Recipes API router.

Endpoints (all POST, body carries the id):
- /api/recipesCreate - Create recipe, embed name + description, optional hero image
- /api/recipesUpdate - Full-field and delta (add/remove) updates
- /api/recipesDelete - Archive
- /api/recipesGet
- /api/recipesList
- /api/recipesDuplicate - Fork into a recipe owned by the caller
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..ai.embeddings import EmbeddingClient, recipe_embedding_text
from ..ai.images import ImageGenerator
from ..core.audit import require_ownership, stamp_create, stamp_update
from ..core.deltas import (
    RECIPE_DELTA_FIELDS, apply_ingredient_delta, apply_step_delta, apply_string_delta,
    check_delta_conflicts,
)
from ..deps import get_db, get_embedder, get_group_id, get_image_generator, get_storage
from ..infra.rate_limit import limiter
from ..models import Recipe, generate_uuid
from ..schemas import (
    IdRequest, MessageOut, RecipeCreate, RecipeDuplicate, RecipeListRequest,
    RecipeOut, RecipePage, RecipeUpdate,
)
from ..services.documents import (
    active_newest_first, audit_fields, commit_and_refresh, find_archived_by_name,
    get_active, insert_with_unique_slug, paginate, to_store,
)
from ..services.hero_images import render_hero_image, should_generate_image
from ..services.storage import BlobStore
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("cookbook.recipes")

ENTITY = "recipe"
DUPLICATE_ENDPOINT = "recipesDuplicate"

_DELTA_FIELDS = tuple(f for pair in RECIPE_DELTA_FIELDS.values() for f in pair)


def recipe_to_out(recipe: Recipe, group_id: str) -> RecipeOut:
    """Convert Recipe model to RecipeOut. The embedding is never returned."""
    return RecipeOut(
        **audit_fields(recipe, group_id),
        slug=recipe.slug,
        name=recipe.name,
        description=recipe.description,
        servings=recipe.servings,
        ingredients=recipe.ingredients or [],
        steps=recipe.steps or [],
        tags=recipe.tags or [],
        categories=recipe.categories or [],
        source_url=recipe.source_url,
        image_url=recipe.image_url,
    )


def _embed(embedder: EmbeddingClient, name: str, description: str) -> Optional[list[float]]:
    if not settings.embeddings_enabled:
        return None
    return embedder.embed(recipe_embedding_text(name, description))


def _wants_image(requested: bool, current_image_url: Optional[str]) -> bool:
    return should_generate_image(
        requested=requested,
        current_image_url=current_image_url,
        enabled=settings.ai_images_enabled,
        policy=settings.image_regeneration_policy,
    )


@router.post("/recipesCreate", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ai_rate_limit)
def create_recipe(
    request: Request,  # Required for rate limiter
    body: RecipeCreate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
    generator: ImageGenerator = Depends(get_image_generator),
    store: BlobStore = Depends(get_storage),
):
    """Create a recipe.

    The embedding (and hero image, when due) are produced before anything is
    written, so an upstream failure leaves no partial recipe behind.
    """
    content = {n: to_store(getattr(body, n)) for n in RecipeDuplicate.FIELDS}
    content["embedding"] = _embed(embedder, body.name, body.description)

    archived = None
    if settings.resurrect_archived_on_create:
        archived = find_archived_by_name(db, Recipe, body.name)
    recipe_id = archived.id if archived is not None else generate_uuid()

    content["image_url"] = None
    if _wants_image(body.generate_image, None):
        content["image_url"] = render_hero_image(
            recipe_id, body.name, body.description, generator, store
        )

    if archived is not None:
        logger.warning(
            "Resurrecting archived recipe %s for group %s (previous owner %s)",
            archived.id, group_id, archived.created_by_group_id,
        )

        def build(slug: str) -> Recipe:
            for key, value in content.items():
                setattr(archived, key, value)
            archived.slug = slug
            archived.variant_of = None
            return stamp_create(archived, group_id)
    else:
        def build(slug: str) -> Recipe:
            return stamp_create(Recipe(id=recipe_id, slug=slug, **content), group_id)

    recipe = insert_with_unique_slug(db, Recipe, body.name, build)

    logger.info(f"Group {group_id} created recipe {recipe.id} ({recipe.slug})")
    return recipe_to_out(recipe, group_id)


@router.post("/recipesUpdate", response_model=RecipeOut)
@limiter.limit(settings.ai_rate_limit)
def update_recipe(
    request: Request,  # Required for rate limiter
    body: RecipeUpdate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
    generator: ImageGenerator = Depends(get_image_generator),
    store: BlobStore = Depends(get_storage),
):
    """Update a recipe.

    Full fields replace the stored value. Delta fields edit lists in place:
    - addTags / removeTags, addCategories / removeCategories
    - addIngredients (upsert by ingredientId) / removeIngredientIds
    - addSteps (append) / removeStepIndexes
    A full field and its delta fields cannot be combined in one request.
    """
    check_delta_conflicts(body.provided(*RecipeDuplicate.FIELDS, *_DELTA_FIELDS))

    recipe = get_active(db, Recipe, body.id, ENTITY)
    require_ownership(recipe, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    old_text = (recipe.name, recipe.description)

    for name in body.provided(*RecipeDuplicate.FIELDS):
        setattr(recipe, name, to_store(getattr(body, name)))

    if body.provided("add_tags", "remove_tags"):
        recipe.tags = apply_string_delta(recipe.tags, body.add_tags, body.remove_tags)
    if body.provided("add_categories", "remove_categories"):
        recipe.categories = apply_string_delta(
            recipe.categories, body.add_categories, body.remove_categories
        )
    if body.provided("add_ingredients", "remove_ingredient_ids"):
        recipe.ingredients = apply_ingredient_delta(
            recipe.ingredients, to_store(body.add_ingredients), body.remove_ingredient_ids
        )
    if body.provided("add_steps", "remove_step_indexes"):
        recipe.steps = apply_step_delta(
            recipe.steps, to_store(body.add_steps), body.remove_step_indexes
        )

    if (recipe.name, recipe.description) != old_text:
        recipe.embedding = _embed(embedder, recipe.name, recipe.description)

    if _wants_image(body.generate_image, recipe.image_url):
        recipe.image_url = render_hero_image(
            recipe.id, recipe.name, recipe.description, generator, store
        )

    stamp_update(recipe, group_id)
    commit_and_refresh(db, recipe)
    return recipe_to_out(recipe, group_id)


@router.post("/recipesDelete", response_model=MessageOut)
def delete_recipe(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    recipe = get_active(db, Recipe, body.id, ENTITY)
    require_ownership(recipe, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    recipe.is_archived = True
    stamp_update(recipe, group_id)
    db.commit()

    logger.info(f"Group {group_id} archived recipe {body.id}")
    return MessageOut(message="Recipe deleted successfully")


@router.post("/recipesGet", response_model=RecipeOut)
def get_recipe(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    return recipe_to_out(get_active(db, Recipe, body.id, ENTITY), group_id)


@router.post("/recipesList", response_model=RecipePage)
def list_recipes(
    body: Optional[RecipeListRequest] = None,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Non-archived recipes from every group, most recently updated first."""
    body = body or RecipeListRequest()
    items, has_more = paginate(db, active_newest_first(Recipe), body.limit, body.offset)
    return RecipePage(items=[recipe_to_out(r, group_id) for r in items], has_more=has_more)


@router.post("/recipesDuplicate", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ai_rate_limit)
def duplicate_recipe(
    request: Request,  # Required for rate limiter
    body: RecipeDuplicate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
):
    """Copy a recipe into a new one owned by the caller.

    Fields present in the body (even ``[]``) override the original's. The
    hero image URL is shared with the original.
    """
    original = get_active(db, Recipe, body.id, ENTITY)

    content = {n: getattr(original, n) for n in RecipeDuplicate.FIELDS}
    content.update({n: to_store(getattr(body, n)) for n in body.provided(*RecipeDuplicate.FIELDS)})
    content["image_url"] = original.image_url

    if (content["name"], content["description"]) == (original.name, original.description):
        content["embedding"] = original.embedding
    else:
        content["embedding"] = _embed(embedder, content["name"], content["description"])

    recipe_id = generate_uuid()
    original_id = original.id

    def build(slug: str) -> Recipe:
        recipe = Recipe(id=recipe_id, slug=slug, variant_of=original_id, **content)
        return stamp_create(recipe, group_id)

    recipe = insert_with_unique_slug(db, Recipe, content["name"], build)

    logger.info(f"Group {group_id} duplicated recipe {original_id} as {recipe.id}")
    return recipe_to_out(recipe, group_id)
