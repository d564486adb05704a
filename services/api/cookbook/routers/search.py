"""Recipe search API router.

- POST /api/recipesSearch - keyword match on name + description, optional filters
- POST /api/recipesSemanticSearch - nearest recipes by embedding
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..ai.embeddings import EmbeddingClient
from ..deps import get_db, get_embedder, get_group_id, get_vector_index
from ..infra.rate_limit import limiter
from ..schemas import KeywordSearchOut, KeywordSearchRequest, SemanticSearchOut, SemanticSearchRequest
from ..search.keyword import candidate_statement, rank_recipes
from ..search.vector import VectorIndex
from ..settings import settings
from .recipes import recipe_to_out

router = APIRouter()
logger = logging.getLogger("cookbook.search")


@router.post("/recipesSearch", response_model=KeywordSearchOut)
def keyword_search(
    body: KeywordSearchRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Recipes whose name or description contains any query term.

    Ranked by total term occurrences; ties keep most-recently-updated order.
    ``totalFound`` counts the returned items.
    """
    candidates = db.execute(candidate_statement(body.query)).scalars().all()
    ranked = rank_recipes(
        candidates,
        body.query,
        ingredients=body.ingredients,
        tags=body.tags,
        categories=body.categories,
        limit=body.limit,
    )
    logger.info(f"Keyword search '{body.query}': {len(candidates)} candidates, {len(ranked)} returned")
    return KeywordSearchOut(
        items=[recipe_to_out(r, group_id) for r in ranked],
        total_found=len(ranked),
        query=body.query,
    )


@router.post("/recipesSemanticSearch", response_model=SemanticSearchOut)
@limiter.limit(settings.ai_rate_limit)
def semantic_search(
    request: Request,  # Required for rate limiter
    body: SemanticSearchRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
    embedder: EmbeddingClient = Depends(get_embedder),
    index: VectorIndex = Depends(get_vector_index),
):
    """Nearest recipes by cosine distance. With embeddings off no row has a
    vector, so nothing is embedded and the result is empty."""
    if not settings.embeddings_enabled:
        return SemanticSearchOut(items=[], query=body.query, top_k=body.top_k)

    vector = embedder.embed(body.query)
    recipes = index.nearest(db, vector, body.top_k)
    return SemanticSearchOut(
        items=[recipe_to_out(r, group_id) for r in recipes],
        query=body.query,
        top_k=body.top_k,
    )
