"""Suggestions API router.

Endpoints (all POST):
- /api/suggestionsCreate
- /api/suggestionsUpdate
- /api/suggestionsDelete
- /api/suggestionsGet
- /api/suggestionsList - most voted first, optional status filter
- /api/suggestionsDuplicate
- /api/suggestionsVote - toggle the caller's vote
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.audit import require_ownership, stamp_create, stamp_update
from ..deps import get_db, get_group_id
from ..models import Suggestion, generate_uuid
from ..schemas import (
    IdRequest, MessageOut, SuggestionCreate, SuggestionDuplicate, SuggestionListRequest,
    SuggestionOut, SuggestionPage, SuggestionUpdate, SuggestionVoteOut,
)
from ..services.documents import audit_fields, commit_and_refresh, get_active, paginate

router = APIRouter()
logger = logging.getLogger("cookbook.suggestions")

ENTITY = "suggestion"
DUPLICATE_ENDPOINT = "suggestionsDuplicate"


def _suggestion_fields(suggestion: Suggestion, group_id: str) -> dict:
    return dict(
        **audit_fields(suggestion, group_id),
        title=suggestion.title,
        description=suggestion.description,
        category=suggestion.category,
        priority=suggestion.priority,
        status=suggestion.status,
        votes=suggestion.votes,
        voted_by_groups=suggestion.voted_by_groups or [],
        related_recipe_id=suggestion.related_recipe_id,
    )


def _suggestion_to_out(suggestion: Suggestion, group_id: str) -> SuggestionOut:
    return SuggestionOut(**_suggestion_fields(suggestion, group_id))


@router.post("/suggestionsCreate", response_model=SuggestionOut, status_code=status.HTTP_201_CREATED)
def create_suggestion(
    body: SuggestionCreate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    suggestion = Suggestion(
        id=generate_uuid(),
        **body.model_dump(),
        status="submitted",
        votes=0,
        voted_by_groups=[],
    )
    stamp_create(suggestion, group_id)
    db.add(suggestion)
    commit_and_refresh(db, suggestion)

    logger.info(f"Group {group_id} submitted suggestion {suggestion.id}")
    return _suggestion_to_out(suggestion, group_id)


@router.post("/suggestionsUpdate", response_model=SuggestionOut)
def update_suggestion(
    body: SuggestionUpdate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    suggestion = get_active(db, Suggestion, body.id, ENTITY)
    require_ownership(suggestion, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    for name in body.provided(*SuggestionUpdate.FIELDS):
        setattr(suggestion, name, getattr(body, name))

    stamp_update(suggestion, group_id)
    commit_and_refresh(db, suggestion)
    return _suggestion_to_out(suggestion, group_id)


@router.post("/suggestionsDelete", response_model=MessageOut)
def delete_suggestion(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    suggestion = get_active(db, Suggestion, body.id, ENTITY)
    require_ownership(suggestion, group_id, ENTITY, body.id, DUPLICATE_ENDPOINT)

    suggestion.is_archived = True
    stamp_update(suggestion, group_id)
    db.commit()

    logger.info(f"Group {group_id} archived suggestion {body.id}")
    return MessageOut(message="Suggestion deleted successfully")


@router.post("/suggestionsGet", response_model=SuggestionOut)
def get_suggestion(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    return _suggestion_to_out(get_active(db, Suggestion, body.id, ENTITY), group_id)


@router.post("/suggestionsList", response_model=SuggestionPage)
def list_suggestions(
    body: Optional[SuggestionListRequest] = None,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Most voted first; equal votes newest first."""
    body = body or SuggestionListRequest()
    stmt = select(Suggestion).where(Suggestion.is_archived.is_(False))
    if body.status:
        stmt = stmt.where(Suggestion.status == body.status)
    stmt = stmt.order_by(Suggestion.votes.desc(), Suggestion.created_at.desc(), Suggestion.id)

    items, has_more = paginate(db, stmt, body.limit, body.offset)
    return SuggestionPage(
        items=[_suggestion_to_out(s, group_id) for s in items],
        has_more=has_more,
    )


@router.post("/suggestionsDuplicate", response_model=SuggestionOut, status_code=status.HTTP_201_CREATED)
def duplicate_suggestion(
    body: SuggestionDuplicate,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Copy a suggestion. The copy starts over: submitted, no votes."""
    original = get_active(db, Suggestion, body.id, ENTITY)

    content = {n: getattr(original, n) for n in SuggestionDuplicate.FIELDS}
    content.update({n: getattr(body, n) for n in body.provided(*SuggestionDuplicate.FIELDS)})

    suggestion = Suggestion(
        id=generate_uuid(),
        **content,
        status="submitted",
        votes=0,
        voted_by_groups=[],
        variant_of=original.id,
    )
    stamp_create(suggestion, group_id)
    db.add(suggestion)
    commit_and_refresh(db, suggestion)

    logger.info(f"Group {group_id} duplicated suggestion {original.id} as {suggestion.id}")
    return _suggestion_to_out(suggestion, group_id)


@router.post("/suggestionsVote", response_model=SuggestionVoteOut)
def vote_suggestion(
    body: IdRequest,
    group_id: str = Depends(get_group_id),
    db: Session = Depends(get_db),
):
    """Toggle the caller's vote. Any group may vote on any suggestion.

    The row is locked for the read-modify-write so concurrent votes from
    different groups are all counted.
    """
    suggestion = get_active(db, Suggestion, body.id, ENTITY, for_update=True)

    voters = list(suggestion.voted_by_groups or [])
    if group_id in voters:
        voters.remove(group_id)
        voted = False
    else:
        voters.append(group_id)
        voted = True

    suggestion.voted_by_groups = voters
    suggestion.votes = len(voters)
    stamp_update(suggestion, group_id)
    commit_and_refresh(db, suggestion)

    return SuggestionVoteOut(**_suggestion_fields(suggestion, group_id), voted=voted)
