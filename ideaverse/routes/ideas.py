"""
IdeaVerse Backend — Idea Route Handlers
=========================================

What:  The /api/ideas resource: browse, filter, fetch, create, update,
       delete, like/unlike and like-status.
How:   Thin handlers: extract path/query/body, resolve the caller where
       needed, delegate to IdeaService, return the schema.

Auth summary:
    GET  /api/ideas, /api/ideas/filter/category, /api/ideas/{id}   public
    POST /api/ideas                                                  verified caller
    PUT / DELETE /api/ideas/{id}                                     verified owner
    POST /api/ideas/{id}/like, GET /api/ideas/{id}/liked             verified caller

Ids are path strings; anything that is not a known idea id is a 404.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ideaverse.auth import get_current_identity
from ideaverse.database import get_db_session
from ideaverse.schemas.idea import (
    DeleteResponse,
    ErrorResponse,
    IdeaCreate,
    IdeaResponse,
    IdeaUpdate,
    LikedStatusResponse,
    LikeToggleResponse,
)
from ideaverse.services.idea_service import idea_service
from ideaverse.services.identity_base import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Ideas"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    503: {"description": "Identity provider unavailable", "model": ErrorResponse},
}


# ══════════════════════════════════════════════════════════════════════════
# Public reads
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/ideas",
    response_model=List[IdeaResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List ideas, newest first",
    description=(
        "Returns every idea ordered by creation time, newest first. "
        "With `category`, only ideas in that category are returned; an unknown "
        "category yields an empty list."
    ),
)
async def list_ideas(
    response: Response,
    category: Optional[str] = Query(
        default=None,
        description="Restrict to one category (Technology, Business, Education, Health, Entertainment, Other)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[IdeaResponse]:
    ideas = await idea_service.list_ideas(db=db, category=category)
    response.headers["X-Total-Count"] = str(len(ideas))
    return ideas


@router.get(
    "/ideas/filter/category",
    response_model=List[IdeaResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Filter ideas by category",
    description="Equivalent to `GET /api/ideas?category=X`; kept for existing clients.",
)
async def filter_ideas_by_category(
    response: Response,
    category: str = Query(..., description="Category to filter by"),
    db: AsyncSession = Depends(get_db_session),
) -> List[IdeaResponse]:
    ideas = await idea_service.list_ideas(db=db, category=category)
    response.headers["X-Total-Count"] = str(len(ideas))
    return ideas


@router.get(
    "/ideas/{idea_id}",
    response_model=IdeaResponse,
    responses={404: {"description": "Idea not found", "model": ErrorResponse}},
    summary="Get a single idea",
)
async def get_idea(
    idea_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> IdeaResponse:
    return await idea_service.get_idea(db=db, idea_id=idea_id)


# ══════════════════════════════════════════════════════════════════════════
# Owner-gated writes
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/ideas",
    status_code=201,
    response_model=IdeaResponse,
    responses={
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Create an idea",
    description=(
        "Creates an idea owned by the authenticated caller. `title`, `description` "
        "and `category` are required; `imageUrl` and `ownerName` are optional."
    ),
)
async def create_idea(
    payload: IdeaCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> IdeaResponse:
    return await idea_service.create_idea(db=db, payload=payload, owner=identity)


@router.put(
    "/ideas/{idea_id}",
    response_model=IdeaResponse,
    responses={
        400: {"description": "Invalid or non-patchable field", "model": ErrorResponse},
        403: {"description": "Caller is not the owner", "model": ErrorResponse},
        404: {"description": "Idea not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Update an idea (owner only)",
    description=(
        "Patches `title`, `description`, `category` and/or `imageUrl`. "
        "Like state cannot be changed here; use the like endpoint."
    ),
)
async def update_idea(
    idea_id: str,
    patch: IdeaUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> IdeaResponse:
    return await idea_service.update_idea(db=db, idea_id=idea_id, caller=identity, patch=patch)


@router.delete(
    "/ideas/{idea_id}",
    response_model=DeleteResponse,
    responses={
        403: {"description": "Caller is not the owner", "model": ErrorResponse},
        404: {"description": "Idea not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Delete an idea (owner only)",
)
async def delete_idea(
    idea_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    return await idea_service.delete_idea(db=db, idea_id=idea_id, caller=identity)


# ══════════════════════════════════════════════════════════════════════════
# Likes
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/ideas/{idea_id}/like",
    response_model=LikeToggleResponse,
    responses={404: {"description": "Idea not found", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Like or unlike an idea",
    description=(
        "Toggles the caller's like: likes the idea if the caller hasn't, "
        "removes the like otherwise. Returns the new like count and the "
        "caller's membership."
    ),
)
async def toggle_like(
    idea_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> LikeToggleResponse:
    return await idea_service.toggle_like(db=db, idea_id=idea_id, user_id=identity.user_id)


@router.get(
    "/ideas/{idea_id}/liked",
    response_model=LikedStatusResponse,
    responses={404: {"description": "Idea not found", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Has the caller liked this idea?",
)
async def liked_status(
    idea_id: str,
    response: Response,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> LikedStatusResponse:
    liked = await idea_service.has_liked(db=db, idea_id=idea_id, user_id=identity.user_id)
    # Per-caller answer
    response.headers["Cache-Control"] = "private, no-store"
    return LikedStatusResponse(liked=liked)
