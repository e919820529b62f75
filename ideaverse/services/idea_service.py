"""
IdeaVerse Backend — Idea Service (Business Logic)
===================================================

What:  Every read and write on ideas: listing, lookup, like toggle, and the
       owner-gated create/update/delete paths.
How:   Each operation is one SQL statement against PostgreSQL (plus, on a
       failed ownership-gated write, one existence check to tell 404 from 403).
Who:   Called by the route handlers in ideaverse/routes/ideas.py.
When:  For every request under /api/ideas, after the caller (if any) is verified.

Like toggle:
    UPDATE ideas
       SET liked_by   = CASE WHEN liked_by @> ARRAY[:user] THEN array_remove(liked_by, :user)
                             ELSE array_append(liked_by, :user) END,
           like_count = cardinality(<same CASE>)
     WHERE id = :id
    RETURNING like_count, liked_by @> ARRAY[:user] AS liked

    Membership flip and count recompute happen in the same statement under
    the row lock, so concurrent toggles on one idea serialize in the store
    and like_count never diverges from cardinality(liked_by). The service
    never reads the liker set into memory to write it back.

Ownership gate:
    UPDATE/DELETE ... WHERE id = :id AND owner_id = :caller RETURNING ...
    No row back → SELECT id to decide between NotFoundError and ForbiddenError.

Design Decision:
    IdeaService is stateless: the session is passed in per call and the
    singleton holds no data. Tests hand it a mocked AsyncSession; routes hand
    it the per-request session from get_db_session, which commits on success.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Union

from sqlalchemy import Text, case, delete, desc, func, literal, select, update
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.ext.asyncio import AsyncSession

from ideaverse.exceptions import (
    DatabaseError,
    ForbiddenError,
    IdeaVerseError,
    NotFoundError,
)
from ideaverse.models.idea import Idea
from ideaverse.schemas.idea import (
    DeleteResponse,
    IdeaCreate,
    IdeaResponse,
    IdeaUpdate,
    LikeToggleResponse,
)
from ideaverse.services.identity_base import Identity

logger = logging.getLogger(__name__)

LIKED_MESSAGE = "Idea liked successfully"
UNLIKED_MESSAGE = "Like removed successfully"


def parse_idea_id(idea_id: Union[str, uuid.UUID]) -> uuid.UUID:
    """Ids are opaque to callers: anything that isn't a UUID simply doesn't exist."""
    if isinstance(idea_id, uuid.UUID):
        return idea_id
    try:
        return uuid.UUID(str(idea_id))
    except (ValueError, TypeError, AttributeError):
        raise NotFoundError(resource="idea", resource_id=str(idea_id))


def build_toggle_like_statement(idea_id: uuid.UUID, user_id: str):
    """The single atomic UPDATE ... RETURNING statement behind toggle_like."""
    # Bound as TEXT so array_append/array_remove resolve against TEXT[]
    user = literal(user_id, Text)
    is_member = Idea.liked_by.contains([user_id])
    # Evaluated once per row under the row lock; both SET clauses see the old value
    new_liked_by = case(
        (is_member, func.array_remove(Idea.liked_by, user, type_=ARRAY(Text))),
        else_=func.array_append(Idea.liked_by, user, type_=ARRAY(Text)),
    )
    return (
        update(Idea)
        .where(Idea.id == idea_id)
        .values(
            liked_by=new_liked_by,
            like_count=func.cardinality(new_liked_by),
        )
        .returning(
            Idea.like_count,
            Idea.liked_by.contains([user_id]).label("liked"),
        )
        # No ORM objects are loaded, so there is nothing to synchronize
        .execution_options(synchronize_session=False)
    )


class IdeaService:
    """
    Business logic layer for idea operations.

    Error Handling Strategy:
        NotFoundError / ForbiddenError are raised directly and never retried.
        Any other failure while talking to the store is logged and wrapped in
        DatabaseError (generic 500, no internals leaked).
    """

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_ideas(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
    ) -> List[IdeaResponse]:
        """
        All ideas newest first, optionally restricted to one category.

        An unknown category is not validated against the enum: it simply
        matches nothing and yields an empty list. That includes values
        PostgreSQL refuses to even compare (embedded NUL), which are answered
        here without a round trip.
        """
        if category is not None and "\x00" in category:
            return []

        try:
            query = select(Idea)
            # Plain equality: an unknown category matches nothing
            if category is not None:
                query = query.where(Idea.category == category)
            # Why id as tie-break: rows created in the same instant keep a stable order
            query = query.order_by(desc(Idea.created_at), desc(Idea.id))

            result = await db.execute(query)
            ideas = result.scalars().all()
            return [IdeaResponse.from_model(idea) for idea in ideas]

        except Exception as e:
            logger.error("Database error listing ideas: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve ideas. Please try again.",
                context={"category": category, "error_type": type(e).__name__},
            ) from e

    async def get_idea(self, db: AsyncSession, idea_id: Union[str, uuid.UUID]) -> IdeaResponse:
        """
        Single idea by id.

        Raises:
            NotFoundError: no idea with that id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        parsed_id = parse_idea_id(idea_id)
        try:
            result = await db.execute(select(Idea).where(Idea.id == parsed_id))
            idea = result.scalar_one_or_none()
            if idea is None:
                raise NotFoundError(resource="idea", resource_id=str(parsed_id))
            return IdeaResponse.from_model(idea)

        except IdeaVerseError:
            raise
        except Exception as e:
            logger.error("Database error fetching idea %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the idea. Please try again.",
                context={"idea_id": str(parsed_id)},
            ) from e

    async def has_liked(
        self,
        db: AsyncSession,
        idea_id: Union[str, uuid.UUID],
        user_id: str,
    ) -> bool:
        """Membership test of user_id in the idea's liker set."""
        parsed_id = parse_idea_id(idea_id)
        try:
            result = await db.execute(
                select(Idea.liked_by.contains([user_id])).where(Idea.id == parsed_id)
            )
            liked = result.scalar_one_or_none()
            if liked is None:
                raise NotFoundError(resource="idea", resource_id=str(parsed_id))
            return bool(liked)

        except IdeaVerseError:
            raise
        except Exception as e:
            logger.error("Database error checking like on idea %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not check like status. Please try again.",
                context={"idea_id": str(parsed_id)},
            ) from e

    # ── Like toggle ───────────────────────────────────────────────────────

    async def toggle_like(
        self,
        db: AsyncSession,
        idea_id: Union[str, uuid.UUID],
        user_id: str,
    ) -> LikeToggleResponse:
        """
        Flip user_id's membership in the liker set and return the new count.

        Any verified caller may like any idea, including their own.

        Returns:
            LikeToggleResponse(likes=<new count>, liked=<membership after toggle>)

        Raises:
            NotFoundError: no idea with that id
            DatabaseError: statement failed
        """
        parsed_id = parse_idea_id(idea_id)
        try:
            result = await db.execute(build_toggle_like_statement(parsed_id, user_id))
            row = result.one_or_none()
            if row is None:
                # UPDATE matched no row: unknown id
                raise NotFoundError(resource="idea", resource_id=str(parsed_id))

            liked = bool(row.liked)
            logger.info(
                "Idea %s %s by %s (likes=%d)",
                parsed_id,
                "liked" if liked else "unliked",
                user_id,
                row.like_count,
            )
            return LikeToggleResponse(
                likes=row.like_count,
                liked=liked,
                message=LIKED_MESSAGE if liked else UNLIKED_MESSAGE,
            )

        except IdeaVerseError:
            raise
        except Exception as e:
            logger.error("Database error toggling like on idea %s: %s", parsed_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the like. Please try again.",
                context={"idea_id": str(parsed_id)},
            ) from e

    # ── Ownership-gated mutations ─────────────────────────────────────────

    async def create_idea(
        self,
        db: AsyncSession,
        payload: IdeaCreate,
        owner: Identity,
    ) -> IdeaResponse:
        """
        Persist a new idea owned by the verified caller.

        The payload is already validated by IdeaCreate (non-empty title and
        description, known category). Starts with no likes.
        """
        idea = Idea(
            id=uuid.uuid4(),
            title=payload.title,
            description=payload.description,
            category=payload.category.value,
            image_url=payload.image_url,
            owner_id=owner.user_id,
            owner_name=payload.owner_name or owner.display_name,
            like_count=0,
            liked_by=[],
            created_at=datetime.now(timezone.utc),
        )
        try:
            db.add(idea)
            await db.flush()
        except Exception as e:
            logger.error("Database error creating idea: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the idea. Please try again.",
                context={"owner_id": owner.user_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Idea %s created by %s in %s", idea.id, owner.user_id, idea.category)
        return IdeaResponse.from_model(idea)

    async def update_idea(
        self,
        db: AsyncSession,
        idea_id: Union[str, uuid.UUID],
        caller: Identity,
        patch: IdeaUpdate,
    ) -> IdeaResponse:
        """
        Apply an owner's patch (title, description, category, imageUrl only).

        An empty patch changes nothing but is still ownership-gated.

        Raises:
            NotFoundError: no idea with that id
            ForbiddenError: caller is not the owner
        """
        parsed_id = parse_idea_id(idea_id)
        changes = patch.changes()
        try:
            # Empty patch: nothing to write, but the caller must still own the idea
            if not changes:
                result = await db.execute(select(Idea).where(Idea.id == parsed_id))
                idea = result.scalar_one_or_none()
                if idea is None:
                    raise NotFoundError(resource="idea", resource_id=str(parsed_id))
                if idea.owner_id != caller.user_id:
                    raise ForbiddenError(action="update")
                return IdeaResponse.from_model(idea)

            # Ownership is part of the WHERE clause, so a non-owner never writes
            result = await db.execute(
                update(Idea)
                .where(Idea.id == parsed_id, Idea.owner_id == caller.user_id)
                .values(**changes)
                .returning(Idea)
                .execution_options(synchronize_session=False)
            )
            idea = result.scalar_one_or_none()
            if idea is None:
                await self._raise_missing_or_forbidden(db, parsed_id, "update")

            logger.info("Idea %s updated by %s: %s", parsed_id, caller.user_id, sorted(changes))
            return IdeaResponse.from_model(idea)

        except IdeaVerseError:
            raise
        except Exception as e:
            logger.error("Database error updating idea %s: %s", parsed_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the idea. Please try again.",
                context={"idea_id": str(parsed_id)},
            ) from e

    async def delete_idea(
        self,
        db: AsyncSession,
        idea_id: Union[str, uuid.UUID],
        caller: Identity,
    ) -> DeleteResponse:
        """
        Remove an idea owned by the caller.

        Raises:
            NotFoundError: no idea with that id (including one already deleted)
            ForbiddenError: caller is not the owner; the record is untouched
        """
        parsed_id = parse_idea_id(idea_id)
        try:
            result = await db.execute(
                delete(Idea)
                .where(Idea.id == parsed_id, Idea.owner_id == caller.user_id)
                .returning(Idea.id)
                .execution_options(synchronize_session=False)
            )
            deleted_id = result.scalar_one_or_none()
            if deleted_id is None:
                # Either the idea is gone or someone else owns it
                await self._raise_missing_or_forbidden(db, parsed_id, "delete")

            logger.info("Idea %s deleted by %s", parsed_id, caller.user_id)
            return DeleteResponse(message="Idea deleted", id=deleted_id)

        except IdeaVerseError:
            raise
        except Exception as e:
            logger.error("Database error deleting idea %s: %s", parsed_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the idea. Please try again.",
                context={"idea_id": str(parsed_id)},
            ) from e

    async def _raise_missing_or_forbidden(
        self,
        db: AsyncSession,
        idea_id: uuid.UUID,
        action: str,
    ) -> None:
        """Called after a gated write touched no row: 404 if absent, else 403."""
        result = await db.execute(select(Idea.id).where(Idea.id == idea_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="idea", resource_id=str(idea_id))
        raise ForbiddenError(action=action)


# ── Singleton Instance ────────────────────────────────────────────────────
idea_service = IdeaService()
