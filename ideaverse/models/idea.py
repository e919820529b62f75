"""
IdeaVerse Backend — Idea SQLAlchemy Model
===========================================

What:  ORM model representing the `ideas` table in PostgreSQL.
Who:   Used by IdeaService for every read and write, by the seed CLI and by Alembic.

Table Design:
    - UUID primary key, generated server-side
    - category: short string restricted by a CHECK constraint to IdeaCategory values
    - owner_id / owner_name: the verified identity at creation time; owner_name
      is a display copy and may drift from the identity provider's current value.
      Both are TEXT: they come from token claims whose length the provider,
      not this service, decides (same as the liked_by members)
    - liked_by: TEXT[] holding the liker set (unique members, order irrelevant)
    - like_count: derived from liked_by; a CHECK constraint pins
      like_count = cardinality(liked_by), so the store rejects any write that
      would let the two disagree
    - created_at: UTC with timezone, set once

    Index on created_at DESC serves the newest-first listing;
    (category, created_at DESC) serves the category filter.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from ideaverse.database import Base


class IdeaCategory(str, enum.Enum):
    """Closed set of categories an idea can be filed under."""

    TECHNOLOGY = "Technology"
    BUSINESS = "Business"
    EDUCATION = "Education"
    HEALTH = "Health"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


_CATEGORY_SQL_LIST = ", ".join(f"'{value}'" for value in IdeaCategory.values())


class Idea(Base):
    """
    A user-submitted idea.

    Lifecycle:
        1. Created by IdeaService.create_idea (like_count = 0, liked_by = {})
        2. liked_by / like_count change only through IdeaService.toggle_like
        3. title / description / category / image_url change through the
           owner-only update path
        4. Hard-deleted by the owner-only delete path (no soft delete)
    """

    __tablename__ = "ideas"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
        comment="Opaque unique identifier",
    )

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Short headline, non-empty",
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-form write-up, non-empty",
    )

    category: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="One of: " + ", ".join(IdeaCategory.values()),
    )

    image_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Optional cover image URL; empty string when absent",
    )

    owner_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Identity provider subject of the creator; immutable",
    )

    owner_name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Creator display name captured at creation time",
    )

    like_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Always equal to cardinality(liked_by)",
    )

    liked_by: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
        comment="Identities that currently like this idea",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this idea was created (UTC)",
    )

    __table_args__ = (
        CheckConstraint(f"category IN ({_CATEGORY_SQL_LIST})", name="ck_ideas_category"),
        CheckConstraint("like_count = cardinality(liked_by)", name="ck_ideas_like_count"),
    )

    def __repr__(self) -> str:
        return (
            f"<Idea(id={self.id}, category='{self.category}', "
            f"owner_id='{self.owner_id}', like_count={self.like_count})>"
        )


Index("idx_ideas_created_at", Idea.created_at.desc())
Index("idx_ideas_category_created_at", Idea.category, Idea.created_at.desc())
