"""
IdeaVerse Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract between client and backend.
How:   FastAPI validates request bodies against these models, serializes
       responses through them and generates the OpenAPI document from them.

Wire format:
    Python attributes are snake_case; JSON keys are camelCase
    (imageUrl, ownerId, likeCount, likedBy, createdAt) through an alias
    generator. populate_by_name lets server code construct models by field name.

Patch restriction:
    IdeaUpdate forbids unknown keys. likeCount, likedBy, ownerId, id and
    createdAt are therefore rejected with 400 instead of being written; the
    liker set changes only through the like toggle.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ideaverse.models.idea import IdeaCategory


class CamelModel(BaseModel):
    """Base for every schema exposed over HTTP."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _reject_nul(value: str, field: str) -> str:
    # PostgreSQL text columns cannot store NUL
    if "\x00" in value:
        raise ValueError(f"{field} must not contain NUL characters")
    return value


def _require_text(value: Optional[str], field: str, strip: bool = True) -> str:
    """
    Non-null, not blank, storable.

    Titles are stored trimmed; descriptions keep the author's whitespace
    and only have to contain something besides it.
    """
    if value is None:
        raise ValueError(f"{field} cannot be null")
    _reject_nul(value, field)
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field} must not be empty")
    return stripped if strip else value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class IdeaCreate(CamelModel):
    """
    What:  Body of POST /api/ideas.

    The owner is never taken from the body; it comes from the verified bearer
    token. Legacy clients that still post userId are tolerated (ignored).
    ownerName / userName, when present, becomes the display copy of the
    owner's name; otherwise the token's display name is used.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    title: str = Field(max_length=200, description="Short headline")
    description: str = Field(description="Full write-up")
    category: IdeaCategory = Field(description="One of the fixed idea categories")
    image_url: str = Field(default="", description="Optional cover image URL")
    owner_name: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("ownerName", "userName", "owner_name"),
        description="Display name to show as the author",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _require_text(v, "description", strip=False)

    @field_validator("image_url", mode="before")
    @classmethod
    def normalize_image_url(cls, v: Optional[str]) -> str:
        if v is None:
            return ""
        if not isinstance(v, str):
            return v  # left for the str check to reject
        return _reject_nul(v.strip(), "imageUrl")

    @field_validator("owner_name")
    @classmethod
    def normalize_owner_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _reject_nul(v.strip(), "ownerName") or None


class IdeaUpdate(CamelModel):
    """
    What:  Body of PUT /api/ideas/{id}. Every field is optional; only the
           fields present in the body are written.

    Allowed keys: title, description, category, imageUrl. Anything else is a
    400 validation error.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    category: Optional[IdeaCategory] = None
    image_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        return _require_text(v, "title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> str:
        return _require_text(v, "description", strip=False)

    @field_validator("category", mode="before")
    @classmethod
    def reject_null_category(cls, v):
        if v is None:
            raise ValueError("category cannot be null")
        return v

    @field_validator("image_url", mode="before")
    @classmethod
    def normalize_image_url(cls, v: Optional[str]) -> str:
        if v is None:
            return ""
        if not isinstance(v, str):
            return v  # left for the str check to reject
        return _reject_nul(v.strip(), "imageUrl")

    def changes(self) -> dict:
        """Column name → new value, for the fields the client actually sent."""
        values = self.model_dump(exclude_unset=True)
        if "category" in values:
            values["category"] = IdeaCategory(values["category"]).value
        return values


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class IdeaResponse(CamelModel):
    """
    What:  Full representation of an idea.
    Who:   Returned by every idea endpoint that yields an idea.

    likedBy is returned sorted so the same liker set always serializes identically.
    """

    id: uuid.UUID
    title: str
    description: str
    category: IdeaCategory
    image_url: str = ""
    owner_id: str
    owner_name: str
    like_count: int = Field(ge=0)
    liked_by: List[str] = Field(default_factory=list)
    created_at: datetime

    @field_validator("liked_by")
    @classmethod
    def sort_liked_by(cls, v: List[str]) -> List[str]:
        return sorted(set(v))

    @classmethod
    def from_model(cls, idea) -> "IdeaResponse":
        return cls(
            id=idea.id,
            title=idea.title,
            description=idea.description,
            category=idea.category,
            image_url=idea.image_url or "",
            owner_id=idea.owner_id,
            owner_name=idea.owner_name,
            like_count=idea.like_count,
            liked_by=list(idea.liked_by or []),
            created_at=idea.created_at,
        )


class LikeToggleResponse(BaseModel):
    """
    What:  Result of POST /api/ideas/{id}/like.
    How:   `likes` is the new cardinality of the liker set; `liked` is the
           caller's membership after the toggle.
    """

    likes: int = Field(ge=0, description="Like count after the toggle")
    liked: bool = Field(description="Whether the caller likes the idea after the toggle")
    message: str = Field(description="Human-readable confirmation")


class LikedStatusResponse(BaseModel):
    """What:  Result of GET /api/ideas/{id}/liked."""

    liked: bool


class DeleteResponse(BaseModel):
    """What:  Confirmation returned by DELETE /api/ideas/{id}."""

    message: str = "Idea deleted"
    id: uuid.UUID


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "Not authorized to delete this idea",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for load balancers and monitoring.
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    identity_provider: str = Field(
        description="Identity provider: available, unavailable, circuit_open, not_configured"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
