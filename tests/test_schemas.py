"""
IdeaVerse Backend — Schema Validation Tests
=============================================

What:  Tests for the request/response models in ideaverse/schemas/idea.py.

What we test:
    ✅ Required fields, title trimming, category enum
    ✅ Descriptions keep their whitespace; NUL is rejected in every text field
    ✅ Update body only accepts title/description/category/imageUrl
    ✅ camelCase serialization, sorted likedBy
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from ideaverse.models.idea import IdeaCategory
from ideaverse.schemas.idea import IdeaCreate, IdeaResponse, IdeaUpdate


class TestIdeaCreate:

    def test_trims_and_defaults(self):
        payload = IdeaCreate.model_validate(
            {"title": "  Idea  ", "description": " Body ", "category": "Education", "imageUrl": None}
        )

        assert payload.title == "Idea"
        assert payload.description == " Body "
        assert payload.category is IdeaCategory.EDUCATION
        assert payload.image_url == ""
        assert payload.owner_name is None

    def test_legacy_owner_fields(self):
        payload = IdeaCreate.model_validate(
            {"title": "T", "description": "D", "category": "Other", "userId": "ignored", "userName": " Nick "}
        )

        assert payload.owner_name == "Nick"
        assert not hasattr(payload, "user_id")

    @pytest.mark.parametrize("field", ["title", "description", "category"])
    def test_required(self, field):
        body = {"title": "T", "description": "D", "category": "Other"}
        del body[field]

        with pytest.raises(ValidationError):
            IdeaCreate.model_validate(body)

    def test_blank_title(self):
        with pytest.raises(ValidationError, match="title must not be empty"):
            IdeaCreate.model_validate({"title": "   ", "description": "D", "category": "Other"})

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            IdeaCreate.model_validate({"title": "T", "description": "D", "category": "Sports"})

    def test_title_length(self):
        with pytest.raises(ValidationError):
            IdeaCreate.model_validate({"title": "x" * 201, "description": "D", "category": "Other"})

    def test_description_keeps_layout(self):
        text = "Steps:\n\n  1. plan\n  2. build\n"
        payload = IdeaCreate.model_validate({"title": "T", "description": text, "category": "Other"})

        assert payload.description == text

    def test_whitespace_only_description(self):
        with pytest.raises(ValidationError, match="description must not be empty"):
            IdeaCreate.model_validate({"title": "T", "description": " \n\t ", "category": "Other"})

    @pytest.mark.parametrize(
        "field, value",
        [
            ("title", "a\x00b"),
            ("description", "\x00"),
            ("imageUrl", "https://img.test/a\x00.png"),
            ("ownerName", "Nick\x00"),
        ],
    )
    def test_rejects_nul(self, field, value):
        body = {"title": "T", "description": "D", "category": "Other", field: value}

        with pytest.raises(ValidationError, match="must not contain NUL"):
            IdeaCreate.model_validate(body)

    def test_non_string_image_url(self):
        with pytest.raises(ValidationError):
            IdeaCreate.model_validate({"title": "T", "description": "D", "category": "Other", "imageUrl": 5})


class TestIdeaUpdate:

    def test_only_sent_fields_change(self):
        patch = IdeaUpdate.model_validate({"description": "New", "category": "Business"})

        assert patch.changes() == {"description": "New", "category": "Business"}

    def test_empty_patch(self):
        assert IdeaUpdate.model_validate({}).changes() == {}

    @pytest.mark.parametrize("field", ["likeCount", "likedBy", "ownerId", "id", "createdAt"])
    def test_rejects_non_patchable_fields(self, field):
        with pytest.raises(ValidationError):
            IdeaUpdate.model_validate({field: 1})

    @pytest.mark.parametrize("field", ["title", "description", "category"])
    def test_rejects_null(self, field):
        with pytest.raises(ValidationError):
            IdeaUpdate.model_validate({field: None})

    def test_clearing_image(self):
        assert IdeaUpdate.model_validate({"imageUrl": None}).changes() == {"image_url": ""}

    @pytest.mark.parametrize("field", ["title", "description", "imageUrl"])
    def test_rejects_nul(self, field):
        with pytest.raises(ValidationError, match="must not contain NUL"):
            IdeaUpdate.model_validate({field: "x\x00y"})

    def test_description_is_not_trimmed(self):
        assert IdeaUpdate.model_validate({"description": "  indented"}).changes() == {
            "description": "  indented"
        }


class TestIdeaResponse:

    def test_camel_case_dump(self):
        response = IdeaResponse(
            id=uuid4(),
            title="T",
            description="D",
            category="Health",
            image_url="",
            owner_id="u1",
            owner_name="User One",
            like_count=2,
            liked_by=["zed", "amy", "amy"],
            created_at=datetime.now(timezone.utc),
        )

        dumped = response.model_dump(by_alias=True, mode="json")

        assert set(dumped) == {
            "id", "title", "description", "category", "imageUrl",
            "ownerId", "ownerName", "likeCount", "likedBy", "createdAt",
        }
        assert dumped["category"] == "Health"
        assert dumped["likedBy"] == ["amy", "zed"]
