"""Create ideas table

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

What:  Creates the `ideas` table with the liker set stored as TEXT[].
How:   CHECK constraints keep category inside the fixed set and pin
       like_count = cardinality(liked_by); two indexes serve the
       newest-first listing and the category filter.

Rollback: downgrade() drops the table and every idea in it.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ("Technology", "Business", "Education", "Health", "Entertainment", "Other")


def upgrade() -> None:
    op.create_table(
        "ideas",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
            comment="Opaque unique identifier",
        ),
        sa.Column("title", sa.String(200), nullable=False, comment="Short headline, non-empty"),
        sa.Column("description", sa.Text(), nullable=False, comment="Free-form write-up, non-empty"),
        sa.Column(
            "category",
            sa.String(32),
            nullable=False,
            comment="One of: " + ", ".join(CATEGORIES),
        ),
        sa.Column(
            "image_url",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Optional cover image URL; empty string when absent",
        ),
        sa.Column(
            "owner_id",
            sa.Text(),
            nullable=False,
            comment="Identity provider subject of the creator; immutable",
        ),
        sa.Column(
            "owner_name",
            sa.Text(),
            nullable=False,
            comment="Creator display name captured at creation time",
        ),
        sa.Column(
            "like_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Always equal to cardinality(liked_by)",
        ),
        sa.Column(
            "liked_by",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'"),
            comment="Identities that currently like this idea",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this idea was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "category IN (" + ", ".join(f"'{c}'" for c in CATEGORIES) + ")",
            name="ck_ideas_category",
        ),
        sa.CheckConstraint("like_count = cardinality(liked_by)", name="ck_ideas_like_count"),
    )

    op.create_index("idx_ideas_created_at", "ideas", [sa.text("created_at DESC")])
    op.create_index(
        "idx_ideas_category_created_at",
        "ideas",
        ["category", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_ideas_category_created_at", table_name="ideas")
    op.drop_index("idx_ideas_created_at", table_name="ideas")
    op.drop_table("ideas")
