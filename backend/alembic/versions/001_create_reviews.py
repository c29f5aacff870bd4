"""Create reviews table.

Revision ID: 001
Revises:
Create Date: 2025-12-09

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

review_status = postgresql.ENUM(
    "pending",
    "approved",
    "trashed",
    name="review_status",
    create_type=False,
)


def upgrade() -> None:
    """Create the review_status enum and the reviews table."""
    review_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("shop_domain", sa.String(255), nullable=False),
        # Subject
        sa.Column("product_id", sa.BigInteger, nullable=False),
        sa.Column("product_handle", sa.String(255), nullable=True),
        # Content
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text, nullable=False),
        # Author
        sa.Column("author_name", sa.String(255), nullable=False),
        sa.Column("author_last_name", sa.String(255), nullable=True),
        sa.Column("author_email", sa.String(320), nullable=True),
        sa.Column("media_url", sa.String(1024), nullable=True),
        # Moderation status
        sa.Column(
            "status",
            review_status,
            nullable=False,
            server_default="pending",
        ),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # Indexes
    op.create_index("ix_reviews_shop_domain", "reviews", ["shop_domain"])
    op.create_index(
        "ix_reviews_shop_status_created",
        "reviews",
        ["shop_domain", "status", "created_at"],
    )
    op.create_index("ix_reviews_shop_product", "reviews", ["shop_domain", "product_id"])

    # Check constraints
    op.create_check_constraint(
        "ck_reviews_rating_range",
        "reviews",
        "rating >= 1 AND rating <= 5",
    )
    op.create_check_constraint(
        "ck_reviews_body_not_empty",
        "reviews",
        "char_length(body) > 0",
    )
    op.create_check_constraint(
        "ck_reviews_author_name_not_empty",
        "reviews",
        "char_length(author_name) > 0",
    )


def downgrade() -> None:
    """Drop reviews table and its enum."""
    op.drop_table("reviews")
    review_status.drop(op.get_bind(), checkfirst=True)
