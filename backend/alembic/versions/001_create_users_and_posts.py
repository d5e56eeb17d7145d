"""Create users and posts tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema: `users` (accounts, avatar, post counter) and `posts`
       (content, category, thumbnail, creator).
How:   Portable column types (sa.Uuid, timezone-aware DateTime) so the same
       revision runs on PostgreSQL and SQLite. Ids are generated by the app.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, comment="Lowercased login email"),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column(
            "avatar",
            sa.String(255),
            nullable=True,
            comment="Generated filename inside the media store",
        ),
        sa.Column(
            "posts",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Number of posts authored by this user",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Backs the duplicate-email check and login lookup
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=True, comment="One of Category values"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "thumbnail",
            sa.String(255),
            nullable=False,
            comment="Generated filename inside the media store",
        ),
        sa.Column("creator", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["creator"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # GET /api/posts orders by updated_at DESC
    op.create_index("idx_posts_updated_at", "posts", ["updated_at"])
    op.create_index("idx_posts_category", "posts", ["category"])
    op.create_index("idx_posts_creator", "posts", ["creator"])


def downgrade() -> None:
    op.drop_index("idx_posts_creator", table_name="posts")
    op.drop_index("idx_posts_category", table_name="posts")
    op.drop_index("idx_posts_updated_at", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
