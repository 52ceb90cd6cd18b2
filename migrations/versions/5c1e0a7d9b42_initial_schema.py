"""initial schema

Revision ID: 5c1e0a7d9b42
Revises:
Create Date: 2026-10-18 09:12:41.204518

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e0a7d9b42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_CONTENT_STATUSES = "status IN ('pending', 'approved', 'rejected', 'hidden')"


def _moderation_columns() -> list[sa.Column]:
    return [
        sa.Column("is_reported", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "moderated_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("moderated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("moderation_reason", sa.String(length=200), nullable=True),
    ]


def upgrade() -> None:
    """Create users, confessions, tags, votes and comments."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=30), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("confessions_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("votes_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reputation", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username"),
        sa.CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_users_role"),
        sa.CheckConstraint(
            "status IN ('active', 'suspended', 'banned')", name="ck_users_status"
        ),
    )
    op.create_index("ix_users_reputation", "users", ["reputation"])

    op.create_table(
        "confessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=100), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "author_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="approved"),
        sa.Column("heaven_votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hell_votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("views_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("shares_count", sa.Integer(), nullable=False, server_default="0"),
        *_moderation_columns(),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("featured_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(_CONTENT_STATUSES, name="ck_confessions_status"),
        sa.CheckConstraint(
            "category IN ('personal', 'work', 'relationship', 'family', 'moral', 'other')",
            name="ck_confessions_category",
        ),
        sa.CheckConstraint(
            "heaven_votes >= 0 AND hell_votes >= 0 AND comments_count >= 0 "
            "AND views_count >= 0 AND shares_count >= 0",
            name="ck_confessions_counters",
        ),
    )
    op.create_index("ix_confessions_author_id", "confessions", ["author_id"])
    op.create_index("ix_confessions_expires_at", "confessions", ["expires_at"])
    op.create_index("ix_confessions_status_created", "confessions", ["status", "created_at"])
    op.create_index(
        "ix_confessions_category_created", "confessions", ["category", "created_at"]
    )
    op.create_index("ix_confessions_featured", "confessions", ["featured", "featured_at"])

    op.create_table(
        "confession_tags",
        sa.Column(
            "confession_id",
            sa.Integer(),
            sa.ForeignKey("confessions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag", sa.String(length=20), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_confession_tags_tag", "confession_tags", ["tag"])

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "confession_id",
            sa.Integer(),
            sa.ForeignKey("confessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=8), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "confession_id", name="uq_votes_user_confession"),
        sa.CheckConstraint("type IN ('heaven', 'hell')", name="ck_votes_type"),
    )
    op.create_index("ix_votes_confession_type", "votes", ["confession_id", "type"])
    op.create_index("ix_votes_user_created", "votes", ["user_id", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "author_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "confession_id",
            sa.Integer(),
            sa.ForeignKey("confessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "parent_comment_id",
            sa.Integer(),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="approved"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dislikes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("replies_count", sa.Integer(), nullable=False, server_default="0"),
        *_moderation_columns(),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("edit_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(_CONTENT_STATUSES, name="ck_comments_status"),
        sa.CheckConstraint(
            "likes >= 0 AND dislikes >= 0 AND replies_count >= 0",
            name="ck_comments_counters",
        ),
    )
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("ix_comments_confession_created", "comments", ["confession_id", "created_at"])
    op.create_index("ix_comments_parent_created", "comments", ["parent_comment_id", "created_at"])
    op.create_index("ix_comments_status_created", "comments", ["status", "created_at"])


def downgrade() -> None:
    """Drop every board table."""
    op.drop_table("comments")
    op.drop_table("votes")
    op.drop_table("confession_tags")
    op.drop_table("confessions")
    op.drop_table("users")
