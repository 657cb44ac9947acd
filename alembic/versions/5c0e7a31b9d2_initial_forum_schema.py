"""Initial forum schema: users, content, likes, saved, rate limits

Revision ID: 5c0e7a31b9d2
Revises:
Create Date: 2026-10-17 09:12:41.507318

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c0e7a31b9d2'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _exactly_one(*columns: str) -> str:
    terms = " + ".join(
        f"(CASE WHEN {col} IS NOT NULL THEN 1 ELSE 0 END)" for col in columns
    )
    return f"{terms} = 1"


def _creator_fk() -> sa.Column:
    return sa.Column(
        "creator_id", sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False,
    )


def _target_fk(name: str, table: str) -> sa.Column:
    return sa.Column(
        name, sa.Integer,
        sa.ForeignKey(f"{table}.id", ondelete="CASCADE"), nullable=True,
    )


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # --- topics / questions ---
    for table in ("topics", "questions"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(100), nullable=False),
            sa.Column("content", sa.Text, nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            _creator_fk(),
            sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
        )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.func.now(),
        ),
        _creator_fk(),
        sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
    )

    # --- replies ---
    op.create_table(
        "replies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        _creator_fk(),
        _target_fk("topic_id", "topics"),
        _target_fk("question_id", "questions"),
        sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
        sa.CheckConstraint(
            _exactly_one("topic_id", "question_id"), name="ck_replies_single_target"
        ),
    )
    op.create_index("ix_replies_topic_id", "replies", ["topic_id"])
    op.create_index("ix_replies_question_id", "replies", ["question_id"])

    # --- likes ---
    op.create_table(
        "likes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer,
            sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False,
        ),
        _target_fk("event_id", "events"),
        _target_fk("topic_id", "topics"),
        _target_fk("question_id", "questions"),
        _target_fk("reply_id", "replies"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_likes_event_user"),
        sa.UniqueConstraint("topic_id", "user_id", name="uq_likes_topic_user"),
        sa.UniqueConstraint("question_id", "user_id", name="uq_likes_question_user"),
        sa.UniqueConstraint("reply_id", "user_id", name="uq_likes_reply_user"),
        sa.CheckConstraint(
            _exactly_one("event_id", "topic_id", "question_id", "reply_id"),
            name="ck_likes_single_target",
        ),
    )
    op.create_index("ix_likes_user_id", "likes", ["user_id"])

    # --- saved ---
    op.create_table(
        "saved",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer,
            sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False,
        ),
        _target_fk("event_id", "events"),
        _target_fk("topic_id", "topics"),
        _target_fk("question_id", "questions"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_saved_event_user"),
        sa.UniqueConstraint("topic_id", "user_id", name="uq_saved_topic_user"),
        sa.UniqueConstraint("question_id", "user_id", name="uq_saved_question_user"),
        sa.CheckConstraint(
            _exactly_one("event_id", "topic_id", "question_id"),
            name="ck_saved_single_target",
        ),
    )
    op.create_index("ix_saved_user_id", "saved", ["user_id"])

    # --- rate_limit_events ---
    op.create_table(
        "rate_limit_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_rate_limit_client_ts", "rate_limit_events",
        ["client_id", sa.text("timestamp DESC")],
    )
    op.create_index("ix_rate_limit_ts", "rate_limit_events", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_rate_limit_ts", table_name="rate_limit_events")
    op.drop_index("ix_rate_limit_client_ts", table_name="rate_limit_events")
    op.drop_table("rate_limit_events")
    op.drop_index("ix_saved_user_id", table_name="saved")
    op.drop_table("saved")
    op.drop_index("ix_likes_user_id", table_name="likes")
    op.drop_table("likes")
    op.drop_index("ix_replies_question_id", table_name="replies")
    op.drop_index("ix_replies_topic_id", table_name="replies")
    op.drop_table("replies")
    op.drop_table("events")
    op.drop_table("questions")
    op.drop_table("topics")
    op.drop_table("users")
