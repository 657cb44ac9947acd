"""
agora.database.models — SQLAlchemy 2.0 Data Models
===================================================

Tables:
- users              — Forum members (bcrypt password hash, unique email)
- topics             — Discussion threads
- questions          — Q&A posts
- events             — Dated, located community events
- replies            — Answers to exactly one topic or question
- likes              — Join rows user → one of event/topic/question/reply
- saved              — Join rows user → one of event/topic/question
- rate_limit_events  — Durable mutation events for per-user throttling

Every content table carries a denormalized ``likes_count`` that application
code keeps in step with the ``likes`` join rows.
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Agora ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ContentKind(enum.StrEnum):
    """Resource kinds that can be liked (all four) or saved (all but replies)."""
    TOPIC = "topic"
    QUESTION = "question"
    EVENT = "event"
    REPLY = "reply"


def _exactly_one(*columns: str) -> str:
    """SQL expression that is true when exactly one of *columns* is set.

    Written with CASE so it compiles on both PostgreSQL and SQLite.
    """
    terms = " + ".join(
        f"(CASE WHEN {col} IS NOT NULL THEN 1 ELSE 0 END)" for col in columns
    )
    return f"{terms} = 1"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


# ---------------------------------------------------------------------------
# Join rows: declared before content so content relationships can use them
# ---------------------------------------------------------------------------
class Like(Base):
    """One user liking exactly one event, topic, question or reply."""
    __tablename__ = "likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    event_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), default=None
    )
    topic_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), default=None
    )
    question_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), default=None
    )
    reply_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("replies.id", ondelete="CASCADE"), default=None
    )

    user: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_likes_event_user"),
        UniqueConstraint("topic_id", "user_id", name="uq_likes_topic_user"),
        UniqueConstraint("question_id", "user_id", name="uq_likes_question_user"),
        UniqueConstraint("reply_id", "user_id", name="uq_likes_reply_user"),
        CheckConstraint(
            _exactly_one("event_id", "topic_id", "question_id", "reply_id"),
            name="ck_likes_single_target",
        ),
        Index("ix_likes_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Like id={self.id} user={self.user_id}>"


class Saved(Base):
    """One user bookmarking exactly one event, topic or question."""
    __tablename__ = "saved"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    event_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), default=None
    )
    topic_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), default=None
    )
    question_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), default=None
    )

    user: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_saved_event_user"),
        UniqueConstraint("topic_id", "user_id", name="uq_saved_topic_user"),
        UniqueConstraint("question_id", "user_id", name="uq_saved_question_user"),
        CheckConstraint(
            _exactly_one("event_id", "topic_id", "question_id"),
            name="ck_saved_single_target",
        ),
        Index("ix_saved_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Saved id={self.id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------
class Reply(Base):
    __tablename__ = "replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    creator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    topic_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), default=None
    )
    question_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), default=None
    )
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    creator: Mapped[User] = relationship(lazy="selectin")
    likes: Mapped[list[Like]] = relationship(
        lazy="selectin", cascade="all, delete"
    )

    __table_args__ = (
        CheckConstraint(
            _exactly_one("topic_id", "question_id"), name="ck_replies_single_target"
        ),
        Index("ix_replies_topic_id", "topic_id"),
        Index("ix_replies_question_id", "question_id"),
    )

    def __repr__(self) -> str:
        return f"<Reply id={self.id} topic={self.topic_id} question={self.question_id}>"


# ---------------------------------------------------------------------------
# Content items: topics, questions, events
# ---------------------------------------------------------------------------
class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    creator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    creator: Mapped[User] = relationship(lazy="selectin")
    likes: Mapped[list[Like]] = relationship(
        lazy="selectin", cascade="all, delete"
    )
    saved: Mapped[list[Saved]] = relationship(
        lazy="selectin", cascade="all, delete"
    )
    replies: Mapped[list[Reply]] = relationship(
        lazy="selectin", cascade="all, delete"
    )

    def __repr__(self) -> str:
        return f"<Topic id={self.id} title={self.title!r}>"


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    creator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    creator: Mapped[User] = relationship(lazy="selectin")
    likes: Mapped[list[Like]] = relationship(
        lazy="selectin", cascade="all, delete"
    )
    saved: Mapped[list[Saved]] = relationship(
        lazy="selectin", cascade="all, delete"
    )
    replies: Mapped[list[Reply]] = relationship(
        lazy="selectin", cascade="all, delete"
    )

    def __repr__(self) -> str:
        return f"<Question id={self.id} title={self.title!r}>"


class Event(Base):
    """A community event.  Sorted by ``event_date`` rather than insert time."""
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    creator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    creator: Mapped[User] = relationship(lazy="selectin")
    likes: Mapped[list[Like]] = relationship(
        lazy="selectin", cascade="all, delete"
    )
    saved: Mapped[list[Saved]] = relationship(
        lazy="selectin", cascade="all, delete"
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} date={self.event_date}>"


# ---------------------------------------------------------------------------
# RateLimitEvent: durable mutation events for per-user throttling
# ---------------------------------------------------------------------------
class RateLimitEvent(Base):
    __tablename__ = "rate_limit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_rate_limit_client_ts", "client_id", timestamp.desc()),
        Index("ix_rate_limit_ts", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<RateLimitEvent client={self.client_id!r} ts={self.timestamp}>"
