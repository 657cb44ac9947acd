"""
tests/test_interaction_service.py — Likes, Saves and Counter Drift
===================================================================
Likes are written in two transactions (counter, then join row), so a
failing second step leaves the counter moved.  These tests pin that
behaviour down and check that ``recount_likes`` repairs it.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import make_event, make_question, make_topic, make_user
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora.database.models import ContentKind, Like, Saved
from agora.errors import BadRequestError, InternalError, NotFoundError
from agora.services import content_service, interaction_service


def _likes_count(engine, kind, target_id) -> int:
    return content_service.get_one(engine, kind, target_id).likes_count


def _rows(engine, model) -> int:
    with Session(engine) as s:
        return s.scalar(select(func.count()).select_from(model))


@pytest.fixture
def alice(db_engine):
    return make_user(db_engine, email="alice@example.com")


@pytest.fixture
def bob(db_engine):
    return make_user(db_engine, email="bob@example.com")


class TestLike:
    @pytest.mark.parametrize("factory, kind", [
        (make_topic, ContentKind.TOPIC),
        (make_question, ContentKind.QUESTION),
        (make_event, ContentKind.EVENT),
    ])
    def test_like_increments_and_records(self, db_engine, alice, factory, kind):
        target = factory(db_engine, alice)
        interaction_service.like(db_engine, kind, target.id, alice.id)

        assert _likes_count(db_engine, kind, target.id) == 1
        fetched = content_service.get_one(db_engine, kind, target.id)
        assert [like.user_id for like in fetched.likes] == [alice.id]

    def test_two_users_two_likes(self, db_engine, alice, bob):
        topic = make_topic(db_engine, alice)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, bob.id)
        assert _likes_count(db_engine, ContentKind.TOPIC, topic.id) == 2

    def test_like_reply(self, db_engine, alice):
        topic = make_topic(db_engine, alice)
        reply = content_service.create_reply(
            db_engine, ContentKind.TOPIC, target_id=topic.id, content="r",
            created_at=datetime(2023, 11, 8, tzinfo=UTC), creator_id=alice.id,
        )
        interaction_service.like(db_engine, ContentKind.REPLY, reply.id, alice.id)
        assert _likes_count(db_engine, ContentKind.REPLY, reply.id) == 1

    def test_duplicate_like_fails_but_counter_stays_bumped(self, db_engine, alice):
        topic = make_topic(db_engine, alice)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)

        with pytest.raises(InternalError):
            interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)

        assert _likes_count(db_engine, ContentKind.TOPIC, topic.id) == 2
        assert _rows(db_engine, Like) == 1

    def test_like_missing_target_is_internal_error_and_writes_nothing(self, db_engine, alice):
        with pytest.raises(InternalError):
            interaction_service.like(db_engine, ContentKind.QUESTION, 404, alice.id)
        assert _rows(db_engine, Like) == 0

    def test_unlike_missing_target_is_internal_error(self, db_engine, alice):
        with pytest.raises(InternalError):
            interaction_service.unlike(db_engine, ContentKind.REPLY, 404, alice.id)


class TestUnlike:
    def test_like_then_unlike_restores_state(self, db_engine, alice):
        event = make_event(db_engine, alice)
        interaction_service.like(db_engine, ContentKind.EVENT, event.id, alice.id)
        interaction_service.unlike(db_engine, ContentKind.EVENT, event.id, alice.id)

        assert _likes_count(db_engine, ContentKind.EVENT, event.id) == 0
        assert _rows(db_engine, Like) == 0

    def test_unlike_without_like_fails_after_decrement(self, db_engine, alice):
        topic = make_topic(db_engine, alice)

        with pytest.raises(InternalError):
            interaction_service.unlike(db_engine, ContentKind.TOPIC, topic.id, alice.id)

        assert _likes_count(db_engine, ContentKind.TOPIC, topic.id) == -1

    def test_unlike_only_removes_that_users_like(self, db_engine, alice, bob):
        topic = make_topic(db_engine, alice)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, bob.id)
        interaction_service.unlike(db_engine, ContentKind.TOPIC, topic.id, bob.id)

        fetched = content_service.get_one(db_engine, ContentKind.TOPIC, topic.id)
        assert fetched.likes_count == 1
        assert [like.user_id for like in fetched.likes] == [alice.id]


class TestRecountLikes:
    def test_recount_repairs_drift(self, db_engine, alice):
        topic = make_topic(db_engine, alice)
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)
        with pytest.raises(InternalError):
            interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, alice.id)

        assert interaction_service.recount_likes(db_engine, ContentKind.TOPIC, topic.id) == 1
        assert _likes_count(db_engine, ContentKind.TOPIC, topic.id) == 1

    def test_recount_missing_target(self, db_engine):
        with pytest.raises(NotFoundError):
            interaction_service.recount_likes(db_engine, ContentKind.EVENT, 1)


class TestSave:
    def test_save_and_unsave(self, db_engine, alice):
        question = make_question(db_engine, alice)
        interaction_service.save(db_engine, ContentKind.QUESTION, question.id, alice.id)

        fetched = content_service.get_one(db_engine, ContentKind.QUESTION, question.id)
        assert [s.user_id for s in fetched.saved] == [alice.id]
        assert fetched.likes_count == 0

        interaction_service.unsave(db_engine, ContentKind.QUESTION, question.id, alice.id)
        assert _rows(db_engine, Saved) == 0

    def test_double_save_is_internal_error(self, db_engine, alice):
        topic = make_topic(db_engine, alice)
        interaction_service.save(db_engine, ContentKind.TOPIC, topic.id, alice.id)
        with pytest.raises(InternalError):
            interaction_service.save(db_engine, ContentKind.TOPIC, topic.id, alice.id)

    def test_unsave_without_save_is_internal_error(self, db_engine, alice):
        topic = make_topic(db_engine, alice)
        with pytest.raises(InternalError):
            interaction_service.unsave(db_engine, ContentKind.TOPIC, topic.id, alice.id)

    def test_replies_cannot_be_saved(self, db_engine, alice):
        with pytest.raises(BadRequestError, match="cannot be saved"):
            interaction_service.save(db_engine, ContentKind.REPLY, 1, alice.id)
