"""
tests/test_content_service.py — Generic CRUD Across Content Kinds
==================================================================
Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from conftest import make_event, make_question, make_topic, make_user
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora.database.models import ContentKind, Like, Reply, Saved, Topic
from agora.errors import BadRequestError, InternalError, NotFoundError
from agora.services import content_service, interaction_service


@pytest.fixture
def author(db_engine):
    return make_user(db_engine)


class TestCreate:
    def test_topic_round_trips_with_zero_likes(self, db_engine, author):
        topic = make_topic(db_engine, author, title="Hello")

        fetched = content_service.get_one(db_engine, ContentKind.TOPIC, topic.id)
        assert fetched.title == "Hello"
        assert fetched.likes_count == 0
        assert fetched.creator.email == author.email
        assert fetched.likes == [] and fetched.saved == [] and fetched.replies == []

    @pytest.mark.parametrize("missing", ["title", "content", "created_at", "creator_id"])
    def test_topic_requires_every_field(self, db_engine, author, missing):
        with pytest.raises(BadRequestError, match="Missing Data"):
            make_topic(db_engine, author, **{missing: None})

    def test_blank_title_counts_as_missing(self, db_engine, author):
        with pytest.raises(BadRequestError, match="Missing Data"):
            make_question(db_engine, author, title="   ")

    def test_event_keeps_date_and_location(self, db_engine, author):
        event = make_event(db_engine, author, event_date=date(2024, 5, 4), location="Park")
        assert event.event_date == date(2024, 5, 4)
        assert event.location == "Park"
        assert event.created_at is not None

    def test_event_requires_location(self, db_engine, author):
        with pytest.raises(BadRequestError):
            make_event(db_engine, author, location=None)

    def test_unknown_creator_is_an_internal_error(self, db_engine, author):
        with pytest.raises(InternalError):
            make_topic(db_engine, author, creator_id=424242)

    def test_replies_go_through_create_reply(self, db_engine, author):
        with pytest.raises(BadRequestError):
            content_service.create(db_engine, ContentKind.REPLY, content="x")


class TestCreateReply:
    def _reply(self, engine, author, parent_kind, target_id, **overrides):
        fields = dict(
            target_id=target_id,
            content="A reply",
            created_at=datetime(2023, 11, 8, tzinfo=UTC),
            creator_id=author.id,
        )
        fields.update(overrides)
        return content_service.create_reply(engine, parent_kind, **fields)

    def test_reply_to_topic_sets_only_topic_id(self, db_engine, author):
        topic = make_topic(db_engine, author)
        reply = self._reply(db_engine, author, ContentKind.TOPIC, topic.id)
        assert reply.topic_id == topic.id
        assert reply.question_id is None

    def test_reply_to_question_sets_only_question_id(self, db_engine, author):
        question = make_question(db_engine, author)
        reply = self._reply(db_engine, author, ContentKind.QUESTION, question.id)
        assert reply.question_id == question.id
        assert reply.topic_id is None

    def test_missing_target_is_bad_request(self, db_engine, author):
        with pytest.raises(BadRequestError, match="Missing Data"):
            self._reply(db_engine, author, ContentKind.TOPIC, None)

    def test_unknown_parent_is_not_found(self, db_engine, author):
        with pytest.raises(NotFoundError, match="Question not found"):
            self._reply(db_engine, author, ContentKind.QUESTION, 777)

    def test_events_do_not_take_replies(self, db_engine, author):
        event = make_event(db_engine, author)
        with pytest.raises(BadRequestError):
            self._reply(db_engine, author, ContentKind.EVENT, event.id)

    def test_parent_reply_count_grows(self, db_engine, author):
        topic = make_topic(db_engine, author)
        self._reply(db_engine, author, ContentKind.TOPIC, topic.id)
        self._reply(db_engine, author, ContentKind.TOPIC, topic.id)

        fetched = content_service.get_one(db_engine, ContentKind.TOPIC, topic.id)
        assert len(fetched.replies) == 2


class TestReadUpdateDelete:
    def test_get_one_missing_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError, match="Event not found"):
            content_service.get_one(db_engine, ContentKind.EVENT, 1)

    def test_get_all_is_alphabetical(self, db_engine, author):
        make_topic(db_engine, author, title="b")
        make_topic(db_engine, author, title="a")
        titles = [t.title for t in content_service.get_all(db_engine, ContentKind.TOPIC)]
        assert titles == ["a", "b"]

    def test_update_changes_only_supplied_editable_fields(self, db_engine, author):
        topic = make_topic(db_engine, author, title="Old", content="Keep me")
        updated = content_service.update(
            db_engine, ContentKind.TOPIC, topic.id,
            title="New", content=None, creator_id=999, likes_count=50,
        )
        assert updated.title == "New"
        assert updated.content == "Keep me"
        assert updated.creator_id == author.id
        assert updated.likes_count == 0

    def test_update_event_date(self, db_engine, author):
        event = make_event(db_engine, author)
        updated = content_service.update(
            db_engine, ContentKind.EVENT, event.id, event_date=date(2025, 1, 1)
        )
        assert updated.event_date == date(2025, 1, 1)

    def test_update_missing_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError):
            content_service.update(db_engine, ContentKind.QUESTION, 5, title="x")

    def test_delete_missing_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError, match="Reply not found"):
            content_service.delete(db_engine, ContentKind.REPLY, 5)

    def test_delete_topic_takes_replies_likes_and_saves_with_it(self, db_engine, author):
        topic = make_topic(db_engine, author)
        reply = content_service.create_reply(
            db_engine, ContentKind.TOPIC,
            target_id=topic.id, content="r",
            created_at=datetime(2023, 11, 8, tzinfo=UTC), creator_id=author.id,
        )
        interaction_service.like(db_engine, ContentKind.TOPIC, topic.id, author.id)
        interaction_service.like(db_engine, ContentKind.REPLY, reply.id, author.id)
        interaction_service.save(db_engine, ContentKind.TOPIC, topic.id, author.id)

        content_service.delete(db_engine, ContentKind.TOPIC, topic.id)

        with Session(db_engine) as s:
            assert s.get(Topic, topic.id) is None
            assert s.scalar(select(func.count()).select_from(Reply)) == 0
            assert s.scalar(select(func.count()).select_from(Like)) == 0
            assert s.scalar(select(func.count()).select_from(Saved)) == 0
