"""
tests/test_rate_limit.py — Per-User Mutation Rate Limiting Tests
=================================================================
When ``rate_limit_requests`` is configured, mutations are limited per user
(per ``rate_limit_window_seconds``) and rejected with 429 plus ``Retry-After``.
Reads are never counted.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import TEST_ROUNDS, auth_header, make_token, make_topic, make_user
from sqlalchemy.orm import Session

from agora.api.rate_limit import RateLimiter, get_rate_limiter
from agora.config import AgoraConfig
from agora.database.models import RateLimitEvent


# ---------------------------------------------------------------------------
# Unit tests for the RateLimiter core (DB-backed)
# ---------------------------------------------------------------------------
class TestRateLimiter:
    """Sliding-window limiter in isolation, on the shared SQLite engine."""

    @pytest.fixture(autouse=True)
    def _limiter(self, db_engine):
        self.limiter = RateLimiter(max_requests=5, window_seconds=60, engine=db_engine)
        self.engine = db_engine

    def test_allows_requests_within_limit(self):
        for _ in range(5):
            assert not self.limiter.hit("1").blocked
        assert self.limiter.peek("1").used == 5

    def test_blocks_once_window_is_full(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, engine=self.engine)
        for _ in range(3):
            limiter.hit("1")

        state = limiter.hit("1")
        assert state.blocked
        assert state.remaining == 0
        assert 0 < state.retry_after <= 61

    def test_blocked_hit_is_not_recorded(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, engine=self.engine)
        limiter.hit("1")
        limiter.hit("1")
        limiter.hit("1")
        assert limiter.peek("1").used == 1

    def test_separate_users_have_separate_windows(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60, engine=self.engine)
        limiter.hit("1")
        limiter.hit("1")

        assert limiter.peek("1").blocked
        assert not limiter.peek("2").blocked

    def test_remaining_count_decreases(self):
        assert self.limiter.peek("1").remaining == 5
        self.limiter.hit("1")
        assert self.limiter.peek("1").remaining == 4

    def test_events_outside_window_are_pruned(self):
        stale = datetime.now(UTC) - timedelta(seconds=120)
        with Session(self.engine) as s:
            s.add_all(RateLimitEvent(client_id="1", timestamp=stale) for _ in range(5))
            s.commit()

        state = self.limiter.peek("1")
        assert not state.blocked
        assert state.remaining == 5

    def test_reset_clears_specific_user(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60, engine=self.engine)
        limiter.hit("1")
        limiter.hit("1")
        limiter.hit("2")

        limiter.reset("1")

        assert limiter.peek("1").used == 0
        assert limiter.peek("2").remaining == 1

    def test_reset_all(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, engine=self.engine)
        limiter.hit("1")
        limiter.hit("2")

        limiter.reset()

        assert not limiter.peek("1").blocked
        assert not limiter.peek("2").blocked


# ---------------------------------------------------------------------------
# Integration tests with FastAPI TestClient
# ---------------------------------------------------------------------------
class TestRateLimitDependency:
    """Test the ``rate_limited`` dependency end-to-end via TestClient."""

    @pytest.fixture
    def app_config(self) -> AgoraConfig:
        return AgoraConfig(bcrypt_rounds=TEST_ROUNDS, rate_limit_requests=3)

    @pytest.fixture
    def limiter(self, db_engine):
        return RateLimiter(max_requests=3, window_seconds=60, engine=db_engine)

    def _update(self, client, headers, topic_id):
        return client.put(
            "/discussions/updateTopic",
            headers=headers,
            json={"TopicID": topic_id, "Title": "Edited"},
        )

    def test_get_requests_not_rate_limited(self, client, headers, limiter, member):
        for _ in range(3):
            limiter.hit(str(member.id))

        for _ in range(5):
            resp = client.get("/discussions/getAllTopics", headers=headers)
            assert resp.status_code == 200

    def test_mutations_count_until_blocked(self, client, db_engine, headers, member):
        topic = make_topic(db_engine, member)

        for _ in range(3):
            assert self._update(client, headers, topic.id).status_code == 200

        resp = self._update(client, headers, topic.id)
        assert resp.status_code == 429

    def test_returns_429_with_payload_and_header(self, client, db_engine, headers, limiter, member):
        topic = make_topic(db_engine, member)
        for _ in range(3):
            limiter.hit(str(member.id))

        resp = self._update(client, headers, topic.id)
        assert resp.status_code == 429

        body = resp.json()
        assert body["detail"]["error"] == "rate_limit_exceeded"
        assert "retry_after" in body["detail"]
        assert "Retry-After" in resp.headers

    def test_different_users_have_separate_limits(self, client, db_engine, headers, limiter, member):
        topic = make_topic(db_engine, member)
        other = make_user(db_engine, email="other@example.com")
        for _ in range(3):
            limiter.hit(str(member.id))

        assert self._update(client, headers, topic.id).status_code == 429

        other_headers = auth_header(make_token(other))
        assert self._update(client, other_headers, topic.id).status_code == 200

    def test_public_routes_are_not_limited(self, client):
        for i in range(5):
            resp = client.post(
                "/auth/signup",
                json={
                    "FirstName": "N",
                    "LastName": "M",
                    "Email": f"user{i}@example.com",
                    "Password": "pw",
                },
            )
            assert resp.status_code == 201


class TestThrottleDisabledByDefault:
    """Without ``rate_limit_requests`` in config.yaml nothing is throttled."""

    def test_no_limiter_without_configured_limit(self, db_engine):
        assert get_rate_limiter(engine=db_engine, cfg=AgoraConfig()) is None

    def test_many_likes_in_a_row_are_all_accepted(self, client, db_engine, headers, member):
        topics = [make_topic(db_engine, member) for _ in range(12)]

        for topic in topics:
            resp = client.post(
                "/discussions/likeTopic",
                headers=headers,
                json={"TopicID": topic.id, "UserID": member.id},
            )
            assert resp.status_code == 201

        with Session(db_engine) as s:
            assert s.query(RateLimitEvent).count() == 0
