"""
agora.api.rate_limit — Per-User Mutation Throttle
==================================================

Sliding window over the ``rate_limit_events`` table, keyed by the id of the
authenticated user.  Only POST/PUT/PATCH/DELETE count; reads are free.
Off by default.  Setting ``rate_limit_requests`` in ``config.yaml`` turns it
on (that many per ``rate_limit_window_seconds``); a user at the limit then
gets HTTP 429 with a ``Retry-After`` header.

Events live in the database rather than in process memory, so every worker
sees the same window and a restart does not reset it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from agora.api.deps import current_user, get_config, get_engine
from agora.config import AgoraConfig
from agora.database.engine import get_session, run_db
from agora.database.models import RateLimitEvent, User

logger = logging.getLogger(__name__)

_COUNTED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class WindowState:
    """Snapshot of one user's window."""
    limit: int
    used: int
    retry_after: int  # seconds until a slot frees up; 0 when not blocked

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def blocked(self) -> bool:
        return self.used >= self.limit


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class RateLimiter:
    """``max_requests`` mutations per ``window_seconds`` per client id."""

    def __init__(self, max_requests: int, window_seconds: int, *, engine: Engine) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.engine = engine

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    def _live_timestamps(self, session: Session, client_id: str, now: datetime) -> list[datetime]:
        """Drop expired events for *client_id* and return the rest, oldest first."""
        session.execute(
            delete(RateLimitEvent).where(
                RateLimitEvent.client_id == client_id,
                RateLimitEvent.timestamp < now - self.window,
            )
        )
        rows = session.scalars(
            select(RateLimitEvent.timestamp)
            .where(RateLimitEvent.client_id == client_id)
            .order_by(RateLimitEvent.timestamp.asc())
        ).all()
        return [_as_utc(ts) for ts in rows]

    def _state(self, timestamps: list[datetime], now: datetime) -> WindowState:
        used = len(timestamps)
        retry_after = 0
        if used >= self.max_requests:
            frees_at = timestamps[0] + self.window
            retry_after = max(1, int((frees_at - now).total_seconds()) + 1)
        return WindowState(limit=self.max_requests, used=used, retry_after=retry_after)

    def peek(self, client_id: str) -> WindowState:
        """Current window for *client_id* without counting a request."""
        now = datetime.now(UTC)
        with get_session(self.engine) as session:
            return self._state(self._live_timestamps(session, client_id, now), now)

    def hit(self, client_id: str) -> WindowState:
        """Count one request unless the window is full.

        Returns the state *before* the request was counted; when it is
        ``blocked`` nothing was recorded.
        """
        now = datetime.now(UTC)
        with get_session(self.engine) as session:
            state = self._state(self._live_timestamps(session, client_id, now), now)
            if not state.blocked:
                session.add(RateLimitEvent(client_id=client_id, timestamp=now))
        return state

    def reset(self, client_id: str | None = None) -> None:
        """Forget recorded events for *client_id*, or for everyone."""
        stmt = delete(RateLimitEvent)
        if client_id is not None:
            stmt = stmt.where(RateLimitEvent.client_id == client_id)
        with get_session(self.engine) as session:
            session.execute(stmt)


def get_rate_limiter(
    engine: Engine = Depends(get_engine),
    cfg: AgoraConfig = Depends(get_config),
) -> RateLimiter | None:
    """The configured limiter, or ``None`` when no limit is set."""
    if cfg.rate_limit_requests is None:
        return None
    return RateLimiter(
        max_requests=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
        engine=engine,
    )


# ---------------------------------------------------------------------------
# FastAPI dependency: runs after the app-wide auth gate
# ---------------------------------------------------------------------------
async def rate_limited(
    request: Request,
    user: User = Depends(current_user),
    limiter: RateLimiter | None = Depends(get_rate_limiter),
) -> User:
    """Count a mutation against the current user and return that user.

    Attach with ``dependencies=[Depends(rate_limited)]``.  A no-op unless
    ``rate_limit_requests`` is configured.
    """
    if limiter is None or request.method not in _COUNTED_METHODS:
        return user

    state = await run_db(limiter.hit, str(user.id))
    if state.blocked:
        logger.warning(
            "Throttled user %d on %s %s (%d per %ds)",
            user.id, request.method, request.url.path,
            limiter.max_requests, limiter.window_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "rate_limit_exceeded",
                "message": (
                    f"At most {limiter.max_requests} changes per "
                    f"{limiter.window_seconds} seconds."
                ),
                "retry_after": state.retry_after,
            },
            headers={"Retry-After": str(state.retry_after)},
        )
    return user
