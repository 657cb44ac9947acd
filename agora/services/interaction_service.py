"""
agora.services.interaction_service — Like / unlike / save / unsave
===================================================================

One parameterized implementation keyed by ``(kind, target_id)`` replaces a
like/unlike/save/unsave quartet per resource.

Likes touch two things: the target's denormalized ``likes_count`` and a row
in ``likes``.  They are written in **two separate transactions**, counter
first.  If the second write fails (duplicate like, unlike of something never
liked) the caller gets ``InternalError`` and the counter keeps its new
value; the drift is logged so it can be reconciled with
:func:`recount_likes`.  Saves only touch the ``saved`` join table.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete, func, select, update

from agora.database.engine import guarded_session
from agora.database.models import ContentKind, Like, Saved
from agora.errors import BadRequestError, InternalError, NotFoundError
from agora.services.kinds import KindSpec, get_spec

logger = logging.getLogger(__name__)


def _bump_counter(engine: Engine, spec: KindSpec, target_id: int, delta: int) -> None:
    model = spec.model
    with guarded_session(engine, f"adjust {spec.label.lower()} likes") as session:
        result = session.execute(
            update(model)
            .where(model.id == target_id)
            .values(likes_count=model.likes_count + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning("likes_count update matched no %s with id %d", spec.label.lower(), target_id)
            raise InternalError()


def _saveable(kind: ContentKind) -> KindSpec:
    spec = get_spec(kind)
    if not spec.saveable:
        raise BadRequestError(f"{spec.label} cannot be saved")
    return spec


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------
def like(engine: Engine, kind: ContentKind, target_id: int, user_id: int) -> None:
    """Increment the counter, then insert the ``likes`` row."""
    spec = get_spec(kind)
    _bump_counter(engine, spec, target_id, +1)
    try:
        with guarded_session(engine, f"like {spec.label.lower()}") as session:
            session.add(Like(user_id=user_id, **{spec.join_column: target_id}))
    except InternalError:
        logger.warning(
            "likes_count of %s %d was incremented but the like row for user %d "
            "was not written; counter may drift",
            spec.label, target_id, user_id,
        )
        raise


def unlike(engine: Engine, kind: ContentKind, target_id: int, user_id: int) -> None:
    """Decrement the counter, then delete the ``likes`` row.

    No existence pre-check: a missing like row is a failure reported after
    the counter has already moved.
    """
    spec = get_spec(kind)
    column = getattr(Like, spec.join_column)
    _bump_counter(engine, spec, target_id, -1)
    with guarded_session(engine, f"unlike {spec.label.lower()}") as session:
        result = session.execute(
            delete(Like).where(column == target_id, Like.user_id == user_id)
        )
        deleted = result.rowcount
    if deleted == 0:
        logger.warning(
            "likes_count of %s %d was decremented but user %d had no like row; "
            "counter may drift",
            spec.label, target_id, user_id,
        )
        raise InternalError()


def recount_likes(engine: Engine, kind: ContentKind, target_id: int) -> int:
    """Reset ``likes_count`` to the number of ``likes`` rows and return it."""
    spec = get_spec(kind)
    column = getattr(Like, spec.join_column)
    model = spec.model
    with guarded_session(engine, f"recount {spec.label.lower()} likes") as session:
        row = session.get(model, target_id)
        if row is None:
            raise NotFoundError(f"{spec.label} not found")
        count = session.scalar(
            select(func.count()).select_from(Like).where(column == target_id)
        ) or 0
        if row.likes_count != count:
            logger.info(
                "Reconciled %s %d likes_count %d → %d",
                spec.label, target_id, row.likes_count, count,
            )
        row.likes_count = count
    return count


# ---------------------------------------------------------------------------
# Saves
# ---------------------------------------------------------------------------
def save(engine: Engine, kind: ContentKind, target_id: int, user_id: int) -> None:
    spec = _saveable(kind)
    with guarded_session(engine, f"save {spec.label.lower()}") as session:
        session.add(Saved(user_id=user_id, **{spec.join_column: target_id}))


def unsave(engine: Engine, kind: ContentKind, target_id: int, user_id: int) -> None:
    spec = _saveable(kind)
    column = getattr(Saved, spec.join_column)
    with guarded_session(engine, f"unsave {spec.label.lower()}") as session:
        result = session.execute(
            delete(Saved).where(column == target_id, Saved.user_id == user_id)
        )
        if result.rowcount == 0:
            logger.warning(
                "unsave: user %d had not saved %s %d",
                user_id, spec.label.lower(), target_id,
            )
            raise InternalError()
