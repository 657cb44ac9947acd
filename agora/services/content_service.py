"""
agora.services.content_service — CRUD for topics, questions, events, replies
=============================================================================

All four kinds share the same shape:

* ``create`` validates required fields (``BadRequestError("Missing Data")``)
  before opening a session, inserts, and returns the row with its relations.
* ``get_one`` / ``update`` / ``delete`` look the row up first and raise
  ``NotFoundError`` when it is absent.  Lookups happen inside the guarded
  session, but only database errors are turned into ``InternalError``.
* ``update`` touches only the kind's editable fields that were supplied.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from agora.database.engine import guarded_session
from agora.database.models import ContentKind, Reply
from agora.errors import BadRequestError, NotFoundError
from agora.services.kinds import KINDS, REPLY_PARENTS, KindSpec, get_spec, require_fields

logger = logging.getLogger(__name__)


def _fetch(session: Session, spec: KindSpec, item_id: int) -> Any:
    """Load one row with its eager relationships freshly populated."""
    row = session.scalars(
        select(spec.model)
        .where(spec.model.id == item_id)
        .execution_options(populate_existing=True)
    ).one_or_none()
    if row is None:
        raise NotFoundError(f"{spec.label} not found")
    return row


def get_all(engine: Engine, kind: ContentKind) -> list[Any]:
    """Every row of *kind*, alphabetical by title (content for replies)."""
    spec = get_spec(kind)
    order_col = getattr(spec.model, spec.name_attr)
    with guarded_session(engine, f"list {spec.label.lower()}s") as session:
        return list(session.scalars(select(spec.model).order_by(order_col.asc())).all())


def get_one(engine: Engine, kind: ContentKind, item_id: int) -> Any:
    spec = get_spec(kind)
    with guarded_session(engine, f"get {spec.label.lower()}") as session:
        return _fetch(session, spec, item_id)


def create(engine: Engine, kind: ContentKind, **fields: Any) -> Any:
    """Insert a topic, question or event.

    *fields* use model attribute names (``title``, ``content``,
    ``created_at``, ``creator_id``; events take ``description``,
    ``event_date`` and ``location`` instead of ``content``/``created_at``).
    """
    spec = get_spec(kind)
    if spec.kind is ContentKind.REPLY:
        raise BadRequestError("Use create_reply for replies")
    require_fields(fields, spec.required)

    row = spec.model(**{key: fields[key] for key in spec.required})
    with guarded_session(engine, f"create {spec.label.lower()}") as session:
        session.add(row)
        session.flush()
        created = _fetch(session, spec, row.id)

    logger.info("%s %d created by user %d", spec.label, created.id, created.creator_id)
    return created


def create_reply(
    engine: Engine,
    parent_kind: ContentKind,
    *,
    target_id: int | None,
    content: str | None,
    created_at: Any,
    creator_id: int | None,
) -> Reply:
    """Insert a reply under a topic or question (``target_id``)."""
    if parent_kind not in REPLY_PARENTS:
        raise BadRequestError("Replies belong to topics or questions")
    reply_spec = KINDS[ContentKind.REPLY]
    values = {
        "content": content,
        "created_at": created_at,
        "creator_id": creator_id,
        "target_id": target_id,
    }
    require_fields(values, reply_spec.required + ("target_id",))

    parent = KINDS[parent_kind]
    with guarded_session(engine, f"create reply for {parent.label.lower()}") as session:
        if session.get(parent.model, target_id) is None:
            raise NotFoundError(f"{parent.label} not found")
        row = Reply(
            content=content,
            created_at=created_at,
            creator_id=creator_id,
            **{parent.join_column: target_id},
        )
        session.add(row)
        session.flush()
        created = _fetch(session, reply_spec, row.id)

    logger.info("Reply %d created on %s %d", created.id, parent.label.lower(), target_id)
    return created


def update(engine: Engine, kind: ContentKind, item_id: int, **fields: Any) -> Any:
    """Apply the supplied editable *fields*; unknown or ``None`` values are
    ignored, so creator and counters can never change here."""
    spec = get_spec(kind)
    changes = {
        key: value
        for key, value in fields.items()
        if key in spec.editable and value is not None
    }
    with guarded_session(engine, f"update {spec.label.lower()}") as session:
        row = _fetch(session, spec, item_id)
        for key, value in changes.items():
            setattr(row, key, value)
        session.flush()
        return _fetch(session, spec, item_id)


def delete(engine: Engine, kind: ContentKind, item_id: int) -> None:
    """Delete one row; its likes, saves and replies go with it."""
    spec = get_spec(kind)
    with guarded_session(engine, f"delete {spec.label.lower()}") as session:
        row = session.get(spec.model, item_id)
        if row is None:
            raise NotFoundError(f"{spec.label} not found")
        session.delete(row)
    logger.info("%s %d deleted", spec.label, item_id)
