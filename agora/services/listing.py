"""
agora.services.listing — Filter/sort resolver
==============================================

Every ``getAll…WithFilters`` endpoint goes through here:

1. :func:`parse_sort_mode` rejects anything outside the five modes with a
   ``BadRequestError`` before any query runs.
2. A candidate set is fetched (title search for topics/questions/events,
   parent scope for replies).
3. :func:`sort_items` orders it in memory.

Python's sort is stable, so ties keep the order the query produced.
"""

from __future__ import annotations

import enum
import unicodedata
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Engine, select

from agora.database.engine import guarded_session
from agora.database.models import ContentKind, Reply
from agora.errors import BadRequestError, NotFoundError
from agora.services.kinds import REPLY_PARENTS, KINDS, get_spec


class SortMode(enum.StrEnum):
    ALL = "all"
    POPULAR = "popular"
    RECENT = "recent"
    NAME = "name"
    OLD = "old"


def parse_sort_mode(value: str | None) -> SortMode:
    """Validate the ``q`` query parameter."""
    try:
        return SortMode(value)
    except ValueError:
        raise BadRequestError("Invalid Query Parameter") from None


def collation_key(text: str) -> tuple[str, str]:
    """Locale-aware ordering key: accents and case are ignored first, the raw
    text breaks remaining ties so the order is total."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def sort_items(
    items: Sequence[Any],
    mode: SortMode,
    *,
    name_attr: str,
    time_attr: str,
    likes_attr: str = "likes_count",
) -> list[Any]:
    """Return *items* ordered according to *mode*."""
    rows = list(items)
    if mode is SortMode.POPULAR:
        rows.sort(key=lambda r: getattr(r, likes_attr), reverse=True)
    elif mode is SortMode.RECENT:
        rows.sort(key=lambda r: getattr(r, time_attr), reverse=True)
    elif mode is SortMode.OLD:
        rows.sort(key=lambda r: getattr(r, time_attr))
    elif mode is SortMode.NAME:
        rows.sort(key=lambda r: collation_key(getattr(r, name_attr)))
    return rows


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def list_filtered(
    engine: Engine,
    kind: ContentKind,
    mode: SortMode,
    search: str | None = None,
) -> list[Any]:
    """Topics/questions/events whose title contains *search* (any case),
    ordered by *mode*."""
    spec = get_spec(kind)
    if spec.kind is ContentKind.REPLY:
        raise BadRequestError("Replies are listed per topic or question")

    model = spec.model
    stmt = select(model)
    if search:
        stmt = stmt.where(model.title.icontains(search, autoescape=True))

    with guarded_session(engine, f"filter {spec.label.lower()}s") as session:
        rows = session.scalars(stmt).all()

    return sort_items(rows, mode, name_attr=spec.name_attr, time_attr=spec.time_attr)


def list_replies(
    engine: Engine,
    parent_kind: ContentKind,
    parent_id: int,
    mode: SortMode,
) -> list[Reply]:
    """Replies under one topic or question, ordered by *mode*.

    An unknown parent yields ``NotFoundError`` rather than an empty list.
    """
    if parent_kind not in REPLY_PARENTS:
        raise BadRequestError("Replies belong to topics or questions")

    parent = KINDS[parent_kind]
    reply_spec = KINDS[ContentKind.REPLY]
    column = getattr(Reply, parent.join_column)

    with guarded_session(engine, f"filter replies for {parent.label.lower()}") as session:
        if session.get(parent.model, parent_id) is None:
            raise NotFoundError(f"{parent.label} not found")
        rows = session.scalars(select(Reply).where(column == parent_id)).all()

    return sort_items(
        rows, mode, name_attr=reply_spec.name_attr, time_attr=reply_spec.time_attr
    )
