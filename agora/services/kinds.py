"""
agora.services.kinds — Per-kind metadata for generic content operations
========================================================================

Topics, questions, events and replies share one set of CRUD, listing and
like/save code.  Everything that differs between them (model class, join
column, which fields are required or editable, what to sort by) lives in a
:class:`KindSpec` looked up by :class:`~agora.database.models.ContentKind`.
"""

from __future__ import annotations

from dataclasses import dataclass

from agora.database.models import (
    Base,
    ContentKind,
    Event,
    Question,
    Reply,
    Topic,
)
from agora.errors import BadRequestError


@dataclass(frozen=True, slots=True)
class KindSpec:
    kind: ContentKind
    model: type[Base]
    label: str                      # Human name used in error messages
    join_column: str                # FK column on likes/saved
    name_attr: str                  # Sorted by for ``q=name``
    time_attr: str                  # Sorted by for ``q=recent`` / ``q=old``
    required: tuple[str, ...]       # Must be present on create
    editable: tuple[str, ...]       # May be changed on update
    saveable: bool = True


KINDS: dict[ContentKind, KindSpec] = {
    ContentKind.TOPIC: KindSpec(
        kind=ContentKind.TOPIC,
        model=Topic,
        label="Topic",
        join_column="topic_id",
        name_attr="title",
        time_attr="created_at",
        required=("title", "content", "created_at", "creator_id"),
        editable=("title", "content"),
    ),
    ContentKind.QUESTION: KindSpec(
        kind=ContentKind.QUESTION,
        model=Question,
        label="Question",
        join_column="question_id",
        name_attr="title",
        time_attr="created_at",
        required=("title", "content", "created_at", "creator_id"),
        editable=("title", "content"),
    ),
    ContentKind.EVENT: KindSpec(
        kind=ContentKind.EVENT,
        model=Event,
        label="Event",
        join_column="event_id",
        name_attr="title",
        time_attr="event_date",
        required=("title", "description", "event_date", "location", "creator_id"),
        editable=("title", "description", "event_date", "location"),
    ),
    ContentKind.REPLY: KindSpec(
        kind=ContentKind.REPLY,
        model=Reply,
        label="Reply",
        join_column="reply_id",
        name_attr="content",
        time_attr="created_at",
        required=("content", "created_at", "creator_id"),
        editable=("content",),
        saveable=False,
    ),
}

# Kinds a reply may hang off.
REPLY_PARENTS: frozenset[ContentKind] = frozenset({ContentKind.TOPIC, ContentKind.QUESTION})


def get_spec(kind: ContentKind | str) -> KindSpec:
    """Return the :class:`KindSpec` for *kind* (enum member or its value)."""
    try:
        return KINDS[ContentKind(kind)]
    except ValueError:
        raise BadRequestError(f"Unknown content kind: {kind}") from None


def require_fields(values: dict, required: tuple[str, ...]) -> None:
    """Raise ``BadRequestError("Missing Data")`` if any *required* key is
    absent, ``None`` or an empty string."""
    for key in required:
        value = values.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise BadRequestError("Missing Data")
