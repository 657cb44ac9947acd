"""
agora.api.routes.replies — Reply endpoints
===========================================

A reply hangs off exactly one topic or one question.  Creation and filtered
listing come in a topic flavour and a question flavour; everything else is
addressed by ``ReplyID`` alone.  Replies can be liked but not saved.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import Engine

from agora.api.deps import get_engine
from agora.api.rate_limit import rate_limited
from agora.api.serializers import reply_dict
from agora.database.models import ContentKind
from agora.errors import BadRequestError
from agora.services import content_service, interaction_service
from agora.services.listing import list_replies, parse_sort_mode

router = APIRouter(
    prefix="/replies",
    tags=["replies"],
    dependencies=[Depends(rate_limited)],
)

KIND = ContentKind.REPLY


class ReplyCreate(BaseModel):
    Content: str | None = None
    CreatedAt: datetime | None = None
    CreatorID: int | None = None
    TargetID: int | None = None


class ReplyUpdate(BaseModel):
    ReplyID: int | None = None
    Content: str | None = None


class ReplyInteraction(BaseModel):
    ReplyID: int | None = Field(
        default=None, validation_alias=AliasChoices("ReplyID", "TargetID")
    )
    UserID: int | None = None


def _create(engine: Engine, parent_kind: ContentKind, body: ReplyCreate) -> dict:
    row = content_service.create_reply(
        engine,
        parent_kind,
        target_id=body.TargetID,
        content=body.Content,
        created_at=body.CreatedAt,
        creator_id=body.CreatorID,
    )
    return reply_dict(row)


def _pair(body: ReplyInteraction) -> tuple[int, int]:
    if body.ReplyID is None or body.UserID is None:
        raise BadRequestError("Missing Data")
    return body.ReplyID, body.UserID


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/getAllReplies")
def get_all_replies(engine: Engine = Depends(get_engine)):
    return [reply_dict(row) for row in content_service.get_all(engine, KIND)]


@router.get("/getOneReply")
def get_one_reply(
    reply_id: int = Query(alias="ReplyID"),
    engine: Engine = Depends(get_engine),
):
    return reply_dict(content_service.get_one(engine, KIND, reply_id))


@router.get("/getAllRepliesForTopicWithFilters")
def get_replies_for_topic(
    q: str | None = None,
    topic_id: int | None = Query(default=None, alias="TopicID"),
    engine: Engine = Depends(get_engine),
):
    mode = parse_sort_mode(q)
    if topic_id is None:
        raise BadRequestError("Missing Data")
    rows = list_replies(engine, ContentKind.TOPIC, topic_id, mode)
    return [reply_dict(row) for row in rows]


@router.get("/getAllRepliesForQuestionWithFilters")
def get_replies_for_question(
    q: str | None = None,
    question_id: int | None = Query(default=None, alias="QuestionID"),
    engine: Engine = Depends(get_engine),
):
    mode = parse_sort_mode(q)
    if question_id is None:
        raise BadRequestError("Missing Data")
    rows = list_replies(engine, ContentKind.QUESTION, question_id, mode)
    return [reply_dict(row) for row in rows]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
@router.post("/createReplyForTopic", status_code=201)
def create_reply_for_topic(body: ReplyCreate, engine: Engine = Depends(get_engine)):
    return _create(engine, ContentKind.TOPIC, body)


@router.post("/createReplyForQuestion", status_code=201)
def create_reply_for_question(body: ReplyCreate, engine: Engine = Depends(get_engine)):
    return _create(engine, ContentKind.QUESTION, body)


@router.put("/updateReply")
def update_reply(body: ReplyUpdate, engine: Engine = Depends(get_engine)):
    if body.ReplyID is None:
        raise BadRequestError("Missing Data")
    row = content_service.update(engine, KIND, body.ReplyID, content=body.Content)
    return reply_dict(row)


@router.delete("/deleteReply", status_code=204)
def delete_reply(
    reply_id: int = Query(alias="ReplyID"),
    engine: Engine = Depends(get_engine),
):
    content_service.delete(engine, KIND, reply_id)
    return None


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
@router.post("/likeReply", status_code=201)
def like_reply(body: ReplyInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.like(engine, KIND, *_pair(body))
    return {"message": "Reply liked"}


@router.post("/unlikeReply", status_code=201)
def unlike_reply(body: ReplyInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unlike(engine, KIND, *_pair(body))
    return {"message": "Reply unliked"}
