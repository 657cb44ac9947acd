"""
agora.api.routes.discussions — Topic endpoints
===============================================
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import Engine

from agora.api.deps import get_engine
from agora.api.rate_limit import rate_limited
from agora.api.serializers import topic_dict
from agora.database.models import ContentKind
from agora.errors import BadRequestError
from agora.services import content_service, interaction_service
from agora.services.listing import list_filtered, parse_sort_mode

router = APIRouter(
    prefix="/discussions",
    tags=["discussions"],
    dependencies=[Depends(rate_limited)],
)

KIND = ContentKind.TOPIC


# ---------------------------------------------------------------------------
# Pydantic schemas: fields are optional so absence is a 400, not a 422
# ---------------------------------------------------------------------------
class TopicCreate(BaseModel):
    Title: str | None = None
    Content: str | None = None
    CreatedAt: datetime | None = None
    CreatorID: int | None = None


class TopicUpdate(BaseModel):
    TopicID: int | None = None
    Title: str | None = None
    Content: str | None = None


class TopicInteraction(BaseModel):
    TopicID: int | None = Field(
        default=None, validation_alias=AliasChoices("TopicID", "TargetID")
    )
    UserID: int | None = None


def _pair(body: TopicInteraction) -> tuple[int, int]:
    if body.TopicID is None or body.UserID is None:
        raise BadRequestError("Missing Data")
    return body.TopicID, body.UserID


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/getAllTopics")
def get_all_topics(engine: Engine = Depends(get_engine)):
    return [topic_dict(row) for row in content_service.get_all(engine, KIND)]


@router.get("/getAllTopicsWithFilters")
def get_all_topics_with_filters(
    q: str | None = None,
    search: str | None = None,
    engine: Engine = Depends(get_engine),
):
    mode = parse_sort_mode(q)
    return [topic_dict(row) for row in list_filtered(engine, KIND, mode, search)]


@router.get("/getOneTopic")
def get_one_topic(
    topic_id: int = Query(alias="TopicID"),
    engine: Engine = Depends(get_engine),
):
    return topic_dict(content_service.get_one(engine, KIND, topic_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
@router.post("/createTopic", status_code=201)
def create_topic(body: TopicCreate, engine: Engine = Depends(get_engine)):
    row = content_service.create(
        engine,
        KIND,
        title=body.Title,
        content=body.Content,
        created_at=body.CreatedAt,
        creator_id=body.CreatorID,
    )
    return topic_dict(row)


@router.put("/updateTopic")
def update_topic(body: TopicUpdate, engine: Engine = Depends(get_engine)):
    if body.TopicID is None:
        raise BadRequestError("Missing Data")
    row = content_service.update(
        engine, KIND, body.TopicID, title=body.Title, content=body.Content
    )
    return topic_dict(row)


@router.delete("/deleteTopic", status_code=204)
def delete_topic(
    topic_id: int = Query(alias="TopicID"),
    engine: Engine = Depends(get_engine),
):
    content_service.delete(engine, KIND, topic_id)
    return None


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
@router.post("/likeTopic", status_code=201)
def like_topic(body: TopicInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.like(engine, KIND, *_pair(body))
    return {"message": "Topic liked"}


@router.post("/unlikeTopic", status_code=201)
def unlike_topic(body: TopicInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unlike(engine, KIND, *_pair(body))
    return {"message": "Topic unliked"}


@router.post("/saveTopic", status_code=201)
def save_topic(body: TopicInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.save(engine, KIND, *_pair(body))
    return {"message": "Topic saved"}


@router.post("/unsaveTopic", status_code=201)
def unsave_topic(body: TopicInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unsave(engine, KIND, *_pair(body))
    return {"message": "Topic unsaved"}
