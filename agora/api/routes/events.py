"""
agora.api.routes.events — Event endpoints
==========================================

Events carry a calendar ``Date`` and a ``Location`` instead of a creation
timestamp supplied by the client; ``recent``/``old`` sort on ``Date``.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import Engine

from agora.api.deps import get_engine
from agora.api.rate_limit import rate_limited
from agora.api.serializers import event_dict
from agora.database.models import ContentKind
from agora.errors import BadRequestError
from agora.services import content_service, interaction_service
from agora.services.listing import list_filtered, parse_sort_mode

router = APIRouter(
    prefix="/events",
    tags=["events"],
    dependencies=[Depends(rate_limited)],
)

KIND = ContentKind.EVENT


class EventCreate(BaseModel):
    Title: str | None = None
    Description: str | None = None
    Date: date | None = None
    Location: str | None = None
    CreatorID: int | None = None


class EventUpdate(BaseModel):
    EventID: int | None = None
    Title: str | None = None
    Description: str | None = None
    Date: date | None = None
    Location: str | None = None


class EventInteraction(BaseModel):
    EventID: int | None = Field(
        default=None, validation_alias=AliasChoices("EventID", "TargetID")
    )
    UserID: int | None = None


def _pair(body: EventInteraction) -> tuple[int, int]:
    if body.EventID is None or body.UserID is None:
        raise BadRequestError("Missing Data")
    return body.EventID, body.UserID


@router.get("/getAllEvents")
def get_all_events(engine: Engine = Depends(get_engine)):
    return [event_dict(row) for row in content_service.get_all(engine, KIND)]


@router.get("/getAllEventsWithFilters")
def get_all_events_with_filters(
    q: str | None = None,
    search: str | None = None,
    engine: Engine = Depends(get_engine),
):
    mode = parse_sort_mode(q)
    return [event_dict(row) for row in list_filtered(engine, KIND, mode, search)]


@router.get("/getOneEvent")
def get_one_event(
    event_id: int = Query(alias="EventID"),
    engine: Engine = Depends(get_engine),
):
    return event_dict(content_service.get_one(engine, KIND, event_id))


@router.post("/createEvent", status_code=201)
def create_event(body: EventCreate, engine: Engine = Depends(get_engine)):
    row = content_service.create(
        engine,
        KIND,
        title=body.Title,
        description=body.Description,
        event_date=body.Date,
        location=body.Location,
        creator_id=body.CreatorID,
    )
    return event_dict(row)


@router.put("/updateEvent")
def update_event(body: EventUpdate, engine: Engine = Depends(get_engine)):
    if body.EventID is None:
        raise BadRequestError("Missing Data")
    row = content_service.update(
        engine,
        KIND,
        body.EventID,
        title=body.Title,
        description=body.Description,
        event_date=body.Date,
        location=body.Location,
    )
    return event_dict(row)


@router.delete("/deleteEvent", status_code=204)
def delete_event(
    event_id: int = Query(alias="EventID"),
    engine: Engine = Depends(get_engine),
):
    content_service.delete(engine, KIND, event_id)
    return None


@router.post("/likeEvent", status_code=201)
def like_event(body: EventInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.like(engine, KIND, *_pair(body))
    return {"message": "Event liked"}


@router.post("/unlikeEvent", status_code=201)
def unlike_event(body: EventInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unlike(engine, KIND, *_pair(body))
    return {"message": "Event unliked"}


@router.post("/saveEvent", status_code=201)
def save_event(body: EventInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.save(engine, KIND, *_pair(body))
    return {"message": "Event saved"}


@router.post("/unsaveEvent", status_code=201)
def unsave_event(body: EventInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unsave(engine, KIND, *_pair(body))
    return {"message": "Event unsaved"}
