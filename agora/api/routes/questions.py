"""
agora.api.routes.questions — Question endpoints
===============================================
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import Engine

from agora.api.deps import get_engine
from agora.api.rate_limit import rate_limited
from agora.api.serializers import question_dict
from agora.database.models import ContentKind
from agora.errors import BadRequestError
from agora.services import content_service, interaction_service
from agora.services.listing import list_filtered, parse_sort_mode

router = APIRouter(
    prefix="/questions",
    tags=["questions"],
    dependencies=[Depends(rate_limited)],
)

KIND = ContentKind.QUESTION


# ---------------------------------------------------------------------------
# Pydantic schemas: fields are optional so absence is a 400, not a 422
# ---------------------------------------------------------------------------
class QuestionCreate(BaseModel):
    Title: str | None = None
    Content: str | None = None
    CreatedAt: datetime | None = None
    CreatorID: int | None = None


class QuestionUpdate(BaseModel):
    QuestionID: int | None = None
    Title: str | None = None
    Content: str | None = None


class QuestionInteraction(BaseModel):
    QuestionID: int | None = Field(
        default=None, validation_alias=AliasChoices("QuestionID", "TargetID")
    )
    UserID: int | None = None


def _pair(body: QuestionInteraction) -> tuple[int, int]:
    if body.QuestionID is None or body.UserID is None:
        raise BadRequestError("Missing Data")
    return body.QuestionID, body.UserID


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/getAllQuestions")
def get_all_questions(engine: Engine = Depends(get_engine)):
    return [question_dict(row) for row in content_service.get_all(engine, KIND)]


@router.get("/getAllQuestionsWithFilters")
def get_all_questions_with_filters(
    q: str | None = None,
    search: str | None = None,
    engine: Engine = Depends(get_engine),
):
    mode = parse_sort_mode(q)
    return [question_dict(row) for row in list_filtered(engine, KIND, mode, search)]


@router.get("/getOneQuestion")
def get_one_question(
    question_id: int = Query(alias="QuestionID"),
    engine: Engine = Depends(get_engine),
):
    return question_dict(content_service.get_one(engine, KIND, question_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
@router.post("/createQuestion", status_code=201)
def create_question(body: QuestionCreate, engine: Engine = Depends(get_engine)):
    row = content_service.create(
        engine,
        KIND,
        title=body.Title,
        content=body.Content,
        created_at=body.CreatedAt,
        creator_id=body.CreatorID,
    )
    return question_dict(row)


@router.put("/updateQuestion")
def update_question(body: QuestionUpdate, engine: Engine = Depends(get_engine)):
    if body.QuestionID is None:
        raise BadRequestError("Missing Data")
    row = content_service.update(
        engine, KIND, body.QuestionID, title=body.Title, content=body.Content
    )
    return question_dict(row)


@router.delete("/deleteQuestion", status_code=204)
def delete_question(
    question_id: int = Query(alias="QuestionID"),
    engine: Engine = Depends(get_engine),
):
    content_service.delete(engine, KIND, question_id)
    return None


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
@router.post("/likeQuestion", status_code=201)
def like_question(body: QuestionInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.like(engine, KIND, *_pair(body))
    return {"message": "Question liked"}


@router.post("/unlikeQuestion", status_code=201)
def unlike_question(body: QuestionInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unlike(engine, KIND, *_pair(body))
    return {"message": "Question unliked"}


@router.post("/saveQuestion", status_code=201)
def save_question(body: QuestionInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.save(engine, KIND, *_pair(body))
    return {"message": "Question saved"}


@router.post("/unsaveQuestion", status_code=201)
def unsave_question(body: QuestionInteraction, engine: Engine = Depends(get_engine)):
    interaction_service.unsave(engine, KIND, *_pair(body))
    return {"message": "Question unsaved"}
