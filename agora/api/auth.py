"""
agora.api.auth — Signup, login and user profile endpoints
==========================================================

``signup`` and ``login`` are public (see ``PUBLIC_ROUTES`` in
:mod:`agora.api.deps`); everything else sits behind the bearer-token gate.
Login returns the token in the body and as an ``Authorization`` cookie.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy import Engine

from agora.api.deps import get_config, get_engine, issue_token
from agora.api.rate_limit import rate_limited
from agora.api.serializers import user_dict
from agora.config import AgoraConfig
from agora.database.engine import run_db
from agora.errors import BadRequestError
from agora.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_COOKIE = "Authorization"


class SignupBody(BaseModel):
    FirstName: str | None = None
    LastName: str | None = None
    Email: str | None = None
    Password: str | None = None


class LoginBody(BaseModel):
    Email: str | None = None
    Password: str | None = None


class UserUpdate(BaseModel):
    UserID: int | None = None
    FirstName: str | None = None
    LastName: str | None = None
    Password: str | None = None


@router.post("/signup", status_code=201)
async def signup(
    body: SignupBody,
    cfg: AgoraConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    """Register a new account.  Duplicate email → 401 "Email exists"."""
    user = await run_db(
        user_service.signup,
        engine,
        first_name=body.FirstName,
        last_name=body.LastName,
        email=body.Email,
        password=body.Password,
        rounds=cfg.bcrypt_rounds,
    )
    return {"data": user_dict(user), "message": "signup"}


@router.post("/login")
async def login(
    body: LoginBody,
    response: Response,
    cfg: AgoraConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    """Exchange email/password for a signed token."""
    user = await run_db(user_service.check_credentials, engine, body.Email, body.Password)
    token = issue_token(user, cfg)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=cfg.jwt_duration_ms // 1000,
        httponly=True,
    )
    logger.info("User %d logged in", user.id)
    return {"data": user_dict(user), "message": "login", "token": token}


@router.post("/logout", dependencies=[Depends(rate_limited)])
def logout(response: Response):
    # Tokens are stateless; the client just loses its cookie.
    response.delete_cookie(AUTH_COOKIE)
    return {"message": "logout"}


@router.get("/getOneUser")
def get_one_user(
    user_id: int = Query(alias="UserID"),
    engine: Engine = Depends(get_engine),
):
    return user_dict(user_service.get_one(engine, user_id))


@router.get("/getAllUsers")
def get_all_users(engine: Engine = Depends(get_engine)):
    return [user_dict(u) for u in user_service.get_all(engine)]


@router.put("/updateUser", dependencies=[Depends(rate_limited)])
def update_user(
    body: UserUpdate,
    cfg: AgoraConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    if body.UserID is None:
        raise BadRequestError("Missing Data")
    user = user_service.update(
        engine,
        body.UserID,
        first_name=body.FirstName,
        last_name=body.LastName,
        password=body.Password,
        rounds=cfg.bcrypt_rounds,
    )
    return user_dict(user)


@router.delete("/deleteUser", status_code=204, dependencies=[Depends(rate_limited)])
def delete_user(
    user_id: int = Query(alias="UserID"),
    engine: Engine = Depends(get_engine),
):
    user_service.delete(engine, user_id)
    return None
