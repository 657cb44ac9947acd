"""
agora.api.deps — FastAPI dependency injection & the authentication gate
========================================================================
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, Request
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from agora.config import AgoraConfig, load_config
from agora.database.engine import create_db_engine, run_db
from agora.database.models import User
from agora.errors import UnauthorizedError
from agora.services import user_service

logger = logging.getLogger(__name__)

_WEAK_SECRETS = frozenset({
    "agora-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"

# Routes reachable without a bearer token.  Checked before any gate logic.
PUBLIC_ROUTES = frozenset({
    "/auth/signup",
    "/auth/login",
    "/health",
})


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> AgoraConfig:
    return load_config()


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
def issue_token(user: User, cfg: AgoraConfig) -> str:
    """Sign a token for *user* valid for ``cfg.jwt_duration_ms`` from now."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(milliseconds=cfg.jwt_duration_ms),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def _subject_id(token: str) -> int:
    """Verify *token* and return its user id.  Raises ``InvalidTokenError``."""
    claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError("Token subject is not a user id") from None


# ---------------------------------------------------------------------------
# Authentication gate: installed app-wide in agora.api.main
# ---------------------------------------------------------------------------
async def authenticate(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    engine: Engine = Depends(get_engine),
) -> None:
    """Resolve the bearer token to a :class:`User` on ``request.state.user``.

    Public routes return immediately.  Otherwise raises ``UnauthorizedError``
    with "No token provided", "Invalid token" or "User does not exist".
    """
    if request.url.path in PUBLIC_ROUTES:
        return

    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            token = credentials.strip()
    if not token:
        raise UnauthorizedError("No token provided")

    try:
        user_id = _subject_id(token)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid token") from None

    user = await run_db(user_service.find_user, engine, user_id)
    if user is None:
        logger.warning("Valid token for missing user %d", user_id)
        raise UnauthorizedError("User does not exist")

    request.state.user = user


def current_user(request: Request) -> User:
    """The user attached by :func:`authenticate`."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError("No token provided")
    return user
