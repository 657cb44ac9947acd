"""
agora.services.user_service — Accounts, credentials and profile CRUD
=====================================================================

Passwords are stored as bcrypt hashes.  Token issuance lives with the rest
of the JWT handling in :mod:`agora.api.deps`; this module only answers
"who is this?" questions against the database.
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy import Engine, select

from agora.database.engine import guarded_session
from agora.database.models import User
from agora.errors import BadRequestError, NotFoundError, UnauthorizedError
from agora.services.kinds import require_fields

logger = logging.getLogger(__name__)


# bcrypt only looks at the first 72 bytes; newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 10) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise BadRequestError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    # Signup refuses such passwords, so no stored hash can match one
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.error("Unreadable password hash encountered during login")
        return False


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------
def signup(
    engine: Engine,
    *,
    first_name: str | None,
    last_name: str | None,
    email: str | None,
    password: str | None,
    rounds: int = 10,
) -> User:
    """Create an account.

    Raises
    ------
    BadRequestError
        Any of the four fields is missing.
    UnauthorizedError
        The email is already registered.
    """
    require_fields(
        {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "password": password,
        },
        ("first_name", "last_name", "email", "password"),
    )

    with guarded_session(engine, "signup") as session:
        existing = session.scalar(select(User).where(User.email == email))
        if existing is not None:
            raise UnauthorizedError("Email exists")
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password, rounds),
        )
        session.add(user)
        session.flush()

    logger.info("User %d signed up", user.id)
    return user


def check_credentials(engine: Engine, email: str | None, password: str | None) -> User:
    """Return the user for a correct email/password pair.

    Missing fields fail before any lookup; an unknown email is ``NotFound``
    and a wrong password ``Unauthorized``.
    """
    if not email or not password:
        raise BadRequestError("Missing Data")

    with guarded_session(engine, "login lookup") as session:
        user = session.scalar(select(User).where(User.email == email))

    if user is None:
        raise NotFoundError("User does not exist")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Cannot login with these credentials")
    return user


def find_user(engine: Engine, user_id: int) -> User | None:
    """Plain lookup used by the auth gate; ``None`` when absent."""
    with guarded_session(engine, "resolve token subject") as session:
        return session.get(User, user_id)


# ---------------------------------------------------------------------------
# Profile CRUD
# ---------------------------------------------------------------------------
def get_one(engine: Engine, user_id: int) -> User:
    user = find_user(engine, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_all(engine: Engine) -> list[User]:
    with guarded_session(engine, "list users") as session:
        return list(session.scalars(select(User).order_by(User.id)).all())


def update(
    engine: Engine,
    user_id: int,
    *,
    first_name: str | None = None,
    last_name: str | None = None,
    password: str | None = None,
    rounds: int = 10,
) -> User:
    """Change names and/or password.  Email and id are not editable."""
    with guarded_session(engine, "update user") as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if first_name:
            user.first_name = first_name
        if last_name:
            user.last_name = last_name
        if password:
            user.password_hash = hash_password(password, rounds)
    return user


def delete(engine: Engine, user_id: int) -> None:
    """Delete an account.  Fails with ``InternalError`` while the user still
    owns content (foreign keys are RESTRICT)."""
    with guarded_session(engine, "delete user") as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        session.delete(user)
    logger.info("User %d deleted", user_id)
