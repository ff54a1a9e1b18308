"""Reusable FastAPI dependencies (DB connection, authenticated caller)."""

import logging
import os
from collections.abc import AsyncGenerator
from typing import Annotated, Any, Optional

import aiosqlite
import jwt
from fastapi import Depends, Header

from app.errors import AuthenticationRequired, AuthNotConfigured
from app.models.collaboration import CurrentUser
from app.services.database import get_db as _get_db

logger = logging.getLogger(__name__)

AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")


async def db_dependency() -> AsyncGenerator[aiosqlite.Connection, None]:
    """Provide a SQLite connection for the duration of the request."""
    async with _get_db() as conn:
        yield conn


DbDep = Annotated[aiosqlite.Connection, Depends(db_dependency)]


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationRequired("Invalid authorization header")
    return parts[1]


def decode_access_token(token: str) -> CurrentUser:
    """Verify an identity-provider access token and return the caller it names."""
    if not AUTH_JWT_SECRET:
        logger.error("AUTH_JWT_SECRET is not set; rejecting token")
        raise AuthNotConfigured()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=["HS256"],
            audience=AUTH_JWT_AUDIENCE or None,
            options={"verify_aud": bool(AUTH_JWT_AUDIENCE), "require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        logger.info("Rejected access token: %s", exc)
        raise AuthenticationRequired("Invalid or expired token") from exc
    email = claims.get("email")
    return CurrentUser(id=str(claims["sub"]), email=email.lower() if email else None)


async def get_optional_user(
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[CurrentUser]:
    token = _parse_bearer_token(authorization)
    return decode_access_token(token) if token else None


async def get_current_user(
    user: Annotated[Optional[CurrentUser], Depends(get_optional_user)],
) -> CurrentUser:
    if user is None:
        raise AuthenticationRequired("Missing authorization token")
    return user


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
OptionalUserDep = Annotated[Optional[CurrentUser], Depends(get_optional_user)]
