"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from core import InvalidCredential, MissingCredential, decode_token
from core.security import ACCESS_TOKEN_TYPE
from db.session import get_session
from models import User


@dataclass(frozen=True, slots=True)
class Identity:
    """Caller identity decoded from the bearer token."""

    id: str


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def extract_token(authorization: str | None) -> str | None:
    """Return the credential from an Authorization header value.

    Accepts both ``Bearer <token>`` and a bare token.
    """
    if authorization is None:
        return None
    value = authorization.strip()
    scheme, _, remainder = value.partition(" ")
    if scheme.lower() == "bearer":
        return remainder.strip() or None
    return value or None


def resolve_identity(token: str) -> Identity:
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise InvalidCredential() from exc

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidCredential()

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise InvalidCredential()
    return Identity(id=subject.strip())


async def get_identity(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> Identity:
    """Authenticate the caller or stop the request.

    Raises MissingCredential when no token is supplied and InvalidCredential
    when the token does not decode to an identity with an id, or names a
    user that does not exist.
    """
    token = extract_token(authorization)
    if token is None:
        raise MissingCredential()
    identity = resolve_identity(token)
    if await session.get(User, identity.id) is None:
        raise InvalidCredential()
    return identity
