"""User registration, authentication and lookup endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, cast

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_db
from core import (
    Conflict,
    InternalFailure,
    InvalidCredentials,
    NotFound,
    create_access_token,
    hash_password,
    needs_rehash,
    verify_password,
)
from db.errors import is_unique_violation
from models import User

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)

USERNAME_TAKEN = "Username already registered"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def _reject_email_like_username(cls, value: str) -> str:
        normalized = value.strip()
        if "@" in normalized:
            raise ValueError("Username cannot contain '@'")
        if len(normalized) < 3:
            raise ValueError("Username must be at least 3 characters")
        return normalized


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=128)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


async def _find_user_by_username(
    session: AsyncSession,
    username: str,
) -> User | None:
    result = await session.execute(select(User).where(_eq(User.username, username)))
    return result.scalar_one_or_none()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    if await _find_user_by_username(session, payload.username) is not None:
        raise Conflict(USERNAME_TAKEN)

    user = User(
        username=payload.username,
        password_hash=hash_password(payload.password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise Conflict(USERNAME_TAKEN) from exc
        raise InternalFailure("Failed to register user") from exc
    await session.refresh(user)

    logger.info("Registered user %s", user.id)
    return UserResponse.model_validate(user)


@router.post("/authenticate", response_model=TokenResponse)
async def authenticate(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await _find_user_by_username(session, payload.username.strip())
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("Rejected login for username %r", payload.username)
        raise InvalidCredentials()

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        session.add(user)
        await session.commit()

    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return UserResponse.model_validate(user)
