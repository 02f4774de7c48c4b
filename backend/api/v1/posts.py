"""Post creation, retrieval, modification and sharing endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, Any, cast

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from sqlalchemy import CursorResult, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import Identity, get_db, get_identity
from core import InternalFailure, NotFound, settings
from db.errors import is_foreign_key_violation, is_unique_violation
from models import Post, SharedPost
from .pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, apply_page, trim_page
from .post_views import PostResponse, build_post_responses, collect_share_counts
from services.post_policy import (
    PARENT_NOT_FOUND,
    POST_NOT_FOUND,
    get_post as fetch_post,
    require_post_exists,
    require_post_owner,
)

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)

NOT_SHARED = "Post was not shared by this user"


class PostCreateRequest(BaseModel):
    text_content: str
    parent: int | None = None


class PostUpdateRequest(BaseModel):
    text_content: str


class DetailResponse(BaseModel):
    detail: str


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def _normalize_text(text_content: str) -> str:
    normalized = text_content.strip()
    if normalized == "":
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Post text cannot be empty",
        )
    if len(normalized) > settings.max_post_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Post text must be at most {settings.max_post_length} characters",
        )
    return normalized


def _affected_rows(result: Any) -> int:
    return cast(CursorResult[Any], result).rowcount


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    payload: PostCreateRequest,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> PostResponse:
    text_content = _normalize_text(payload.text_content)
    if payload.parent is not None:
        await require_post_exists(session, payload.parent, detail=PARENT_NOT_FOUND)

    post = Post(
        text_content=text_content,
        author=identity.id,
        parent=payload.parent,
    )
    session.add(post)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if (
            payload.parent is not None
            and is_foreign_key_violation(exc)
            and await fetch_post(session, payload.parent) is None
        ):
            # Parent deleted between the existence check and the insert.
            raise NotFound(PARENT_NOT_FOUND) from exc
        raise InternalFailure("Failed to create post") from exc
    except Exception as exc:
        await session.rollback()
        raise InternalFailure("Failed to create post") from exc
    await session.refresh(post)

    logger.info("Post %s created by %s", post.id, identity.id)
    return PostResponse.from_post(post, share_count=0)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
) -> PostResponse:
    post = await require_post_exists(session, post_id)
    count_map = await collect_share_counts(session, [post_id])
    return PostResponse.from_post(post, share_count=count_map.get(post_id, 0))


@router.put("/{post_id}", status_code=status.HTTP_200_OK, response_model=DetailResponse)
async def modify_post(
    post_id: int,
    payload: PostUpdateRequest,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> DetailResponse:
    await require_post_owner(session, post_id=post_id, user_id=identity.id)
    text_content = _normalize_text(payload.text_content)

    result = await session.execute(
        update(Post)
        .where(_eq(Post.id, post_id))
        .values(text_content=text_content)
    )
    if _affected_rows(result) == 0:
        await session.rollback()
        raise InternalFailure("Failed to update post")
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        raise InternalFailure("Failed to update post") from exc

    logger.info("Post %s updated by %s", post_id, identity.id)
    return DetailResponse(detail="Post updated")


@router.delete("/{post_id}", status_code=status.HTTP_200_OK, response_model=DetailResponse)
async def delete_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> DetailResponse:
    await require_post_owner(session, post_id=post_id, user_id=identity.id)

    # Shares go with the post; replies stay and lose their parent.
    await session.execute(
        delete(SharedPost).where(_eq(SharedPost.post_id, post_id))
    )
    await session.execute(
        update(Post)
        .where(_eq(Post.parent, post_id))
        .values(parent=None)
    )
    result = await session.execute(
        delete(Post).where(_eq(Post.id, post_id))
    )
    if _affected_rows(result) == 0:
        await session.rollback()
        raise InternalFailure("Failed to delete post")
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        raise InternalFailure("Failed to delete post") from exc

    logger.info("Post %s deleted by %s", post_id, identity.id)
    return DetailResponse(detail="Post deleted")


@router.get("/{post_id}/replies", response_model=list[PostResponse])
async def list_replies(
    post_id: int,
    response: Response,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
    session: AsyncSession = Depends(get_db),
) -> list[PostResponse]:
    await require_post_exists(session, post_id)

    post_entity = cast(Any, Post)
    query = (
        select(post_entity)
        .where(_eq(Post.parent, post_id))
        .order_by(_asc(Post.created_at), _asc(Post.id))
    )
    result = await session.execute(apply_page(query, offset=offset, limit=limit))
    replies = trim_page(response, result.scalars().all(), offset=offset, limit=limit)
    return await build_post_responses(session, replies)


@router.post(
    "/{post_id}/share",
    status_code=status.HTTP_201_CREATED,
    response_model=DetailResponse,
)
async def share_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> DetailResponse:
    await require_post_exists(session, post_id)

    shared_post_entity = cast(Any, SharedPost)
    existing_share = await session.execute(
        select(shared_post_entity).where(
            _eq(SharedPost.post_id, post_id),
            _eq(SharedPost.user_id, identity.id),
        )
    )
    if existing_share.scalar_one_or_none() is None:
        session.add(SharedPost(post_id=post_id, user_id=identity.id))
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            if (
                is_foreign_key_violation(exc)
                and await fetch_post(session, post_id) is None
            ):
                raise NotFound(POST_NOT_FOUND) from exc
            if not is_unique_violation(exc):
                raise InternalFailure("Failed to share post") from exc
        else:
            logger.info("Post %s shared by %s", post_id, identity.id)

    return DetailResponse(detail="Post shared")


@router.delete(
    "/{post_id}/share",
    status_code=status.HTTP_200_OK,
    response_model=DetailResponse,
)
async def unshare_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> DetailResponse:
    result = await session.execute(
        delete(SharedPost).where(
            _eq(SharedPost.post_id, post_id),
            _eq(SharedPost.user_id, identity.id),
        )
    )
    if _affected_rows(result) == 0:
        await session.rollback()
        raise NotFound(NOT_SHARED)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        raise InternalFailure("Failed to unshare post") from exc

    logger.info("Post %s unshared by %s", post_id, identity.id)
    return DetailResponse(detail="Post unshared")
