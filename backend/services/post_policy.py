"""Post existence and ownership checks shared by the post endpoints."""

from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import Forbidden, NotFound
from models import Post

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"
PARENT_NOT_FOUND = "Parent with that id does not exist"
NOT_POST_AUTHOR = "Only the author can change this post"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def is_post_author(post: Post, user_id: str) -> bool:
    return post.author == user_id


async def get_post(session: AsyncSession, post_id: int) -> Post | None:
    post_entity = cast(Any, Post)
    result = await session.execute(
        select(post_entity)
        .where(_eq(Post.id, post_id))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def require_post_exists(
    session: AsyncSession,
    post_id: int,
    *,
    detail: str = POST_NOT_FOUND,
) -> Post:
    """Return the post or raise NotFound."""
    post = await get_post(session, post_id)
    if post is None:
        raise NotFound(detail)
    return post


async def require_post_owner(
    session: AsyncSession,
    *,
    post_id: int,
    user_id: str,
) -> Post:
    """Return the post when ``user_id`` authored it.

    Raises NotFound when the post is missing and Forbidden when it belongs
    to someone else.
    """
    post = await require_post_exists(session, post_id)
    if not is_post_author(post, user_id):
        logger.warning(
            "User %s attempted to modify post %s owned by %s",
            user_id,
            post_id,
            post.author,
        )
        raise Forbidden(NOT_POST_AUTHOR)
    return post
