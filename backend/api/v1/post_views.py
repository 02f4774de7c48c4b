"""Post response model and share-count helpers."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Post, SharedPost


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text_content: str
    author: str
    parent: int | None = None
    created_at: datetime
    updated_at: datetime
    share_count: int = 0

    @classmethod
    def from_post(
        cls,
        post: Post,
        *,
        share_count: int = 0,
    ) -> "PostResponse":
        if post.id is None:
            raise ValueError("Post record missing identifier")
        return cls(
            id=post.id,
            text_content=post.text_content,
            author=post.author,
            parent=post.parent,
            created_at=post.created_at,
            updated_at=post.updated_at,
            share_count=share_count,
        )


PostResponse.model_rebuild()


async def collect_share_counts(
    session: AsyncSession,
    post_ids: list[int],
) -> dict[int, int]:
    if not post_ids:
        return {}

    post_id_column = cast(ColumnElement[int], SharedPost.post_id)
    user_id_column = cast(ColumnElement[str], SharedPost.user_id)
    count_column = cast(Any, func.count(user_id_column))
    result = await session.execute(
        select(post_id_column, count_column)
        .where(post_id_column.in_(post_ids))
        .group_by(post_id_column)
    )
    return {post_id: int(total) for post_id, total in result.all()}


async def build_post_responses(
    session: AsyncSession,
    posts: list[Post],
) -> list[PostResponse]:
    post_ids = [post.id for post in posts if post.id is not None]
    count_map = await collect_share_counts(session, post_ids)
    return [
        PostResponse.from_post(
            post,
            share_count=count_map.get(post.id, 0) if post.id is not None else 0,
        )
        for post in posts
    ]
