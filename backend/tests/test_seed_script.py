"""Tests for the local development seed script."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import Post, SharedPost, User
from scripts import seed as seed_script


def test_seed_references_point_at_earlier_posts() -> None:
    seen: set[str] = set()
    for seed_post in seed_script.SEED_POSTS:
        assert seed_post.username in seed_script.SEED_USERNAMES
        if seed_post.reply_to is not None:
            assert seed_post.reply_to in seen
        seen.add(seed_post.text_content)

    for share in seed_script.SEED_SHARES:
        assert share.text_content in seen


@pytest.mark.asyncio
async def test_seed_is_idempotent(
    session_maker: async_sessionmaker[AsyncSession],
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(seed_script, "AsyncSessionMaker", session_maker)

    await seed_script.seed()
    await seed_script.seed()

    for model, expected in (
        (User, len(seed_script.SEED_USERNAMES)),
        (Post, len(seed_script.SEED_POSTS)),
        (SharedPost, len(seed_script.SEED_SHARES)),
    ):
        result = await db_session.execute(select(func.count()).select_from(model))
        assert result.scalar_one() == expected

    replies = await db_session.execute(
        select(func.count()).select_from(Post).where(Post.parent.is_not(None))  # type: ignore[union-attr]
    )
    assert replies.scalar_one() == 2
