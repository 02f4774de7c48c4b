"""Database seed script for local development.

Usage:
    python scripts/seed.py

Creates demo users, a few posts with replies and some shares. Running it
again only fills in what is missing.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.security import hash_password  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import Post, SharedPost, User  # noqa: E402

DEFAULT_PASSWORD = "password123"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class SeedPost:
    username: str
    text_content: str
    reply_to: str | None = None


@dataclass(frozen=True)
class SeedShare:
    username: str
    text_content: str


SEED_USERNAMES: Sequence[str] = ["demo_alex", "demo_bella", "demo_cara"]

SEED_POSTS: Sequence[SeedPost] = [
    SeedPost(username="demo_alex", text_content="Hello from Alex!"),
    SeedPost(username="demo_bella", text_content="Coffee and city walks."),
    SeedPost(
        username="demo_cara",
        text_content="Welcome aboard, Alex.",
        reply_to="Hello from Alex!",
    ),
    SeedPost(
        username="demo_alex",
        text_content="Which coffee place?",
        reply_to="Coffee and city walks.",
    ),
]

SEED_SHARES: Sequence[SeedShare] = [
    SeedShare(username="demo_bella", text_content="Hello from Alex!"),
    SeedShare(username="demo_cara", text_content="Coffee and city walks."),
]


async def get_or_create_user(session: AsyncSession, username: str) -> User:
    result = await session.execute(select(User).where(_eq(User.username, username)))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(username=username, password_hash=hash_password(DEFAULT_PASSWORD))
    session.add(user)
    await session.flush()
    return user


async def get_or_create_post(
    session: AsyncSession,
    author: User,
    text_content: str,
    parent: Post | None,
) -> Post:
    result = await session.execute(
        select(Post).where(
            _eq(Post.author, author.id),
            _eq(Post.text_content, text_content),
        )
    )
    post = result.scalar_one_or_none()
    if post:
        return post

    post = Post(
        text_content=text_content,
        author=author.id,
        parent=parent.id if parent is not None else None,
    )
    session.add(post)
    await session.flush()
    return post


async def ensure_shares(
    session: AsyncSession,
    users: dict[str, User],
    posts: dict[str, Post],
    shares: Sequence[SeedShare],
) -> None:
    for share in shares:
        user = users[share.username]
        post = posts[share.text_content]
        if post.id is None:
            raise ValueError("Seed post missing identifier")

        result = await session.execute(
            select(SharedPost).where(
                _eq(SharedPost.post_id, post.id),
                _eq(SharedPost.user_id, user.id),
            )
        )
        if result.scalar_one_or_none():
            continue

        session.add(SharedPost(post_id=post.id, user_id=user.id))


async def seed() -> None:
    async with AsyncSessionMaker() as session:
        users: dict[str, User] = {}
        for username in SEED_USERNAMES:
            users[username] = await get_or_create_user(session, username)

        posts: dict[str, Post] = {}
        for seed_post in SEED_POSTS:
            parent = posts[seed_post.reply_to] if seed_post.reply_to else None
            posts[seed_post.text_content] = await get_or_create_post(
                session,
                users[seed_post.username],
                seed_post.text_content,
                parent,
            )

        await ensure_shares(session, users, posts, SEED_SHARES)
        await session.commit()

    print("Seed data inserted.")
    print("   Users:", ", ".join(SEED_USERNAMES))
    print("   Default password:", DEFAULT_PASSWORD)
    print("   Posts:", len(SEED_POSTS))
    print("   Shares:", len(SEED_SHARES))


if __name__ == "__main__":
    asyncio.run(seed())
