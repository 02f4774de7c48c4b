"""Post domain model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlmodel import Field, SQLModel


class Post(SQLModel, table=True):
    """A text post, optionally replying to another post through ``parent``."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_author_created_at", "author", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    text_content: str = Field(sa_column=Column(Text, nullable=False))
    # author and parent are written once at creation.
    author: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    parent: int | None = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("posts.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
