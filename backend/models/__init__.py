"""SQLModel models package."""

from .post import Post
from .shared_post import SharedPost
from .user import User

__all__ = [
    "User",
    "Post",
    "SharedPost",
]
