"""Version 1 HTTP routes."""

from fastapi import APIRouter

from . import posts, users

api_router = APIRouter()
api_router.include_router(users.router)
api_router.include_router(posts.router)

__all__ = ["api_router", "posts", "users"]
