"""Core configuration, security and error helpers."""

from .config import settings
from .errors import (
    ApiError,
    Conflict,
    Forbidden,
    InternalFailure,
    InvalidCredential,
    InvalidCredentials,
    MissingCredential,
    NotFound,
)
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "settings",
    "ApiError",
    "Conflict",
    "Forbidden",
    "InternalFailure",
    "InvalidCredential",
    "InvalidCredentials",
    "MissingCredential",
    "NotFound",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
