"""Domain error taxonomy rendered into a single JSON error envelope."""

from __future__ import annotations

from typing import Any

from fastapi import status


class ApiError(Exception):
    """Base class for errors that map to a client-facing status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_failure"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return error_envelope(self.status_code, self.kind, self.message)


class MissingCredential(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "missing_credential"
    default_message = "Auth token not provided"


class InvalidCredential(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "invalid_credential"
    default_message = "Auth token invalid"


class InvalidCredentials(ApiError):
    """Username/password pair rejected at login."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "invalid_credentials"
    default_message = "Invalid username or password"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_message = "Not allowed"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_message = "Not found"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_message = "Conflict"


class InternalFailure(ApiError):
    pass


_KIND_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_CONTENT: "validation_error",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
}


def kind_for_status(status_code: int) -> str:
    if status_code >= 500 and status_code not in _KIND_BY_STATUS:
        return InternalFailure.kind
    return _KIND_BY_STATUS.get(status_code, "error")


def error_envelope(
    status_code: int,
    kind: str,
    message: str,
    details: Any = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "code": status_code,
        "kind": kind,
        "message": message,
    }
    if details is not None:
        body["details"] = details
    return {"error": body}
