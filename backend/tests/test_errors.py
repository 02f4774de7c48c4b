"""Every failure is rendered with the same error envelope."""

import pytest
from httpx import AsyncClient

from api.v1 import posts as posts_api
from core import Forbidden, InternalFailure, NotFound
from core.errors import error_envelope, kind_for_status


def test_api_error_to_dict_uses_envelope() -> None:
    assert NotFound("Post not found").to_dict() == {
        "error": {"code": 404, "kind": "not_found", "message": "Post not found"}
    }


def test_api_error_default_message() -> None:
    assert Forbidden().message == "Not allowed"
    assert InternalFailure().status_code == 500


def test_kind_for_unmapped_statuses() -> None:
    assert kind_for_status(418) == "error"
    assert kind_for_status(502) == "internal_failure"


def test_error_envelope_includes_details_only_when_given() -> None:
    assert "details" not in error_envelope(400, "bad_request", "nope")["error"]
    assert error_envelope(422, "validation_error", "bad", details=[])["error"]["details"] == []


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(async_client: AsyncClient):
    response = await async_client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


@pytest.mark.asyncio
async def test_method_not_allowed_uses_envelope(async_client: AsyncClient):
    response = await async_client.patch("/posts/1")

    assert response.status_code == 405
    assert response.json()["error"]["kind"] == "method_not_allowed"


@pytest.mark.asyncio
async def test_path_validation_uses_envelope(async_client: AsyncClient):
    response = await async_client.get("/posts/not-a-number")

    assert response.status_code == 422
    body = response.json()["error"]
    assert body["kind"] == "validation_error"
    assert body["message"] == "Request validation failed"
    assert body["details"]


@pytest.mark.asyncio
async def test_unhandled_errors_do_not_leak_details(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
):
    async def exploding_lookup(*args, **kwargs):
        raise RuntimeError("connection string postgres://secret@db")

    monkeypatch.setattr(posts_api, "require_post_exists", exploding_lookup)

    response = await async_client.get("/posts/1")

    assert response.status_code == 500
    assert response.json() == {
        "error": {
            "code": 500,
            "kind": "internal_failure",
            "message": "Internal server error",
        }
    }
    assert "secret" not in response.text
