"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import RequestResponseEndpoint

from api.v1 import api_router
from core import ApiError, InternalFailure, settings
from core.errors import error_envelope, kind_for_status
from core.logging import configure_logging
from db.session import async_engine
from services import RateLimitMiddleware, get_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting %s (%s)", settings.app_name, settings.app_env)
    yield
    await async_engine.dispose()
    logger.info("Stopped %s", settings.app_name)


async def _handle_api_error(_: Request, exc: ApiError) -> Response:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        # The underlying store error stays in the log.
        logger.error("Internal failure: %s", exc.message, exc_info=exc.__cause__ or exc)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> Response:
    return JSONResponse(
        error_envelope(exc.status_code, kind_for_status(exc.status_code), str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_error(_: Request, exc: RequestValidationError) -> Response:
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    return JSONResponse(
        error_envelope(
            status_code,
            kind_for_status(status_code),
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
        status_code=status_code,
    )


async def _catch_unhandled_errors(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        failure = InternalFailure()
        return JSONResponse(failure.to_dict(), status_code=failure.status_code)


def create_app() -> FastAPI:
    configure_logging()

    application = FastAPI(title=settings.app_name, lifespan=lifespan)
    application.add_exception_handler(ApiError, _handle_api_error)
    application.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    application.add_exception_handler(RequestValidationError, _handle_validation_error)
    application.add_middleware(RateLimitMiddleware, limiter_factory=get_rate_limiter)
    application.middleware("http")(_catch_unhandled_errors)
    application.include_router(api_router)
    return application
