"""
FastAPI application entry point for the council CMS backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from council.config import get_settings
from council.dependencies import get_registry
from council.errors import CouncilError, ValidationError
from council.routes import router

logger = logging.getLogger(__name__)

NO_CACHE = "no-cache, no-store, must-revalidate"


def _error_response(exc: CouncilError) -> JSONResponse:
    content = {"error": exc.message}
    if isinstance(exc, ValidationError):
        content["details"] = jsonable_encoder(exc.details)
    return JSONResponse(status_code=exc.status_code, content=content)


def _body_errors(errors) -> list:
    """Request errors in the same shape as a schema failure: ``loc`` relative to the body."""
    details = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc[:1] == ["body"]:
            loc = loc[1:]
        details.append({"type": error.get("type"), "loc": loc, "msg": error.get("msg")})
    return details


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Resolve every content type's backend before the first request.
    registry = get_registry()
    logger.info("Serving content from %s", registry.backends())
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Technical Council CMS", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)
    admin_prefix = f"{settings.api_prefix}/admin"

    @app.exception_handler(CouncilError)
    async def handle_council_error(request: Request, exc: CouncilError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error_response(ValidationError(details=_body_errors(exc.errors())))

    @app.middleware("http")
    async def no_cache_admin(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(admin_prefix):
            response.headers["Cache-Control"] = NO_CACHE
        return response

    return app


app = create_app()
