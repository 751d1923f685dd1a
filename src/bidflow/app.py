"""API entry point: FastAPI application factory and lifespan."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from bidflow.config import load_settings
from bidflow.errors import DomainError, InputValidationError
from bidflow.health import check_emulators
from bidflow.logging import configure_logging
from bidflow.routes import artifacts, documents, health, notifications
from bidflow.startup import init_database, init_generation, init_services, init_storage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def _error_response(error: DomainError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:  # noqa: PLR2004
        logger.error(
            "Request failed: method=%s path=%s kind=%s message=%s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
    else:
        logger.info(
            "Request rejected: method=%s path=%s kind=%s",
            request.method,
            request.url.path,
            exc.kind,
        )
    return _error_response(exc)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
    logger.info("Request invalid: path=%s fields=%s", request.url.path, fields)
    return _error_response(InputValidationError(f"Invalid request fields: {fields}"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    logger.info("API starting: env=%s", settings.app.env)

    if settings.app.is_development and not await check_emulators(settings):
        msg = "Local emulators are not running"
        raise RuntimeError(msg)

    cosmos = await init_database(settings)
    storage = await init_storage(settings)
    generator = init_generation(settings)

    app.state.cosmos = cosmos
    app.state.credentials = storage.credentials
    app.state.store = storage.store
    app.state.service = init_services(settings, cosmos, storage.store, generator)
    app.state.start_time = time.time()
    logger.info("API running")

    yield

    logger.info("API shutting down")
    await storage.store.close()
    await storage.credentials.close()
    await cosmos.close()
    logger.info("API shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application with routes, middleware and error handlers."""
    settings = load_settings()
    configure_logging(settings.app.log_level)

    app = FastAPI(title="bidflow", lifespan=lifespan)
    app.state.settings = settings

    secret_key = settings.app.secret_key
    if not secret_key:
        if not settings.app.is_development:
            msg = "APP_SECRET_KEY must be set outside development"
            raise RuntimeError(msg)
        logger.warning("APP_SECRET_KEY not set, using an insecure development key")
        secret_key = "dev-insecure-key"  # noqa: S105
    app.add_middleware(
        SessionMiddleware,
        secret_key=secret_key,
        https_only=not settings.app.is_development,
    )

    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health.router)
    app.include_router(documents.router)
    app.include_router(notifications.router)
    app.include_router(artifacts.router)
    return app


def main() -> None:
    """Run the API with uvicorn."""
    uvicorn.run("bidflow.app:create_app", factory=True, host="0.0.0.0", port=8000)  # noqa: S104


if __name__ == "__main__":
    main()
