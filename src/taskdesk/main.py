"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan manages
startup/shutdown (logging, optional table creation, engine disposal).
Middleware, error handlers and routers are all registered here.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskdesk import __version__
from taskdesk.api import api_router
from taskdesk.config import Settings, get_settings, settings as default_settings
from taskdesk.errors import TaskDeskError
from taskdesk.log import configure_logging

logger = structlog.get_logger()


async def taskdesk_error_handler(request: Request, exc: TaskDeskError) -> JSONResponse:
    """Render a domain error as {"detail": message} with its status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed input (bad UUID, unparseable date) is a plain 400."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": errors},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Anything before `yield` runs at startup, after `yield` at shutdown."""
        logger.info(
            "taskdesk.starting",
            version=__version__,
            environment=settings.environment,
            port=settings.port,
        )

        from taskdesk.db.engine import create_tables, engine

        if settings.create_tables:
            await create_tables()
            logger.info("taskdesk.tables_created")

        yield

        logger.info("taskdesk.shutdown")
        await engine.dispose()

    app = FastAPI(
        title="TaskDesk",
        description="Task management backend with ownership-based access control",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → Errors → handler

    from taskdesk.middleware.errors import ErrorHandlingMiddleware
    from taskdesk.middleware.request_id import RequestIdMiddleware
    from taskdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(TaskDeskError, taskdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(api_router)

    # Routes and services receive settings through this dependency.
    if settings is not default_settings:
        app.dependency_overrides[get_settings] = lambda: settings

    return app


# Default app instance (used by uvicorn: taskdesk.main:app)
app = create_app()
