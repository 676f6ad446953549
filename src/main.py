"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_notification_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


async def outbox_dispatch_loop(interval: float) -> None:
    """Drain the notification outbox until cancelled."""
    while True:
        try:
            await get_notification_service().dispatch_pending()
        except Exception:
            logger.exception("outbox_dispatch_failed")
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    dispatcher: asyncio.Task[None] | None = None
    if settings.outbox_enabled:
        dispatcher = asyncio.create_task(
            outbox_dispatch_loop(settings.outbox_poll_interval_seconds)
        )
        logger.info(
            "outbox_dispatcher_started",
            interval_seconds=settings.outbox_poll_interval_seconds,
        )
    yield
    if dispatcher:
        dispatcher.cancel()
        with suppress(asyncio.CancelledError):
            await dispatcher


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Collaborative Workspace Management\n\n"
            "Tandem organises work into workspaces, projects and tasks with "
            "role-based access at every level.\n\n"
            "### Features\n"
            "- **Permissions**: Single and bulk permission checks for the UI\n"
            "- **Assignments**: Multiple assignees per task\n"
            "- **Notifications**: Durable outbox delivery with real-time push\n"
            "- **Email triage**: LLM-backed prospect classification\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "State-changing notification calls also require "
            "`X-Requested-With: XMLHttpRequest`."
        ),
        version="1.0.0",
        debug=settings.debug,
        contact={
            "name": "Tandem Support",
        },
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "permissions", "description": "Permission checks"},
            {"name": "workspaces", "description": "Workspace and member management"},
            {"name": "invitations", "description": "Workspace invitations"},
            {"name": "projects", "description": "Projects and project members"},
            {"name": "tasks", "description": "Tasks, assignees and comments"},
            {"name": "notifications", "description": "In-app notifications"},
            {"name": "ai", "description": "Email classification"},
            {"name": "realtime", "description": "WebSocket notification stream"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
