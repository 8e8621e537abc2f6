"""
FastAPI application exposing the forum service.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forum.config import SEED_ON_STARTUP
from forum.db import ForumStore
from forum.errors import ForumError
from forum.logging_config import configure_logging
from forum.routes.admin import router as admin_router
from forum.routes.forum import router as forum_router
from forum.routes.health import router as health_router
from forum.services.forum import ForumService
from forum.services.seeder import seed_forum
from forum.services.summary import ActivitySummarizer

logger = logging.getLogger(__name__)


def build_service(seed: bool = SEED_ON_STARTUP, latency: Optional[float] = None) -> ForumService:
    """Create the process-wide store and the service that owns it."""
    store = ForumStore()
    if seed and seed_forum(store):
        logger.info("Store seeded with fixture data")
    return ForumService(store, latency=latency)


def create_app(
    service: Optional[ForumService] = None,
    summarizer: Optional[ActivitySummarizer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Forum service to serve (a seeded in-memory one by default)
        summarizer: Summary collaborator for the admin console

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Forum API",
        description="Categories, topics, posts and an admin console over an in-memory store",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.service = service or build_service()
    app.state.summarizer = summarizer or ActivitySummarizer()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ForumError)
    async def forum_exception_handler(request: Request, exc: ForumError):
        """Map forum failures to their status codes."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error_code": exc.error_code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other unhandled exceptions."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if app.debug else "Internal server error",
            },
        )

    app.include_router(forum_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    @app.get("/")
    async def root():
        return {"message": "Forum API", "status": "healthy", "version": "1.0.0"}

    return app


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run("forum.main:create_app", factory=True, host="0.0.0.0", port=8000, log_level="info")
