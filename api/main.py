"""FastAPI application setup."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.sessions import SessionRegistry
from config import Settings, get_settings
from logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    # Startup
    settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    logger.info("Starting context compaction API server...")
    yield
    # Shutdown
    logger.info(f"Shutting down context compaction API server ({len(app.state.sessions)} sessions dropped)...")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Context Compaction API",
        description="Bounded, priority-aware context working sets for agent conversations",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.sessions = SessionRegistry(max_sessions=settings.max_sessions)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from api.routes import context

    app.include_router(
        context.router,
        prefix="/api/context",
        tags=["Context"]
    )

    @app.get("/")
    async def root():
        """Service description."""
        return {
            "name": "Context Compaction API",
            "version": "0.1.0",
            "description": "Bounded, priority-aware context working sets for agent conversations",
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "sessions": len(app.state.sessions)}

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )