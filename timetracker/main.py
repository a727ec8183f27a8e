"""
FastAPI application of the time tracker.
The legacy frontend talks to the root level routes, reporting lives under
/interpretation and booking under /tracking.
"""

from contextlib import asynccontextmanager
import logging
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from timetracker.config import settings
from timetracker.infrastructure.cache.query_cache import get_query_cache
from timetracker.infrastructure.db.database import engine
from timetracker.infrastructure.db.models import create_all_tables
from timetracker.infrastructure.events.event_setup import initialize_event_system
from timetracker.infrastructure.web.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from timetracker.infrastructure.web.routers import admin, controlling, default, interpretation, tracking

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.api_title} v{settings.api_version} ({settings.environment})")

    initialize_event_system()

    # Production schemas are managed outside the application
    if not settings.is_production:
        create_all_tables(engine)

    yield

    logger.info("Shutting down")
    engine.dispose()


def _database_status() -> str:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach the database: {str(e)}")
        return "unavailable"
    return "ok"


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    app.include_router(default.router, tags=["Tracking data"])
    app.include_router(tracking.router, prefix="/tracking", tags=["Tracking"])
    app.include_router(admin.router, tags=["Administration"])
    app.include_router(interpretation.router, prefix="/interpretation", tags=["Interpretation"])
    app.include_router(controlling.router, prefix="/controlling", tags=["Controlling"])

    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "health": "/health",
        }

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Database reachability and the active cache backend."""
        database = _database_status()
        return {
            "status": "healthy" if database == "ok" else "degraded",
            "environment": settings.environment,
            "version": settings.api_version,
            "database": database,
            "cache": type(get_query_cache().backend).__name__,
        }

    return app


app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "timetracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
