"""TMS Core: FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tms_core.adapters.persistence.database import engine
from tms_core.config import settings
from tms_core.infrastructure.api.errors import register_error_handlers
from tms_core.infrastructure.api.routes_assignments import router as assignments_router
from tms_core.infrastructure.api.routes_health import router as health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s | %(name)s | %(message)s",
    )

    app = FastAPI(
        title="TMS Core: order assignments",
        description="Driver / vehicle assignment tracking and revenue allocation per order",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the dashboard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")

    return app


app = create_app()
