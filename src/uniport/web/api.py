"""FastAPI application factory.

Main entry point for the Uniport Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uniport import __version__
from uniport.config.app_config import load_app_config
from uniport.db.database import get_db_path, init_db, is_initialized
from uniport.web.exception_handlers import setup_exception_handlers
from uniport.web.routes import (
    admin_router,
    auth_router,
    cbt_router,
    courses_router,
    gpa_router,
    health_router,
    results_router,
    student_courses_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    if not is_initialized():
        init_db(config.db_path)
    logger.info(
        "api_startup",
        database=str(get_db_path().absolute()),
        current_semester=config.academic.current_semester,
        current_session=config.academic.current_session,
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Uniport API",
        description="Academic portal: registration, results, GPA, CBT practice and admin",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(courses_router)
    app.include_router(student_courses_router)
    app.include_router(gpa_router)
    app.include_router(results_router)
    app.include_router(cbt_router)
    app.include_router(admin_router)

    return app


# Default app instance for uvicorn
app = create_app()
