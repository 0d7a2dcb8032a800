"""
Application factory.

Builds the FastAPI app: logging, CORS, error handling, routers, and the
database engine/session factory stored on ``app.state``.

Run with:
    uvicorn lms.main:app --app-dir backend
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from lms import __version__
from lms.config import settings
from lms.db.base import create_engine, create_session_maker, init_db
from lms.middleware.error_handling import setup_error_handling
from lms.routers import health, review

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    engine: Optional[AsyncEngine] = None,
    create_tables: bool = True,
) -> FastAPI:
    """
    Create the application.

    Args:
        engine: Engine to use (defaults to one built from settings.DB_URL)
        create_tables: Create missing tables on startup
    """
    configure_logging()
    engine = engine or create_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            await init_db(engine)
        logger.info(f"{settings.APP_NAME} started")
        yield
        await engine.dispose()
        logger.info(f"{settings.APP_NAME} stopped")

    app = FastAPI(title=f"{settings.APP_NAME} API", version=__version__, lifespan=lifespan)
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)

    app.include_router(health.router)
    app.include_router(review.router)

    return app


app = create_app()
