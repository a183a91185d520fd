"""Main FastAPI application

Run with ``uvicorn market_api.main:create_app --factory``.
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from market_api.api.v1.api import api_router
from market_api.core.config import Settings
from market_api.db.init_db import create_initial_data, init_db
from market_api.db.session import build_engine, build_session_factory
from market_api.errors.handlers import (
    general_exception_handler,
    http_exception_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler,
)
from market_api.utils.logger import setup_file_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; raises ConfigurationError before doing anything else."""
    settings = (settings or Settings()).validate()

    setup_file_logging(logging.getLevelName(settings.LOG_LEVEL.upper()), settings.LOG_FILE)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Accounts, OTP verification and role-based access control",
        version=settings.PROJECT_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{settings.API_V1_STR}/openapi.json"
    )

    engine = build_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    async def startup_event():
        """Initialize database and log application startup"""
        init_db(app.state.engine)
        create_initial_data(app.state.session_factory, settings)
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialized successfully")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Log application shutdown"""
        app.state.engine.dispose()
        logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")

    return app
