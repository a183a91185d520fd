"""FastAPI dependencies"""
from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from market_api.core.config import Settings


def get_settings(request: Request) -> Settings:
    """Settings injected at application construction"""
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency
    Yields a database session and ensures it's closed after use
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
