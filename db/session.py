"""
db/session.py

Shared SQLAlchemy engine, session factory and the FastAPI ``get_db`` dependency.

Nothing connects at import time: the engine is built on first use, so
repositories, routers and tests import this module without a database.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import EngineSettings, resolve_engine_settings

logger = logging.getLogger(__name__)


def create_db_engine(settings: EngineSettings | None = None) -> Engine:
    """
    Build a PostgreSQL engine from ``settings`` (environment when omitted).

    Raises:
        RuntimeError: the URL does not point at PostgreSQL.
    """

    settings = settings or resolve_engine_settings()
    if not settings.url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    # Import batches commit explicitly; keep loaded rows usable afterwards.
    return sessionmaker(
        bind=get_engine(),
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )


def SessionLocal() -> Session:
    """Open a new session from the shared factory."""
    return get_session_factory()()


def dispose_engine() -> None:
    """
    Close pooled connections and forget the shared engine.

    No-op when the engine was never built.
    """

    if get_engine.cache_info().currsize == 0:
        return
    get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()
    logger.info("Database engine disposed")


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
