"""
Relational catalog connection factory

The search engine only borrows connections from the engine built here; pool
sizing, disposal and migrations belong to the caller.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

logger = structlog.get_logger(__name__)

Base = declarative_base()


def create_catalog_engine(database_url: str, **engine_kwargs: Any) -> AsyncEngine:
    """
    Build an async SQLAlchemy engine for the catalog database.

    Args:
        database_url: SQLAlchemy URL; a bare ``postgresql://`` scheme is
            switched to the asyncpg driver
        **engine_kwargs: Passed through to ``create_async_engine`` (pool sizing etc.)

    Returns:
        AsyncEngine instance
    """
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_async_engine(database_url, **engine_kwargs)
    logger.info("catalog_engine_created", dialect=engine.dialect.name, driver=engine.dialect.driver)
    return engine
