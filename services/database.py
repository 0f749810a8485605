"""Database connection management for the LLM interaction audit log.

Async SQLAlchemy engine with SQLModel sessions, created lazily from
DATABASE_URL on first use. Only the database-backed interaction recorder
touches this module; the artifact engine runs without a database.
"""
import os
import ssl
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Tuple
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

ASYNC_SCHEME = "postgresql+asyncpg"

# libpq options asyncpg rejects in the query string
_UNSUPPORTED_QUERY_PARAMS = ("sslmode", "channel_binding", "options")
_SSL_REQUIRED_MODES = ("require", "verify-ca", "verify-full")

_engine: AsyncEngine | None = None
_async_session_maker: sessionmaker | None = None


def normalize_database_url(database_url: str) -> Tuple[str, Dict]:
    """Convert a libpq-style Postgres URL into an asyncpg URL and connect args.

    ``sslmode=require`` (or stricter) becomes an SSL context in the connect
    args; parameters asyncpg does not understand are dropped.

    Args:
        database_url: URL as found in DATABASE_URL.

    Returns:
        Tuple of (asyncpg URL, connect_args dict).
    """
    parsed = urlparse(database_url)
    query_params = parse_qs(parsed.query)

    connect_args: Dict = {}
    sslmode = query_params.get("sslmode", [None])[0]
    if sslmode in _SSL_REQUIRED_MODES:
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_context

    kept_params = {k: v for k, v in query_params.items() if k not in _UNSUPPORTED_QUERY_PARAMS}
    query = urlencode(kept_params, doseq=True) if kept_params else ""

    clean_url = urlunparse((
        ASYNC_SCHEME,
        parsed.netloc,
        parsed.path,
        parsed.params,
        query,
        parsed.fragment,
    ))
    return clean_url, connect_args


def get_database_url() -> Tuple[str, Dict]:
    """Read DATABASE_URL and normalize it for asyncpg.

    Raises:
        ValueError: If DATABASE_URL is not set.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return normalize_database_url(database_url)


def get_engine() -> AsyncEngine:
    """Get or create the async engine."""
    global _engine

    if _engine is None:
        database_url, connect_args = get_database_url()
        _engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            pool_recycle=300,
            connect_args=connect_args,
        )
        logger.info("Database engine created successfully")

    return _engine


def get_session_maker() -> sessionmaker:
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False
        )

    return _async_session_maker


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; rolls back and re-raises on error.

    Usage:
        async with get_async_session() as session:
            session.add(row)
            await session.commit()
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}", exc_info=True)
            raise


async def close_engine() -> None:
    """Dispose of the engine; called at application shutdown."""
    global _engine, _async_session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
        logger.info("Database engine closed")
