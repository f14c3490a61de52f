import contextlib
import logging
from typing import AsyncContextManager, AsyncGenerator, Callable, Optional
from urllib.parse import urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from segment_service.exceptions import SegmentDBConfigurationError, SegmentDBConnectionError
from segment_service.settings import Settings

logger = logging.getLogger(__name__)


def _mask_password(url: str) -> str:
    """Masks the password in the database URL."""
    parsed = urlparse(url)
    if parsed.password:
        return urlunparse(parsed._replace(netloc=f"{parsed.username}:***@{parsed.hostname}:{parsed.port}"))
    return url


def _get_db_url(settings: Settings) -> str:
    """Determines the database URL, converting to asyncpg URL if needed

    Returns:
        The database URL as a string.

    Raises:
        SegmentDBConfigurationError: If missing required variables.
    """
    database_url = settings.get_database_url()

    if database_url:
        logger.info("Using DATABASE_URL for database connection.")

        # Convert to async URL if needed
        if database_url.startswith("postgresql://"):
            database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)

        return database_url

    logger.info("DATABASE_URL not found. Falling back to individual DB_* variables.")

    db_vars = dict(
        user=settings.get_postgres_user(),
        password=settings.get_postgres_password(),
        host=settings.get_postgres_host(),
        port=settings.get_postgres_port(),
        dbname=settings.get_postgres_db(),
    )

    if not all(db_vars.values()):
        missing_vars = [k.upper() for k, v in db_vars.items() if v is None]
        raise SegmentDBConfigurationError(
            f"DATABASE_URL not set, and missing required DB_* variables to construct URL: {missing_vars}"
        )

    async_url = f"postgresql+asyncpg://{db_vars['user']}:{db_vars['password']}@{db_vars['host']}:{db_vars['port']}/{db_vars['dbname']}"
    logger.debug(f"Constructed database URL from individual variables: {_mask_password(async_url)}")
    return async_url


async def create_db_engine(settings: Settings) -> AsyncEngine:
    """Creates the async engine (and its connection pool) for the application DB.

    Args:
        settings: Application settings providing the URL, pool sizes and isolation level.

    Returns:
        The async engine for the application DB.

    Raises:
        SegmentDBConfigurationError: If the database configuration is invalid.
        SegmentDBConnectionError: If the engine cannot be created.
    """
    logger.info("Attempting to create database engine...")

    db_url = _get_db_url(settings)

    try:
        engine_kwargs = {}
        if db_url.startswith("postgresql"):
            # Get and validate pool sizes
            pool_min_size = settings.get_main_db_pool_min_size()
            pool_max_size = settings.get_main_db_pool_max_size()
            engine_kwargs.update(
                pool_size=pool_min_size,
                max_overflow=pool_max_size - pool_min_size,
                isolation_level=settings.get_db_isolation_level(),
            )

        engine = create_async_engine(
            db_url,
            echo=False,  # Set to True for debugging SQL queries
            pool_pre_ping=True,
            **engine_kwargs,
        )
        logger.info("Database engine created successfully.")
        return engine
    except Exception as e:
        masked_url = _mask_password(db_url)
        raise SegmentDBConnectionError(f"Failed to create database engine using URL ({masked_url}): {e}") from e


def create_session_factory(engine: AsyncEngine) -> Callable[[], AsyncContextManager[AsyncSession]]:
    """Build a factory of session context managers bound to ``engine``.

    Each session rolls back on error and returns its connection to the pool on exit.
    """
    session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    @contextlib.asynccontextmanager
    async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    return get_db_session


async def close_db_engine(engine: Optional[AsyncEngine]) -> None:
    """Closes the database engine."""
    if engine is None:
        logger.info("Database engine was None or not initialized during shutdown.")
        return
    try:
        await engine.dispose()
        logger.info("Database engine closed successfully.")
    except Exception as e:
        logger.error(f"Error closing database engine: {e}", exc_info=True)
