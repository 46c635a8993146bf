import asyncio
import logging
from functools import wraps
from typing import Callable, TypeVar, Any, AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import text
from sqlalchemy.exc import (
    SQLAlchemyError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
)
from asyncpg.exceptions import (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)

from .config import DATABASE_URL, DB_RETRY_ATTEMPTS, DB_RETRY_DELAY, DB_RETRY_BACKOFF_FACTOR
from .exceptions import DatabaseConnectionError, DatabaseTimeoutError

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict:
    """Engine keyword arguments for the given database URL"""
    if url.startswith("sqlite"):
        # aiosqlite has no connection pool to tune
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_async_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL))

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

F = TypeVar("F", bound=Callable[..., Any])
RETRYABLE_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)

CONNECTION_EXCEPTIONS = (ConnectionFailureError, ConnectionDoesNotExistError, DisconnectionError)


def _exhausted(func_name: str, attempts: int, error: Exception) -> Exception:
    """The exception raised once every retry has failed"""
    if isinstance(error, CONNECTION_EXCEPTIONS):
        return DatabaseConnectionError(
            f"Database connection failed after {attempts} attempts"
        )
    if isinstance(error, TimeoutError):
        return DatabaseTimeoutError(func_name, 30)
    return error


def db_retry(
    max_attempts: int = None,
    delay: float = None,
    backoff_factor: float = None,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable[[F], F]:
    """
    Retry a coroutine on transient database failures with exponential backoff.

    Unset arguments fall back to DB_RETRY_* settings.
    """
    attempts = max_attempts or DB_RETRY_ATTEMPTS
    first_delay = DB_RETRY_DELAY if delay is None else delay
    factor = DB_RETRY_BACKOFF_FACTOR if backoff_factor is None else backoff_factor

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error(
                            f"{func.__name__} gave up after {attempts} attempts: {str(e)}",
                            extra={"function": func.__name__, "final_exception": str(e)},
                        )
                        raise _exhausted(func.__name__, attempts, e) from e

                    wait = first_delay * factor ** (attempt - 1)
                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt}/{attempts}), retrying in {wait}s",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "exception_type": type(e).__name__,
                        },
                    )
                    await asyncio.sleep(wait)

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, rolled back on error"""
    async with async_session() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back: {type(e).__name__}: {str(e)}")
            raise


class DatabaseManager:
    """Schema and engine lifecycle"""

    @staticmethod
    @db_retry()
    async def check_connection() -> bool:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except RETRYABLE_EXCEPTIONS:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {str(e)}")
            raise DatabaseConnectionError("Database connection check failed")

        logger.info("Database connection OK")
        return True

    @staticmethod
    @db_retry()
    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    @staticmethod
    async def drop_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    @staticmethod
    async def close_connections():
        await engine.dispose()
        logger.info("Database connections closed")


db_manager = DatabaseManager()


def db_operation(func: F) -> F:
    """Trace a CRUD coroutine and log SQLAlchemy failures before re-raising"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger.debug(f"db: {func.__name__}")
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemy error in {func.__name__}: {str(e)}",
                extra={"operation": func.__name__, "exception_type": type(e).__name__},
            )
            raise

    return wrapper
