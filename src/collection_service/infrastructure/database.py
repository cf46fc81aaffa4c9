import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from collection_service.config import settings
from collection_service.domain.exceptions import DependencyError


class Database:
    def __init__(self, database_url: str) -> None:
        self.engine = create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        await self.engine.dispose()


def remote_call[**P, R](
    operation: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Bound a store call by the configured timeout and surface failures as DependencyError.

    A timeout is reported as transient so callers take the same compensation
    path as for an explicit store error.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                async with asyncio.timeout(settings.remote_call_timeout_seconds):
                    return await func(*args, **kwargs)
            except TimeoutError as e:
                raise DependencyError(operation, "timed out", transient=True) from e
            except SQLAlchemyError as e:
                raise DependencyError(operation, str(e)) from e

        return wrapper

    return decorator
