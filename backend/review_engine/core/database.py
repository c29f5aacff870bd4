"""Async engine, session factory and transaction helper."""

from collections.abc import AsyncGenerator, Awaitable
from functools import wraps
from typing import Callable, Concatenate, ParamSpec, Protocol, TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from review_engine.config import settings

engine = create_async_engine(
    str(settings.database_url),
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with async_session_factory() as session:
        yield session


class HasSession(Protocol):
    db: AsyncSession


S = TypeVar("S", bound=HasSession)
P = ParamSpec("P")
R = TypeVar("R")


def transactional(
    func: Callable[Concatenate[S, P], Awaitable[R]],
) -> Callable[Concatenate[S, P], Awaitable[R]]:
    """Run a repository method in its own commit.

    The method's ``self.db`` is committed when it returns and rolled back
    when it raises.

    Usage:
        class ReviewRepository:
            @transactional
            async def delete(self, review_id: UUID) -> None:
                await self.db.execute(delete(Review).where(Review.id == review_id))
    """

    @wraps(func)
    async def wrapper(self: S, *args: P.args, **kwargs: P.kwargs) -> R:
        db = getattr(self, "db", None)
        if not isinstance(db, AsyncSession):
            raise TypeError(f"{type(self).__name__}.db is not an AsyncSession")

        try:
            result = await func(self, *args, **kwargs)
        except Exception:
            await db.rollback()
            raise
        await db.commit()
        return result

    return wrapper


async def check_db_connection() -> bool:
    """Check database connectivity for startup logging."""
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception:
        return False


async def close_db() -> None:
    """Dispose of pooled connections."""
    await engine.dispose()
