"""
Database engine, session management, and base model class.

SQLAlchemy 2.0 with async support:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request

Session lifecycle:
  Each API request gets its own session via get_db(). The session rolls back
  on ANY exception, domain errors included, and commits whatever is left when
  the request succeeds. That final commit can run after the response is sent,
  so routes that write call `await db.commit()` themselves before returning.
  Batch endpoints rely on the rollback: the first failing item aborts the
  request before that commit and nothing from the batch is persisted.
"""

import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from cliente_api.config import settings
from cliente_api.exceptions import ClienteAPIError

logger = logging.getLogger(__name__)


# echo=True in debug mode logs all SQL statements
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False prevents lazy-load errors after commit, which
# would otherwise trigger a synchronous DB call inside async code.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    FastAPI caches the dependency per request, so the auth gateway and the
    route handler share one session and one transaction.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except ClienteAPIError as exc:
            logger.debug("Rolling back request transaction: %s", exc.detail)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
