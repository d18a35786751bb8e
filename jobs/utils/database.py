"""Database setup shared by worker tasks."""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config.database import enable_sqlite_savepoints
from app.config.settings import settings


def create_task_engine():
    """
    Create an engine for worker tasks.

    NullPool keeps connections from being shared across the event loops
    that each actor invocation creates.
    """
    engine = create_async_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )
    if settings.database_url.startswith("sqlite"):
        enable_sqlite_savepoints(engine)
    return engine


def create_task_session_maker(engine=None):
    """Create a session maker for worker tasks."""
    if engine is None:
        engine = create_task_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Ready-to-use instances
task_engine = create_task_engine()
task_session_maker = create_task_session_maker(task_engine)
