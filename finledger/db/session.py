"""
Database engine and session lifecycle with async support.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from finledger.config import get_settings
from finledger.models.base import Base


def _ensure_sqlite_directory(db_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    prefix, _, db_path = db_url.partition(":///")
    if not prefix.startswith("sqlite") or not db_path or db_path == ":memory:":
        return
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite honour the ledger's transactional rules.

    - Foreign keys are OFF by default in SQLite; the RESTRICT on
      transactions.acc_id depends on them.
    - The driver's implicit BEGIN handling is disabled and SQLAlchemy emits
      BEGIN itself, otherwise SAVEPOINTs (begin_nested) do not work.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Create and configure the async database engine.

    Args:
        database_url: SQLAlchemy URL; defaults to Settings.DATABASE_URL.
        echo: Log emitted SQL; defaults to Settings.SQL_ECHO.
    """
    settings = get_settings()
    db_url = database_url or settings.DATABASE_URL
    _ensure_sqlite_directory(db_url)

    engine = create_async_engine(db_url, echo=settings.SQL_ECHO if echo is None else echo)
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create every ledger table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request; the API layer wraps this in its own dependency.

    Usage:
        async for session in get_session(factory):
            service = AccountService(session, user_id)
    """
    async with session_factory() as session:
        yield session
