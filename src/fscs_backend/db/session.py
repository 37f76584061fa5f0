from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fscs_backend.errors import StoreError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.settings import Settings, get_settings

logger = logging.getLogger("fscs_backend.db")


def _on_sqlite_connect(dbapi_connection: Any, _: Any) -> None:
    # Hand transaction control to SQLAlchemy so `_on_sqlite_begin` decides how they start.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn: Any) -> None:
    # SQLite has no row locks; taking the write lock up front serializes
    # read-then-write sequences such as agenda weight assignment.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(
    database_url: str,
    *,
    pool_size: int = 5,
    pool_timeout: float = 30.0,
) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        # The pool settings only size the PostgreSQL pool; SQLite keeps the
        # dialect default and serializes writers with BEGIN IMMEDIATE.
        engine = create_async_engine(database_url, future=True)
        event.listen(engine.sync_engine, "connect", _on_sqlite_connect)
        event.listen(engine.sync_engine, "begin", _on_sqlite_begin)
        return engine

    return create_async_engine(
        database_url,
        future=True,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


class DatabaseConnection:
    """A pooled session for read-only work.

    Repositories only need ``session``; a transaction is a connection that can
    additionally be committed or rolled back.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session


class DatabaseTransaction(DatabaseConnection):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    async def commit(self) -> None:
        if self._finished:
            raise RuntimeError("transaction already finished")
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.rollback()
            raise StoreError(str(exc)) from exc
        self._finished = True

    async def rollback(self) -> None:
        if self._finished:
            return
        self._finished = True
        await self.session.rollback()


class Database:
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.sessionmaker = create_sessionmaker(engine)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[DatabaseConnection]:
        async with self.sessionmaker() as session:
            try:
                yield DatabaseConnection(session)
            except SQLAlchemyError as exc:
                log_with_fields(logger, logging.ERROR, "query failed", exc_info=True)
                raise StoreError(str(exc)) from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DatabaseTransaction]:
        async with self.sessionmaker() as session:
            tx = DatabaseTransaction(session)
            try:
                yield tx
            except SQLAlchemyError as exc:
                log_with_fields(logger, logging.ERROR, "transaction aborted", exc_info=True)
                raise StoreError(str(exc)) from exc
            finally:
                # Never leave an uncommitted transaction open, whatever the exit path.
                if not tx.finished:
                    await tx.rollback()

    async def dispose(self) -> None:
        await self.engine.dispose()


def create_database(settings: Settings | None = None) -> Database:
    selected_settings = settings if settings is not None else get_settings()
    engine = create_engine(
        selected_settings.database_url,
        pool_size=selected_settings.database_pool_size,
        pool_timeout=selected_settings.database_pool_timeout_seconds,
    )
    return Database(engine)
