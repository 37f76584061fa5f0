from __future__ import annotations

from collections.abc import AsyncIterator

from fscs_backend.db import session as _session

Database = _session.Database
DatabaseConnection = _session.DatabaseConnection
DatabaseTransaction = _session.DatabaseTransaction
create_database = _session.create_database
create_engine = _session.create_engine

# NOTE: keep `database` at the package level so tests can swap
# `fscs_backend.db.database` and have the request dependencies pick it up.
database: Database = create_database()


async def get_connection() -> AsyncIterator[DatabaseConnection]:
    async with database.connection() as conn:
        yield conn


async def get_transaction() -> AsyncIterator[DatabaseTransaction]:
    async with database.transaction() as tx:
        yield tx


__all__ = [
    "Database",
    "DatabaseConnection",
    "DatabaseTransaction",
    "create_database",
    "create_engine",
    "database",
    "get_connection",
    "get_transaction",
]
