from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import text

from fscs_backend.db import Database, create_engine
from fscs_backend.db.repos import PersonRepository
from fscs_backend.errors import StoreError


@pytest.mark.asyncio
async def test_uncommitted_transaction_is_rolled_back(test_database: Database) -> None:
    async with test_database.transaction() as tx:
        await PersonRepository(tx).create(first_name="Alice", last_name="A", user_name="alice")

    async with test_database.connection() as conn:
        assert await PersonRepository(conn).get_by_user_name("alice") is None


@pytest.mark.asyncio
async def test_committed_transaction_is_visible(test_database: Database) -> None:
    async with test_database.transaction() as tx:
        await PersonRepository(tx).create(first_name="Alice", last_name="A", user_name="alice")
        await tx.commit()
        assert tx.finished

    async with test_database.connection() as conn:
        assert await PersonRepository(conn).get_by_user_name("alice") is not None


@pytest.mark.asyncio
async def test_commit_twice_is_an_error(test_database: Database) -> None:
    async with test_database.transaction() as tx:
        await tx.commit()
        with pytest.raises(RuntimeError):
            await tx.commit()
        # Rolling back a finished transaction does nothing.
        await tx.rollback()


@pytest.mark.asyncio
async def test_failed_statement_aborts_the_whole_transaction(test_database: Database) -> None:
    with pytest.raises(StoreError) as excinfo:
        async with test_database.transaction() as tx:
            people = PersonRepository(tx)
            await people.create(first_name="Alice", last_name="A", user_name="alice")
            await people.create(first_name="Other", last_name="A", user_name="alice")
            await tx.commit()

    assert excinfo.value.public_message == "Internal server error"
    assert "UNIQUE" in (excinfo.value.detail or "").upper()

    async with test_database.connection() as conn:
        assert await PersonRepository(conn).list_all() == []


@pytest.mark.asyncio
async def test_sqlite_engine_ignores_pool_sizing(tmp_path: Path) -> None:
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pool.db'}", pool_size=1, pool_timeout=0.1
    )
    try:
        async with engine.connect() as conn:
            assert (await conn.execute(text("PRAGMA foreign_keys"))).scalar_one() == 1
        # The dialect default pool is kept; only PostgreSQL is sized from settings.
        assert engine.pool.size() != 1
    finally:
        await engine.dispose()
