from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

import fscs_backend.db as db
from fscs_backend.app import create_app
from fscs_backend.calendars import CalendarService
from fscs_backend.db import Database, DatabaseTransaction, create_engine
from fscs_backend.db.models import Base
from fscs_backend.errors import UpstreamError
from fscs_backend.files import LocalFileStore
from fscs_backend.settings import Settings
from fscs_backend.testing.web_test_helpers import TEST_SIGNING_KEY, FakeIdentityProvider

GROUPS = {
    "fsr": "ManageSitzungen,ManageAntraege,ManagePersons,ManageDoor,CreateAntrag,ViewProtected",
    "member": "CreateAntrag",
    "admins": "Admin",
}


@pytest.fixture
async def test_database(tmp_path: Path) -> AsyncIterator[Database]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    database = Database(engine)
    previous = db.database
    db.database = database

    yield database

    db.database = previous
    await engine.dispose()


@pytest.fixture
async def tx(test_database: Database) -> AsyncIterator[DatabaseTransaction]:
    async with test_database.transaction() as transaction:
        yield transaction


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        signing_key=TEST_SIGNING_KEY,
        groups=GROUPS,
        oauth_source_name="test",
        upload_dir=tmp_path / "uploads",
        max_file_size=1024,
        log_http_requests=False,
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def calendar_service() -> CalendarService:
    async def fetch(url: str) -> str:
        raise UpstreamError(f"no network in tests: {url}", source="calendar")

    return CalendarService({}, ttl_seconds=60, fetcher=fetch)


@pytest.fixture
def app(
    test_database: Database,
    settings: Settings,
    identity_provider: FakeIdentityProvider,
    calendar_service: CalendarService,
) -> FastAPI:
    _ = test_database
    return create_app(
        settings,
        identity_provider=identity_provider,
        calendar_service=calendar_service,
        file_store=LocalFileStore(settings.upload_dir),
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://testserver") as c:
        yield c
