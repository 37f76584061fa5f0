from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from fscs_backend.db.models import Base
from fscs_backend.db.session import DatabaseConnection

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):  # noqa: UP046
    """Typed helpers shared by all repositories.

    A repository works the same on a plain connection and on a transaction;
    committing is the caller's job.
    """

    def __init__(self, conn: DatabaseConnection, model: type[ModelT]) -> None:
        self.conn = conn
        self.model = model

    @property
    def session(self) -> AsyncSession:
        return self.conn.session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def insert_stmt(self) -> Any:
        # Both dialects support ON CONFLICT ... DO NOTHING and RETURNING.
        if self.dialect_name == "postgresql":
            return pg_insert(self.model)
        return sqlite_insert(self.model)

    async def add(self, obj: ModelT, *, flush: bool = True) -> ModelT:
        self.session.add(obj)
        if flush:
            await self.session.flush()  # assigns PKs, etc.
        return obj

    async def get(self, id_: Any) -> ModelT | None:
        return await self.session.get(self.model, id_)

    async def first_where(self, *predicates: ColumnElement[bool]) -> ModelT | None:
        stmt = select(self.model).where(*predicates).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_where(self, *predicates: ColumnElement[bool], order_by: Any = None) -> list[ModelT]:
        stmt = select(self.model).where(*predicates)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, tuple) else stmt.order_by(order_by)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, obj: ModelT, *, flush: bool = True) -> None:
        await self.session.delete(obj)
        if flush:
            await self.session.flush()

    async def patch(self, obj: ModelT, changes: Mapping[str, Any], *, flush: bool = True) -> ModelT:
        # Unset fields keep their stored value.
        for k, v in changes.items():
            if v is None:
                continue
            setattr(obj, k, v)
        if flush:
            await self.session.flush()
        return obj
