# services/log_store.py
"""
Durable append-only store for log tables: insert, filtered query,
delete-by-predicate. One short transaction per call.
"""
from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class LogStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, model: type[ModelT], values: dict[str, Any]) -> ModelT:
        row = model(**values)
        async with self._session_factory() as session:
            try:
                session.add(row)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return row

    async def query(
        self,
        model: type[ModelT],
        *criteria: ColumnElement[bool],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ModelT]:
        """Rows matching every criterion, newest first."""
        stmt = select(model).where(*criteria).order_by(model.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_where(self, model: type[ModelT], *criteria: ColumnElement[bool]) -> int:
        stmt = delete(model).where(*criteria)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        deleted = result.rowcount or 0
        logger.info("Deleted %d rows from %s", deleted, model.__tablename__)
        return deleted
