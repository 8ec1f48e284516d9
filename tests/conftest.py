# tests/conftest.py
from __future__ import annotations

import uuid
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models import Base
from services.log_store import LogStore


class RecordingStore:
    """In-memory stand-in for LogStore that records inserts in call order."""

    def __init__(self, fail_times: int = 0, fail_when=None) -> None:
        self.inserts: list[tuple[type, dict[str, Any]]] = []
        self.fail_times = fail_times
        self.fail_when = fail_when
        self.attempts = 0

    async def insert(self, model: type, values: dict[str, Any]) -> dict[str, Any]:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("store unavailable")
        if self.fail_when is not None and self.fail_when(values):
            raise RuntimeError("rejected by store")
        self.inserts.append((model, values))
        return values

    def rows(self, model: type) -> list[dict[str, Any]]:
        return [values for m, values in self.inserts if m is model]


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory) -> LogStore:
    return LogStore(session_factory)


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def make_store():
    def _make(fail_times: int = 0, fail_when=None) -> RecordingStore:
        return RecordingStore(fail_times=fail_times, fail_when=fail_when)
    return _make


@pytest.fixture
def company_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def user_id() -> str:
    return str(uuid.uuid4())
