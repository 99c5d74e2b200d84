"""Shared fixtures: in-memory store adapters and a pipeline wired around them."""

import asyncio
from typing import Optional

import pytest

from agentlog.config import Settings
from agentlog.schemas.log import LogQuery, LogRecord
from agentlog.services.pipeline import assemble
from agentlog.stores.base import StoreAdapter, StoreOutcome, StoreReadResult


class MemoryStore(StoreAdapter):
    """In-memory adapter with switchable failure modes."""

    def __init__(
        self,
        name: str,
        available: bool = True,
        fail: bool = False,
        raises: Optional[Exception] = None,
        delay: float = 0.0,
        holds_overflow: bool = False,
        holds_vectors: bool = False,
        overflow_limit: int = 4000,
    ):
        self.name = name
        self._available = available
        self.fail = fail
        self.raises = raises
        self.delay = delay
        self.holds_overflow = holds_overflow
        self.holds_vectors = holds_vectors
        self.overflow_limit = overflow_limit
        self.records: dict[str, LogRecord] = {}
        self.writes = 0
        self.reads = 0

    @property
    def available(self) -> bool:
        return self._available

    def accepts(self, record: LogRecord) -> bool:
        if self.holds_vectors:
            return record.embedding is not None or bool(record.embedding_text)
        return True

    def expects(self, record: LogRecord) -> bool:
        if self.holds_overflow:
            return record.artifact_key is not None
        if self.holds_vectors:
            return record.has_embedding
        return True

    def artifact_key_for(self, record: LogRecord) -> str:
        return f"overflow/{record.id}.json"

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises

    async def write(self, record: LogRecord) -> StoreOutcome:
        self.writes += 1
        await self._maybe_fail()
        if self.fail:
            return self.failed(f"{self.name} write refused")
        self.records[record.id] = record.model_copy(deep=True)
        return self.ok()

    async def read(self, query: LogQuery) -> StoreReadResult:
        self.reads += 1
        await self._maybe_fail()
        if self.fail:
            return self.read_failed(f"{self.name} read refused")
        if self.holds_overflow:
            found = [r for r in self.records.values() if r.artifact_key in query.artifact_keys]
        else:
            found = [r for r in self.records.values() if query.matches(r)]
        found.sort(key=lambda r: r.sort_key(), reverse=True)
        return StoreReadResult(
            store_name=self.name,
            records=[r.model_copy(deep=True) for r in found[: query.limit]],
        )


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, store_timeout=0.2)


@pytest.fixture
def kv():
    return MemoryStore("kv")


@pytest.fixture
def relational():
    return MemoryStore("relational")


@pytest.fixture
def make_pipeline(test_settings):
    def _make(*adapters):
        return assemble(list(adapters), test_settings)

    return _make


@pytest.fixture
def pipeline(make_pipeline, kv, relational):
    return make_pipeline(kv, relational)
