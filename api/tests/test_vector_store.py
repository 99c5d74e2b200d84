"""Tests for the pgvector adapter with a mocked session."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from agentlog.models import LogVector
from agentlog.schemas.log import LogQuery, LogRecord
from agentlog.services.embedding import EmbeddingSkippedError
from agentlog.stores.vector import EMBEDDING_SKIPPED, PgVectorStore


def _session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


def _embedder(configured=True, vector=None, error=None):
    embedder = MagicMock()
    embedder.configured = configured
    embedder.embed = AsyncMock(
        return_value=(vector or [0.1, 0.2, 0.3], "text-embedding-3-small", None),
        side_effect=error,
    )
    return embedder


def _record(**overrides) -> LogRecord:
    data = {
        "id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "kind": "insight",
        "tags": ["trust"],
        "has_embedding": True,
    }
    data.update(overrides)
    return LogRecord(**data)


@pytest.fixture
def session():
    session = AsyncMock()
    session.merge = AsyncMock()
    session.commit = AsyncMock()
    return session


def test_accepts_raw_vectors_or_embeddable_text():
    store = PgVectorStore(MagicMock(), _embedder(configured=False))
    assert store.accepts(_record(embedding=[0.1])) is True
    assert store.accepts(_record(embedding_text="hi")) is False
    assert store.accepts(_record()) is False

    configured = PgVectorStore(MagicMock(), _embedder())
    assert configured.accepts(_record(embedding_text="hi")) is True


def test_expects_follows_has_embedding():
    store = PgVectorStore(MagicMock())
    assert store.expects(_record()) is True
    assert store.expects(_record(has_embedding=False)) is False
    assert PgVectorStore(None).available is False


@pytest.mark.asyncio
async def test_write_with_raw_embedding(session):
    store = PgVectorStore(_session_factory(session))
    record = _record(embedding=[0.5, 0.5])

    outcome = await store.write(record)

    assert outcome.ok
    row = session.merge.await_args.args[0]
    assert isinstance(row, LogVector)
    assert row.id == record.id
    assert row.embedding == [0.5, 0.5]
    assert row.tags == '["trust"]'
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_write_embeds_text(session):
    embedder = _embedder(vector=[0.9, 0.8])
    store = PgVectorStore(_session_factory(session), embedder)

    outcome = await store.write(_record(embedding_text="what happened"))

    assert outcome.ok
    embedder.embed.assert_awaited_once_with("what happened")
    assert session.merge.await_args.args[0].embedding == [0.9, 0.8]


@pytest.mark.asyncio
async def test_skipped_embedding_is_a_store_failure(session):
    store = PgVectorStore(
        _session_factory(session), _embedder(error=EmbeddingSkippedError("no key"))
    )
    outcome = await store.write(_record(embedding_text="x"))
    assert outcome.ok is False
    assert outcome.error_detail == EMBEDDING_SKIPPED
    session.merge.assert_not_awaited()


@pytest.mark.asyncio
async def test_provider_error_is_reported(session):
    store = PgVectorStore(
        _session_factory(session), _embedder(error=httpx.ConnectError("refused"))
    )
    outcome = await store.write(_record(embedding_text="x"))
    assert outcome.ok is False
    assert outcome.error_detail.startswith("embedding_error")


@pytest.mark.asyncio
async def test_read_returns_metadata_only_records(session):
    row = LogVector(
        id=str(uuid.uuid4()),
        embedding=[0.1],
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        kind="insight",
        operation_id="logDataOrEvent",
        level="info",
        source="mirror",
        session_id="s1",
        tags='["trust"]',
    )
    result_proxy = MagicMock()
    result_proxy.scalars.return_value.all.return_value = [row]
    session.execute = AsyncMock(return_value=result_proxy)
    embedder = _embedder()
    store = PgVectorStore(_session_factory(session), embedder)

    result = await store.read(LogQuery(text="trust issues", tag="trust"))

    assert result.ok
    [record] = result.records
    assert record.id == row.id
    assert record.has_embedding is True
    assert record.detail is None
    assert record.tags == ["trust"]
    embedder.embed.assert_awaited_once_with("trust issues")


@pytest.mark.asyncio
async def test_read_database_error(session):
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))
    store = PgVectorStore(_session_factory(session))
    result = await store.read(LogQuery())
    assert result.ok is False
