"""Tests for the Redis kv adapter."""

import json
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from agentlog.schemas.log import LogQuery, LogRecord
from agentlog.stores.kv import INDEX_KEY, RedisStore, record_key


def _record(**overrides) -> LogRecord:
    data = {
        "id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "kind": "insight",
        "session_id": "s1",
        "detail": {"text": "hello"},
    }
    data.update(overrides)
    return LogRecord(**data)


def test_unbound_client_is_unavailable():
    assert RedisStore(None).available is False
    assert RedisStore(AsyncMock()).available is True


@pytest.mark.asyncio
async def test_write_sets_entry_with_ttl_and_indexes():
    client = AsyncMock()
    store = RedisStore(client, ttl_seconds=60)
    record = _record()

    outcome = await store.write(record)

    assert outcome.ok
    key, payload = client.set.await_args.args
    assert key == record_key(record.id)
    assert client.set.await_args.kwargs == {"ex": 60}
    assert json.loads(payload)["detail"] == {"text": "hello"}
    client.zadd.assert_awaited_once()
    assert client.zadd.await_args.args[0] == INDEX_KEY


@pytest.mark.asyncio
async def test_write_failure_is_reported_not_raised():
    client = AsyncMock()
    client.set.side_effect = RedisConnectionError("refused")
    outcome = await RedisStore(client).write(_record())
    assert outcome.ok is False
    assert "refused" in outcome.error_detail


@pytest.mark.asyncio
async def test_read_decodes_filters_and_prunes_expired():
    kept = _record()
    other = _record(session_id="s2")
    client = AsyncMock()
    client.zrevrange.return_value = [kept.id.encode(), other.id.encode(), b"gone"]
    client.mget.return_value = [kept.model_dump_json(), other.model_dump_json(), None]

    result = await RedisStore(client).read(LogQuery(session_id="s1"))

    assert result.ok
    assert [r.id for r in result.records] == [kept.id]
    client.zrem.assert_awaited_once_with(INDEX_KEY, "gone")


@pytest.mark.asyncio
async def test_read_normalizes_legacy_entries():
    legacy = {
        "id": str(uuid.uuid4()),
        "ts": datetime.now(timezone.utc).isoformat(),
        "type": "session",
        "who": "agent",
        "payload": {"text": "old"},
    }
    client = AsyncMock()
    client.mget.return_value = [json.dumps(legacy)]

    result = await RedisStore(client).read(LogQuery(ids=[legacy["id"]]))

    record = result.records[0]
    assert record.kind == "session"
    assert record.source == "agent"
    assert record.detail == {"text": "old"}
    client.zrevrange.assert_not_awaited()


@pytest.mark.asyncio
async def test_undecodable_entry_marks_partial():
    good = _record()
    client = AsyncMock()
    client.zrevrange.return_value = [good.id, "broken"]
    client.mget.return_value = [good.model_dump_json(), "{not json"]

    result = await RedisStore(client).read(LogQuery())

    assert result.partial is True
    assert [r.id for r in result.records] == [good.id]


@pytest.mark.asyncio
async def test_read_failure_is_reported():
    client = AsyncMock()
    client.zrevrange.side_effect = RedisConnectionError("down")
    result = await RedisStore(client).read(LogQuery())
    assert result.ok is False
    assert result.error_detail == "down"


def test_expects_only_unexpired_records():
    store = RedisStore(AsyncMock(), ttl_seconds=3600)
    fresh = _record()
    stale = _record(timestamp=(datetime.now(timezone.utc) - timedelta(hours=2)).isoformat())
    assert store.expects(fresh) is True
    assert store.expects(stale) is False
