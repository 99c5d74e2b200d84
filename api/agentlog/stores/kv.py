"""Key-value store adapter backed by Redis.

Each record is serialized whole under ``log_<id>`` with a TTL, and its id is
added to a sorted-set index scored by timestamp so recent entries can be
listed newest-first. Index members whose entry has expired are pruned lazily
on read. Entries written by older callers in the legacy flat shape are
normalized on read.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from agentlog.schemas.log import LogQuery, LogRecord, parse_timestamp
from agentlog.services.compat import from_legacy, is_legacy_shape
from agentlog.stores.base import StoreAdapter, StoreOutcome, StoreReadResult

log = structlog.get_logger(__name__)

KEY_PREFIX = "log_"
INDEX_KEY = "logs:index"

# Filters run client-side, so read a wider window of the index than the limit
SCAN_FACTOR = 5
MIN_SCAN = 100


def record_key(record_id: str) -> str:
    return f"{KEY_PREFIX}{record_id}"


class RedisStore(StoreAdapter):
    name = "kv"

    def __init__(self, client: Optional[aioredis.Redis], ttl_seconds: int = 86400):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def available(self) -> bool:
        return self.client is not None

    def expects(self, record: LogRecord) -> bool:
        # Entries older than the TTL have legitimately expired
        age = datetime.now(timezone.utc) - parse_timestamp(record.timestamp)
        return age < timedelta(seconds=self.ttl_seconds)

    async def write(self, record: LogRecord) -> StoreOutcome:
        payload = record.model_dump_json()
        score = parse_timestamp(record.timestamp).timestamp()
        try:
            await self.client.set(record_key(record.id), payload, ex=self.ttl_seconds)
            await self.client.zadd(INDEX_KEY, {record.id: score})
        except RedisError as exc:
            log.warning("kv_write_failed", record_id=record.id, error=str(exc))
            return self.failed(str(exc))
        return self.ok()

    async def read(self, query: LogQuery) -> StoreReadResult:
        try:
            if query.ids:
                ids = list(query.ids)
            else:
                window = max(query.limit * SCAN_FACTOR, MIN_SCAN)
                ids = [
                    i.decode() if isinstance(i, bytes) else i
                    for i in await self.client.zrevrange(INDEX_KEY, 0, window - 1)
                ]
            if not ids:
                return StoreReadResult(store_name=self.name)
            values = await self.client.mget([record_key(i) for i in ids])
        except RedisError as exc:
            log.warning("kv_read_failed", error=str(exc))
            return self.read_failed(str(exc))

        records = []
        expired = []
        undecodable = 0
        for record_id, raw in zip(ids, values):
            if raw is None:
                expired.append(record_id)
                continue
            try:
                record = self._decode(raw)
            except (ValueError, KeyError, TypeError):
                undecodable += 1
                log.warning("kv_entry_undecodable", record_id=record_id)
                continue
            if query.matches(record):
                records.append(record)

        if expired and not query.ids:
            await self._prune(expired)

        records.sort(key=lambda r: r.sort_key(), reverse=True)
        return StoreReadResult(
            store_name=self.name,
            records=records[: query.limit],
            partial=undecodable > 0,
        )

    async def ping(self) -> None:
        await self.client.ping()

    async def _prune(self, ids: list[str]) -> None:
        try:
            await self.client.zrem(INDEX_KEY, *ids)
        except RedisError:
            log.warning("kv_index_prune_failed", count=len(ids), exc_info=True)

    @staticmethod
    def _decode(raw) -> LogRecord:
        data = json.loads(raw)
        if is_legacy_shape(data):
            return from_legacy(data)
        return LogRecord.model_validate(data)
