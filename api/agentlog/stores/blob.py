"""Blob store adapter for oversized log details (S3-compatible, boto3).

Only records whose serialized detail exceeds the inline limit are accepted.
Each one is stored whole as a JSON object under
``<prefix><YYYY-MM-DD>/<id>.json``; that key is the record's artifact key
and is what the inline stores carry instead of the full detail.

boto3 is synchronous, so every client call runs in a worker thread.
Objects are not listable by filter: reads fetch exactly the artifact keys
named in the query.
"""

import asyncio
import json
from typing import Any, Optional

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from agentlog.schemas.log import LogQuery, LogRecord, parse_timestamp
from agentlog.services.validation import serialized_detail
from agentlog.stores.base import StoreAdapter, StoreOutcome, StoreReadResult

log = structlog.get_logger(__name__)

NOT_FOUND_CODES = ("404", "NoSuchKey")


class S3BlobStore(StoreAdapter):
    name = "blob"
    holds_overflow = True

    def __init__(
        self,
        client: Any,
        bucket: Optional[str],
        prefix: str = "overflow/",
        inline_detail_limit: int = 4000,
    ):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix
        self.inline_detail_limit = inline_detail_limit

    @property
    def available(self) -> bool:
        return self.client is not None and bool(self.bucket)

    def accepts(self, record: LogRecord) -> bool:
        if record.detail is None:
            return False
        size = len(serialized_detail(record.detail).encode("utf-8"))
        return size > self.inline_detail_limit

    def expects(self, record: LogRecord) -> bool:
        return record.artifact_key is not None

    def artifact_key_for(self, record: LogRecord) -> str:
        day = parse_timestamp(record.timestamp).strftime("%Y-%m-%d")
        return f"{self.prefix}{day}/{record.id}.json"

    async def write(self, record: LogRecord) -> StoreOutcome:
        key = record.artifact_key or self.artifact_key_for(record)
        body = record.model_dump_json(exclude={"stores"}).encode("utf-8")
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
                Metadata={
                    "log-id": record.id,
                    "timestamp": record.timestamp or "",
                    "kind": record.kind,
                },
            )
        except (ClientError, BotoCoreError) as exc:
            log.warning("blob_write_failed", record_id=record.id, key=key, error=str(exc))
            return self.failed(str(exc))
        return self.ok()

    async def read(self, query: LogQuery) -> StoreReadResult:
        records = []
        partial = False
        for key in query.artifact_keys:
            try:
                record = await asyncio.to_thread(self._get_record, key)
            except ClientError as exc:
                code = exc.response.get("Error", {}).get("Code", "")
                if code in NOT_FOUND_CODES:
                    log.info("blob_artifact_missing", key=key)
                    continue
                log.warning("blob_read_failed", key=key, error=str(exc))
                partial = True
                continue
            except (BotoCoreError, ValueError) as exc:
                log.warning("blob_read_failed", key=key, error=str(exc))
                partial = True
                continue

            record.artifact_key = key
            if not query.ids or record.id in query.ids:
                records.append(record)

        return StoreReadResult(store_name=self.name, records=records, partial=partial)

    async def ping(self) -> None:
        await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)

    def _get_record(self, key: str) -> LogRecord:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return LogRecord.model_validate(json.loads(response["Body"].read().decode("utf-8")))
