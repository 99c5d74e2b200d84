"""Relational store adapter (SQLAlchemy async).

Maps the canonical LogRecord onto the fixed ``log_records`` column set.
If the canonical insert fails, the record is written to the legacy flat
``event_log`` table instead and the outcome is flagged as a fallback.
Reads union both tables, normalizing legacy rows into canonical records;
a canonical row wins when the same id exists in both.
"""

import json
from datetime import timezone
from typing import Optional

import structlog
from sqlalchemy import or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agentlog.models.base import Base
from agentlog.models.log_record import LegacyEvent, LogRecordRow
from agentlog.schemas.log import LogQuery, LogRecord, parse_timestamp
from agentlog.services.compat import (
    decode_detail,
    decode_tags,
    encode_tags,
    from_legacy,
    tag_like_pattern,
)
from agentlog.stores.base import StoreAdapter, StoreOutcome, StoreReadResult

log = structlog.get_logger(__name__)

TABLES = [LogRecordRow.__table__, LegacyEvent.__table__]


def _encode_detail(detail) -> Optional[str]:
    if detail is None:
        return None
    return json.dumps(detail, default=str)


def row_to_record(row: LogRecordRow) -> LogRecord:
    ts = row.timestamp
    if ts is not None and ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return LogRecord(
        id=row.id,
        timestamp=ts.isoformat() if ts else None,
        operation_id=row.operation_id,
        original_operation_id=row.original_operation_id,
        kind=row.kind,
        level=row.level,
        source=row.source,
        session_id=row.session_id,
        tags=decode_tags(row.tags),
        trace_id=row.trace_id,
        detail=decode_detail(row.detail),
        error_message=row.error_message,
        error_code=row.error_code,
        artifact_key=row.artifact_key,
        idx1=row.idx1,
        idx2=row.idx2,
        has_embedding=bool(row.has_embedding),
    )


def legacy_to_record(row: LegacyEvent) -> LogRecord:
    return from_legacy(
        {
            "id": row.id,
            "ts": row.ts,
            "type": row.type,
            "who": row.who,
            "level": row.level,
            "session_id": row.session_id,
            "tags": row.tags,
            "payload": row.payload,
        }
    )


class SqlStore(StoreAdapter):
    name = "relational"

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]]):
        self.session_factory = session_factory

    @property
    def available(self) -> bool:
        return self.session_factory is not None

    async def create_schema(self) -> None:
        """Create the log tables if they do not exist (idempotent)."""

        def _create(sync_session):
            Base.metadata.create_all(sync_session.connection(), tables=TABLES)

        async with self.session_factory() as session:
            await session.run_sync(_create)
            await session.commit()

    async def write(self, record: LogRecord) -> StoreOutcome:
        row = LogRecordRow(
            id=record.id,
            timestamp=parse_timestamp(record.timestamp),
            operation_id=record.operation_id,
            original_operation_id=record.original_operation_id,
            kind=record.kind,
            level=record.level,
            source=record.source,
            session_id=record.session_id,
            tags=encode_tags(record.tags),
            trace_id=record.trace_id,
            detail=_encode_detail(record.detail),
            error_message=record.error_message,
            error_code=record.error_code,
            artifact_key=record.artifact_key,
            idx1=record.idx1,
            idx2=record.idx2,
            has_embedding=record.has_embedding,
        )
        try:
            async with self.session_factory() as session:
                await session.merge(row)
                await session.commit()
            return self.ok()
        except (SQLAlchemyError, OSError) as primary_exc:
            log.warning("relational_write_failed", record_id=record.id, error=str(primary_exc))
            try:
                await self._write_legacy(record)
            except (SQLAlchemyError, OSError) as fallback_exc:
                return self.failed(
                    f"primary_error: {primary_exc}, fallback_error: {fallback_exc}"
                )
            log.info("relational_write_fallback", record_id=record.id)
            return self.ok(fallback=True)

    async def _write_legacy(self, record: LogRecord) -> None:
        async with self.session_factory() as session:
            await session.merge(
                LegacyEvent(
                    id=record.id,
                    ts=record.timestamp,
                    type=record.kind,
                    who=record.source or "system",
                    level=record.level,
                    session_id=record.session_id,
                    tags=encode_tags(record.tags),
                    payload=_encode_detail(record.detail),
                )
            )
            await session.commit()

    async def read(self, query: LogQuery) -> StoreReadResult:
        try:
            async with self.session_factory() as session:
                result = await session.execute(self._canonical_stmt(query))
                records = [row_to_record(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as exc:
            log.warning("relational_read_failed", error=str(exc))
            return self.read_failed(str(exc))

        partial = False
        try:
            async with self.session_factory() as session:
                result = await session.execute(self._legacy_stmt(query))
                legacy = [legacy_to_record(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as exc:
            log.warning("relational_legacy_read_failed", error=str(exc))
            legacy = []
            partial = True

        seen = {r.id for r in records}
        records.extend(r for r in legacy if r.id not in seen and query.matches(r))
        records.sort(key=lambda r: r.sort_key(), reverse=True)
        return StoreReadResult(
            store_name=self.name, records=records[: query.limit], partial=partial
        )

    async def ping(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    @staticmethod
    def _canonical_stmt(query: LogQuery):
        stmt = select(LogRecordRow)
        if query.ids:
            stmt = stmt.where(LogRecordRow.id.in_(query.ids))
        if query.type:
            stmt = stmt.where(
                or_(LogRecordRow.kind == query.type, LogRecordRow.operation_id == query.type)
            )
        if query.tag:
            stmt = stmt.where(LogRecordRow.tags.like(tag_like_pattern(query.tag), escape="\\"))
        if query.session_id:
            stmt = stmt.where(LogRecordRow.session_id == query.session_id)
        if query.since:
            stmt = stmt.where(LogRecordRow.timestamp >= query.since)
        return stmt.order_by(LogRecordRow.timestamp.desc(), LogRecordRow.id).limit(query.limit)

    @staticmethod
    def _legacy_stmt(query: LogQuery):
        stmt = select(LegacyEvent)
        if query.ids:
            stmt = stmt.where(LegacyEvent.id.in_(query.ids))
        if query.type:
            stmt = stmt.where(LegacyEvent.type == query.type)
        if query.tag:
            stmt = stmt.where(LegacyEvent.tags.like(tag_like_pattern(query.tag), escape="\\"))
        if query.session_id:
            stmt = stmt.where(LegacyEvent.session_id == query.session_id)
        return stmt.order_by(LegacyEvent.ts.desc()).limit(query.limit)
