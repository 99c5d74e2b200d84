"""Vector store adapter (PostgreSQL + pgvector).

Holds one embedding per record along with enough metadata to filter. The
vector copy never carries the detail, so on read it only contributes
metadata and membership. A query with ``text`` is embedded and ranked by
cosine distance; otherwise rows come back newest-first.
"""

from datetime import timezone
from typing import Optional

import httpx
import structlog
from sqlalchemy import or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agentlog.models.base import Base
from agentlog.models.log_vector import LogVector
from agentlog.schemas.log import LogQuery, LogRecord, parse_timestamp
from agentlog.services.compat import decode_tags, encode_tags, tag_like_pattern
from agentlog.services.embedding import EmbeddingService, EmbeddingSkippedError
from agentlog.stores.base import StoreAdapter, StoreOutcome, StoreReadResult

log = structlog.get_logger(__name__)

EMBEDDING_SKIPPED = "embedding_skipped"


class PgVectorStore(StoreAdapter):
    name = "vector"
    holds_vectors = True

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]],
        embedder: Optional[EmbeddingService] = None,
    ):
        self.session_factory = session_factory
        self.embedder = embedder

    @property
    def available(self) -> bool:
        return self.session_factory is not None

    def accepts(self, record: LogRecord) -> bool:
        if record.embedding is not None:
            return True
        return bool(
            record.embedding_text and self.embedder is not None and self.embedder.configured
        )

    def expects(self, record: LogRecord) -> bool:
        return record.has_embedding

    async def create_schema(self) -> None:
        def _create(sync_session):
            Base.metadata.create_all(sync_session.connection(), tables=[LogVector.__table__])

        async with self.session_factory() as session:
            await session.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await session.run_sync(_create)
            await session.commit()

    async def write(self, record: LogRecord) -> StoreOutcome:
        vector = record.embedding
        if vector is None:
            if self.embedder is None or not record.embedding_text:
                return self.failed(EMBEDDING_SKIPPED)
            try:
                vector, model_id, _ = await self.embedder.embed(record.embedding_text)
            except EmbeddingSkippedError:
                return self.failed(EMBEDDING_SKIPPED)
            except httpx.HTTPError as exc:
                log.warning("embedding_error", record_id=record.id, error=str(exc))
                return self.failed(f"embedding_error: {exc}")
            log.info("embedding_stored", record_id=record.id, model=model_id)

        row = LogVector(
            id=record.id,
            embedding=vector,
            timestamp=parse_timestamp(record.timestamp),
            kind=record.kind,
            operation_id=record.operation_id,
            level=record.level,
            source=record.source,
            session_id=record.session_id,
            tags=encode_tags(record.tags),
        )
        try:
            async with self.session_factory() as session:
                await session.merge(row)
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            log.warning("vector_write_failed", record_id=record.id, error=str(exc))
            return self.failed(str(exc))
        return self.ok()

    async def read(self, query: LogQuery) -> StoreReadResult:
        partial = False
        query_vector = None
        if query.text and self.embedder is not None:
            try:
                query_vector, _, _ = await self.embedder.embed(query.text)
            except EmbeddingSkippedError:
                log.info("semantic_query_skipped", reason="embedding_not_configured")
            except httpx.HTTPError as exc:
                log.warning("semantic_query_embedding_failed", error=str(exc))
                partial = True

        stmt = select(LogVector)
        if query.ids:
            stmt = stmt.where(LogVector.id.in_(query.ids))
        if query.type:
            stmt = stmt.where(or_(LogVector.kind == query.type, LogVector.operation_id == query.type))
        if query.tag:
            stmt = stmt.where(LogVector.tags.like(tag_like_pattern(query.tag), escape="\\"))
        if query.session_id:
            stmt = stmt.where(LogVector.session_id == query.session_id)
        if query.since:
            stmt = stmt.where(LogVector.timestamp >= query.since)
        if query_vector is not None:
            stmt = stmt.order_by(LogVector.embedding.cosine_distance(query_vector))
        else:
            stmt = stmt.order_by(LogVector.timestamp.desc(), LogVector.id)
        stmt = stmt.limit(query.limit)

        try:
            async with self.session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            log.warning("vector_read_failed", error=str(exc))
            return self.read_failed(str(exc))

        return StoreReadResult(
            store_name=self.name,
            records=[self._to_record(row) for row in rows],
            partial=partial,
        )

    async def ping(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    @staticmethod
    def _to_record(row: LogVector) -> LogRecord:
        ts = row.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return LogRecord(
            id=row.id,
            timestamp=ts.isoformat(),
            kind=row.kind,
            operation_id=row.operation_id,
            level=row.level or "info",
            source=row.source,
            session_id=row.session_id,
            tags=decode_tags(row.tags),
            has_embedding=True,
        )
