"""Composition root for the logging pipeline.

Builds every store adapter from Settings, leaving a store unbound (adapter
present, ``available`` False) when its binding is not configured, and
wires the shared dispatcher, registry and meta tracker into the writer,
aggregator and reconciler.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import boto3
import redis.asyncio as aioredis
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from agentlog.config import Settings
from agentlog.database import create_engine, create_session_factory
from agentlog.ops.registry import OperationRegistry
from agentlog.services.aggregator import LogAggregator
from agentlog.services.dispatch import StoreDispatcher
from agentlog.services.embedding import EmbeddingService
from agentlog.services.meta import RetrievalMetaTracker
from agentlog.services.reconcile import Reconciler
from agentlog.services.redaction import Redactor
from agentlog.services.validation import LogValidator
from agentlog.services.writer import LogWriter
from agentlog.stores.base import StoreAdapter
from agentlog.stores.blob import S3BlobStore
from agentlog.stores.kv import RedisStore
from agentlog.stores.relational import SqlStore
from agentlog.stores.vector import PgVectorStore

log = structlog.get_logger(__name__)


@dataclass
class LogPipeline:
    writer: LogWriter
    aggregator: LogAggregator
    reconciler: Reconciler
    meta: RetrievalMetaTracker
    registry: OperationRegistry
    adapters: list[StoreAdapter]
    redis: Optional[aioredis.Redis] = None
    embedder: Optional[EmbeddingService] = None
    engines: list[AsyncEngine] = field(default_factory=list)

    def adapter(self, name: str) -> Optional[StoreAdapter]:
        return next((a for a in self.adapters if a.name == name), None)

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
        if self.embedder is not None:
            await self.embedder.close()
        for engine in self.engines:
            await engine.dispose()


def assemble(
    adapters: list[StoreAdapter],
    settings: Settings,
    registry: Optional[OperationRegistry] = None,
    meta: Optional[RetrievalMetaTracker] = None,
) -> LogPipeline:
    """Wire writer, aggregator and reconciler around an explicit adapter list."""
    registry = registry or OperationRegistry(strict=settings.strict_aliases)
    meta = meta or RetrievalMetaTracker()
    dispatcher = StoreDispatcher(
        timeout=settings.store_timeout,
        breaker_enabled=settings.store_breaker_enabled,
        failure_threshold=settings.breaker_failure_threshold,
        recovery_timeout=settings.breaker_recovery_timeout,
    )
    validator = LogValidator.from_settings(settings, registry.get_all_canonical())
    writer = LogWriter(
        adapters,
        dispatcher,
        registry,
        Redactor(),
        validator,
        inline_detail_limit=settings.inline_detail_limit,
    )
    aggregator = LogAggregator(adapters, dispatcher, registry, meta)

    by_name = {a.name: a for a in adapters}
    reconciler = Reconciler(
        by_name.get("relational") or SqlStore(None),
        by_name.get("kv") or RedisStore(None),
        dispatcher,
    )
    return LogPipeline(
        writer=writer,
        aggregator=aggregator,
        reconciler=reconciler,
        meta=meta,
        registry=registry,
        adapters=adapters,
    )


def _blob_client(settings: Settings) -> Any:
    if not settings.blob_bucket:
        return None
    kwargs: dict[str, Any] = {}
    if settings.blob_region:
        kwargs["region_name"] = settings.blob_region
    if settings.blob_endpoint_url:
        kwargs["endpoint_url"] = settings.blob_endpoint_url
    return boto3.client("s3", **kwargs)


def build_pipeline(settings: Settings) -> LogPipeline:
    """Build the production pipeline from Settings."""
    redis_client = (
        aioredis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        if settings.redis_url
        else None
    )

    engines = []
    relational_engine = None
    vector_engine = None
    if settings.database_url:
        relational_engine = create_engine(settings.database_url, echo=settings.debug)
        engines.append(relational_engine)
        if settings.vector_enabled:
            # Separate engine so a missing pgvector extension cannot break relational connections
            vector_engine = create_engine(
                settings.database_url, echo=settings.debug, register_vector=True
            )
            engines.append(vector_engine)

    embedder = EmbeddingService() if vector_engine is not None else None

    # Configuration order: also the order stores are reported in
    adapters: list[StoreAdapter] = [
        RedisStore(redis_client, ttl_seconds=settings.kv_ttl_seconds),
        SqlStore(create_session_factory(relational_engine)),
        S3BlobStore(
            _blob_client(settings),
            settings.blob_bucket,
            prefix=settings.blob_prefix,
            inline_detail_limit=settings.inline_detail_limit,
        ),
        PgVectorStore(create_session_factory(vector_engine), embedder),
    ]
    adapters = [a for a in adapters if a.name in settings.store_names]

    pipeline = assemble(adapters, settings)
    pipeline.redis = redis_client
    pipeline.embedder = embedder
    pipeline.engines = engines

    log.info(
        "pipeline_built",
        bound=[a.name for a in adapters if a.available],
        unbound=[a.name for a in adapters if not a.available],
    )
    return pipeline
