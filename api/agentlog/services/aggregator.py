"""Retrieval aggregator.

Reads from every selected, available store concurrently, merges the results
by record id and labels each merged record with a retrieval status:

- complete: found in every store expected to hold it
- partial: found somewhere, but missing from at least one expected store
  (including a store that errored during this read)
- failed: explicitly requested by id but not found in any store

The relational store holds the canonical schema, so its copy wins as the
primary record; the ``stores`` field is extended with every other store the
id was found in. Overflowed details are hydrated from the blob store in a
second pass keyed by the artifact keys discovered in the first. That pass
only starts once the first has finished, so a read that touches the blob
store can take up to twice the per-store timeout.

A store that errors never aborts the aggregation. Its absence shows up only
in ``store_status``, the summary counts and per-record statuses.
"""

from typing import Optional

import structlog

from agentlog import metrics
from agentlog.ops.registry import OperationRegistry
from agentlog.schemas.log import (
    LogQuery,
    LogRecord,
    RetrievalResult,
    RetrievalSummary,
    RetrievedRecord,
    parse_timestamp,
)
from agentlog.services.dispatch import DispatchResult, StoreDispatcher
from agentlog.services.meta import RetrievalMetaTracker
from agentlog.stores.base import StoreAdapter

log = structlog.get_logger(__name__)

# Lower rank wins when the same id comes back from several stores
PRIMARY_PRECEDENCE = ("relational", "kv", "vector", "blob")

_FILLABLE_FIELDS = (
    "timestamp",
    "operation_id",
    "original_operation_id",
    "source",
    "session_id",
    "trace_id",
    "detail",
    "error_message",
    "error_code",
    "artifact_key",
    "idx1",
    "idx2",
)


def _rank(store_name: str) -> int:
    try:
        return PRIMARY_PRECEDENCE.index(store_name)
    except ValueError:
        return len(PRIMARY_PRECEDENCE)


class LogAggregator:
    def __init__(
        self,
        adapters: list[StoreAdapter],
        dispatcher: StoreDispatcher,
        registry: OperationRegistry,
        meta: RetrievalMetaTracker,
    ):
        self.adapters = adapters
        self.dispatcher = dispatcher
        self.registry = registry
        self.meta = meta

    async def query(self, query: LogQuery) -> RetrievalResult:
        selected = query.selected_stores()
        scoped = [a for a in self.adapters if selected is None or a.name in selected]
        queried = [a for a in scoped if a.available]

        result = RetrievalResult()
        for adapter in scoped:
            if not adapter.available:
                result.store_status[adapter.name] = "unavailable"

        found: dict[str, dict[str, LogRecord]] = {}

        primary_stores = [a for a in queried if not a.holds_overflow]
        overflow_stores = [a for a in queried if a.holds_overflow]

        first_pass = await self.dispatcher.gather(
            [(a, "read", lambda a=a: a.read(query)) for a in primary_stores]
        )
        self._collect(first_pass, found, result)

        if overflow_stores:
            artifact_keys = sorted(
                {
                    rec.artifact_key
                    for by_store in found.values()
                    for rec in by_store.values()
                    if rec.artifact_key
                }
            )
            overflow_query = query.model_copy(update={"artifact_keys": artifact_keys})
            second_pass = await self.dispatcher.gather(
                [(a, "read", lambda a=a: a.read(overflow_query)) for a in overflow_stores]
            )
            self._collect(second_pass, found, result)

        matches = [self._merge(by_store, queried) for by_store in found.values()]
        matches.sort(key=lambda r: (-parse_timestamp(r.timestamp).timestamp(), r.id))
        matches = matches[: query.limit]

        for record_id in query.ids:
            if record_id not in found:
                matches.append(
                    RetrievedRecord(id=record_id, stores=[], retrieval_status="failed")
                )

        summary = RetrievalSummary()
        for match in matches:
            if match.retrieval_status == "complete":
                summary.successful += 1
            elif match.retrieval_status == "partial":
                summary.partial += 1
            else:
                summary.failed += 1
        result.matches = matches
        result.retrieval_summary = summary

        self.meta.record_retrieval()
        metrics.retrievals.inc()
        log.info(
            "logs_retrieved",
            stores=sorted(a.name for a in queried),
            store_status=result.store_status,
            successful=summary.successful,
            partial=summary.partial,
            failed=summary.failed,
        )
        return result

    def _collect(
        self,
        dispatched: list[DispatchResult],
        found: dict[str, dict[str, LogRecord]],
        result: RetrievalResult,
    ) -> None:
        for item in dispatched:
            name = item.store_name
            if not item.ok:
                result.store_status[name] = item.error or "error"
                result.results[name] = []
                metrics.store_reads.labels(store=name, outcome="error").inc()
                continue

            read = item.value
            result.store_status[name] = "partial" if read.partial else "ok"
            result.results[name] = list(read.records)
            metrics.store_reads.labels(store=name, outcome="ok").inc()
            for record in read.records:
                found.setdefault(record.id, {})[name] = record

    def _merge(
        self, by_store: dict[str, LogRecord], queried: list[StoreAdapter]
    ) -> RetrievedRecord:
        primary_name = min(by_store, key=_rank)
        primary = by_store[primary_name]
        merged = RetrievedRecord(**primary.model_dump())

        order = {a.name: i for i, a in enumerate(self.adapters)}
        secondaries = sorted(
            (name for name in by_store if name != primary_name), key=_rank
        )
        for name in secondaries:
            other = by_store[name]
            for field in _FILLABLE_FIELDS:
                if getattr(merged, field) is None and getattr(other, field) is not None:
                    setattr(merged, field, getattr(other, field))
            if not merged.tags and other.tags:
                merged.tags = list(other.tags)
            merged.has_embedding = merged.has_embedding or other.has_embedding

        overflow = next(
            (by_store[a.name] for a in queried if a.holds_overflow and a.name in by_store),
            None,
        )
        if overflow is not None and overflow.detail is not None:
            merged.detail = overflow.detail

        for name in sorted(by_store, key=lambda n: order.get(n, len(order))):
            if name not in merged.stores:
                merged.stores.append(name)

        self._canonicalize(merged)

        expected = {a.name for a in queried if a.expects(merged)}
        missing = expected - set(by_store)
        merged.retrieval_status = "partial" if missing else "complete"
        return merged

    def _canonicalize(self, record: LogRecord) -> None:
        supplied: Optional[str] = record.operation_id or record.kind
        canonical = self.registry.to_canonical(supplied)
        if canonical != supplied:
            record.original_operation_id = record.original_operation_id or supplied
        record.operation_id = canonical
