"""Fan-out writer.

One logical write is dispatched to every available store adapter that
accepts the record, concurrently, and the per-store outcomes are collected
into a WriteResult. The write succeeds when at least one store accepted it,
or when no store is bound at all: an interactive agent must never stall or
error because an observability backend is degraded.

Write path: canonicalize operation id -> redact payload -> validate ->
fan out.

Oversized details go to the overflow (blob) store first. Only when that
succeeds do the inline stores receive a short summary plus the artifact
key; otherwise they keep the full detail. The overflow write completes
before the inline fan-out starts, so an overflowing write can take up to
twice the per-store timeout.

A record that every bound target store declines (a small detail aimed at
the blob store, say) is rejected instead of being reported as written.
"""

import time
import uuid
from typing import Optional

import structlog

from agentlog import metrics
from agentlog.ops.registry import OperationRegistry
from agentlog.schemas.log import LogRecord, LogWriteRequest, WriteResult, utc_now_iso
from agentlog.services.dispatch import CIRCUIT_OPEN, TIMEOUT, StoreDispatcher
from agentlog.services.redaction import Redactor
from agentlog.services.validation import LogValidator, serialized_detail
from agentlog.stores.base import StoreAdapter

log = structlog.get_logger(__name__)

OVERFLOW_PREVIEW_CHARS = 200
NO_STORE_ACCEPTS = "no store accepts this record"


def overflow_summary(detail, size: int) -> dict:
    """Inline stand-in for a detail that was moved to the blob store."""
    content = detail.get("content", "") if isinstance(detail, dict) else ""
    if not isinstance(content, str) or not content:
        content = serialized_detail(detail)
    return {
        "_original_size": size,
        "summary": f"Payload too large ({size} bytes) - stored as artifact",
        "content_preview": content[:OVERFLOW_PREVIEW_CHARS] + "...",
    }


def _is_error_kind(kind: str, level: str) -> bool:
    return level == "error" or "error" in kind or "failure" in kind


class LogWriter:
    def __init__(
        self,
        adapters: list[StoreAdapter],
        dispatcher: StoreDispatcher,
        registry: OperationRegistry,
        redactor: Redactor,
        validator: LogValidator,
        inline_detail_limit: int = 4000,
    ):
        self.adapters = adapters
        self.dispatcher = dispatcher
        self.registry = registry
        self.redactor = redactor
        self.validator = validator
        self.inline_detail_limit = inline_detail_limit

    def build_record(self, request: LogWriteRequest) -> LogRecord:
        """Turn a caller's write request into a canonical, redacted record."""
        supplied_op = request.operation_id or request.type
        canonical = self.registry.to_canonical(supplied_op)

        payload = request.payload
        if self.redactor.contains_potential_secrets(payload):
            metrics.potential_secrets.inc()
            log.info("payload_contains_potential_secrets", kind=request.type)
        if isinstance(payload, str) and payload.lstrip().startswith(("{", "[")):
            detail = self.redactor.redact_json_string(payload)
        else:
            detail = self.redactor.redact(payload)

        error_message = None
        error_code = None
        if _is_error_kind(request.type, request.level):
            if isinstance(detail, dict):
                error_message = detail.get("message") or detail.get("error")
                if error_message is not None:
                    error_message = str(error_message)
            error_code = request.error_code

        return LogRecord(
            id=request.id or str(uuid.uuid4()),
            timestamp=request.timestamp or utc_now_iso(),
            operation_id=canonical,
            original_operation_id=self.registry.original_if_aliased(supplied_op),
            kind=request.type,
            level=request.level,
            source=request.who or "system",
            session_id=request.session_id,
            tags=list(request.tags),
            trace_id=request.trace_id,
            detail=detail,
            error_message=error_message,
            error_code=error_code,
            idx1=request.idx1,
            idx2=request.idx2,
            has_embedding=bool(request.embedding or request.embedding_text),
            embedding=request.embedding,
            embedding_text=request.embedding_text,
        )

    async def log(self, request: LogWriteRequest) -> WriteResult:
        """Build, validate and write in one call."""
        record = self.build_record(request)
        return await self.write_record(record, target_store=request.target_store)

    async def write_record(
        self, record: LogRecord, target_store: Optional[str] = None
    ) -> WriteResult:
        start = time.monotonic()

        reason = self.validator.validate(record, target_store=target_store)
        if reason is not None:
            metrics.validation_rejections.inc()
            log.info("log_record_rejected", record_id=record.id, reason=reason)
            return WriteResult(success=False, id=record.id, rejected=True, error=reason)

        targeted = [
            a for a in self.adapters if target_store is None or a.name == target_store
        ]
        candidates = [a for a in targeted if a.accepts(record)]
        if not candidates and any(a.available for a in targeted):
            log.info("log_record_declined", record_id=record.id, target_store=target_store)
            return WriteResult(
                success=False, id=record.id, rejected=True, error=NO_STORE_ACCEPTS
            )
        available = [a for a in candidates if a.available]
        missing = [a.name for a in candidates if not a.available]
        # Only claim an embedding when some store will actually index it
        record.has_embedding = record.has_embedding and any(a.holds_vectors for a in candidates)
        for name in missing:
            metrics.missing_store_writes.labels(store=name).inc()

        results = []
        overflow = self._overflow_store(record, available)
        if overflow is not None:
            # The artifact must exist before inline copies point at it
            record.artifact_key = overflow.artifact_key_for(record)
            results.append(
                await self.dispatcher.run(overflow, "write", lambda: overflow.write(record))
            )
            if not results[0].ok:
                record.artifact_key = None

        inline = record
        if record.artifact_key:
            size = len(serialized_detail(record.detail).encode("utf-8"))
            inline = record.model_copy(
                update={"detail": overflow_summary(record.detail, size), "stores": []}
            )

        results.extend(
            await self.dispatcher.gather(
                [
                    (adapter, "write", lambda a=adapter: a.write(inline))
                    for adapter in available
                    if adapter is not overflow
                ]
            )
        )

        stores = []
        failed = {}
        for result in results:
            if result.ok:
                stores.append(result.store_name)
                metrics.store_writes.labels(store=result.store_name, outcome="ok").inc()
            else:
                failed[result.store_name] = result.error or "unknown error"
                outcome = result.error if result.error in (CIRCUIT_OPEN, TIMEOUT) else "error"
                metrics.store_writes.labels(store=result.store_name, outcome=outcome).inc()

        # Report in configuration order regardless of completion order
        order = {a.name: i for i, a in enumerate(self.adapters)}
        stores.sort(key=lambda name: order.get(name, len(order)))
        record.stores.extend(stores)

        success = bool(stores) or not any(a.available for a in targeted)
        metrics.write_duration.observe(time.monotonic() - start)

        log.info(
            "log_record_written",
            record_id=record.id,
            operation_id=record.operation_id,
            stores=stores,
            missing_stores=missing,
            failed_stores=sorted(failed),
            success=success,
        )
        if not available:
            log.warning("log_record_not_persisted", record_id=record.id, reason="no_store_bound")

        return WriteResult(
            success=success,
            id=record.id,
            stores=stores,
            missing_stores=missing,
            failed_stores=failed,
            artifact_key=record.artifact_key,
        )

    def _overflow_store(
        self, record: LogRecord, available: list[StoreAdapter]
    ) -> Optional[StoreAdapter]:
        """The available overflow store, if record's detail is over the inline limit."""
        if record.detail is None:
            return None
        overflow = next((a for a in available if a.holds_overflow), None)
        if overflow is None:
            return None
        size = len(serialized_detail(record.detail).encode("utf-8"))
        if size <= self.inline_detail_limit:
            return None
        return overflow
