"""Log write and retrieval endpoints.

POST /api/logs                  -- fan-out write
GET  /api/logs                  -- merged multi-store read
GET  /api/logs/legacy           -- merged read in the legacy flat shape
GET  /api/logs/retrieval-meta   -- retrieval counters
POST /api/logs/reconcile        -- backfill kv from the relational store

Write and read calls always answer 200; degraded stores and rejected
records are reported in the body.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Body, Query
from pydantic import ValidationError

from agentlog.config import settings
from agentlog.dependencies import Pipeline
from agentlog.schemas.log import (
    LogQuery,
    LogWriteRequest,
    ReconcileRequest,
    WriteResult,
)
from agentlog.services.compat import to_legacy

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["logs"])


def _parse_limit(raw: Optional[str]) -> int:
    try:
        limit = int(raw) if raw else settings.default_read_limit
    except ValueError:
        log.info("read_param_ignored", param="limit", value=raw)
        limit = settings.default_read_limit
    return max(1, min(limit, settings.max_read_limit))


def _parse_since(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        since = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        log.info("read_param_ignored", param="since", value=raw)
        return None
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since


def _build_query(
    limit: Optional[str],
    type: Optional[str],
    tag: Optional[str],
    session_id: Optional[str],
    source: str,
    q: Optional[str],
    ids: Optional[str],
    since: Optional[str],
) -> LogQuery:
    # Malformed limit or since fall back to defaults; reads never answer 422
    return LogQuery(
        limit=_parse_limit(limit),
        type=type,
        tag=tag,
        session_id=session_id,
        source=source or "all",
        text=q,
        ids=[i.strip() for i in ids.split(",") if i.strip()] if ids else [],
        since=_parse_since(since),
    )


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(p) for p in err.get("loc", ()))
    return f"{where}: {err.get('msg')}" if where else str(err.get("msg"))


@router.post("/logs")
async def write_log(pipeline: Pipeline, body: Any = Body(...)) -> dict:
    """Record one agent event in every available store.

    Returns:
        {"success": bool, "id": str, "stores": [...], "missingStores": [...],
         "failedStores": {...}, "artifactKey": str | None}
    """
    try:
        request = LogWriteRequest.model_validate(body)
    except ValidationError as exc:
        reason = _first_error(exc)
        log.info("log_request_invalid", reason=reason)
        return WriteResult(success=False, rejected=True, error=reason).model_dump(by_alias=True)

    result = await pipeline.writer.log(request)
    return result.model_dump(by_alias=True)


@router.get("/logs")
async def read_logs(
    pipeline: Pipeline,
    limit: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    session_id: Optional[str] = Query(None),
    source: str = Query("all"),
    q: Optional[str] = Query(None, description="Semantic query text for the vector store"),
    ids: Optional[str] = Query(None, description="Comma-separated record ids"),
    since: Optional[str] = Query(None, description="ISO-8601 lower bound on timestamp"),
) -> dict:
    """Read from the selected stores and merge by record id."""
    query = _build_query(limit, type, tag, session_id, source, q, ids, since)
    result = await pipeline.aggregator.query(query)
    return result.model_dump(by_alias=True)


@router.get("/logs/legacy")
async def read_logs_legacy(
    pipeline: Pipeline,
    limit: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    session_id: Optional[str] = Query(None),
    source: str = Query("all"),
) -> dict:
    """Merged read rendered in the flat ``{id, ts, type, who, ...}`` shape."""
    query = _build_query(limit, type, tag, session_id, source, None, None, None)
    result = await pipeline.aggregator.query(query)
    return {
        "logs": [to_legacy(m) for m in result.matches if m.retrieval_status != "failed"],
        "retrieval_summary": result.retrieval_summary.model_dump(),
    }


@router.get("/logs/retrieval-meta")
async def retrieval_meta(pipeline: Pipeline) -> dict:
    return pipeline.meta.get_meta().model_dump(mode="json")


@router.post("/logs/reconcile")
async def reconcile_logs(pipeline: Pipeline, body: ReconcileRequest) -> dict:
    report = await pipeline.reconciler.run(
        window_hours=body.window_hours, dry_run=body.dry_run
    )
    return report.model_dump()
