"""Pydantic schemas for log records, write requests and retrieval responses."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LogRecord(BaseModel):
    """Canonical persisted unit.

    ``detail`` holds the already-redacted payload. ``stores`` is filled in
    after a write (or during read-side merging) and is only ever appended to.
    ``embedding`` / ``embedding_text`` feed the vector store and are never
    serialized into the other stores.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: Optional[str] = None
    operation_id: Optional[str] = None
    original_operation_id: Optional[str] = None
    kind: str = "log"
    level: str = "info"
    source: Optional[str] = None
    session_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    stores: list[str] = Field(default_factory=list)
    trace_id: Optional[str] = None
    detail: Any = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    artifact_key: Optional[str] = None
    idx1: Optional[str] = None
    idx2: Optional[str] = None
    has_embedding: bool = False

    embedding: Optional[list[float]] = Field(default=None, exclude=True)
    embedding_text: Optional[str] = Field(default=None, exclude=True)

    def sort_key(self) -> tuple[float, str]:
        return (parse_timestamp(self.timestamp).timestamp(), self.id)


class RetrievedRecord(LogRecord):
    """A merged record as returned by the retrieval aggregator."""

    retrieval_status: str = "complete"


class LogWriteRequest(BaseModel):
    """Write endpoint body. Field names follow the agent-facing contract."""

    type: str = Field(min_length=1, max_length=100)
    payload: Any = None
    who: Optional[str] = Field(None, max_length=100)
    level: str = Field("info", max_length=20)
    session_id: Optional[str] = Field(None, max_length=200)
    tags: list[str] = Field(default_factory=list, max_length=50)
    idx1: Optional[str] = Field(None, max_length=200)
    idx2: Optional[str] = Field(None, max_length=200)
    trace_id: Optional[str] = Field(None, max_length=200)
    error_code: Optional[str] = Field(None, max_length=100)

    id: Optional[str] = None
    timestamp: Optional[str] = None
    operation_id: Optional[str] = Field(None, max_length=100)
    target_store: Optional[str] = None
    embedding: Optional[list[float]] = None
    embedding_text: Optional[str] = None


class WriteResult(BaseModel):
    """Outcome of a fan-out write. Never raised, always returned."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    id: Optional[str] = None
    stores: list[str] = Field(default_factory=list)
    missing_stores: list[str] = Field(default_factory=list, serialization_alias="missingStores")
    failed_stores: dict[str, str] = Field(default_factory=dict, serialization_alias="failedStores")
    artifact_key: Optional[str] = Field(None, serialization_alias="artifactKey")
    rejected: bool = False
    error: Optional[str] = None


class LogQuery(BaseModel):
    """Retrieval filter shared by every store adapter."""

    limit: int = Field(20, ge=1, le=200)
    type: Optional[str] = None
    tag: Optional[str] = None
    session_id: Optional[str] = None
    source: str = "all"
    text: Optional[str] = None
    ids: list[str] = Field(default_factory=list)
    artifact_keys: list[str] = Field(default_factory=list)
    since: Optional[datetime] = None

    def selected_stores(self) -> Optional[set[str]]:
        """Store names requested via ``source``; None means all."""
        if not self.source or self.source == "all":
            return None
        return {s.strip() for s in self.source.split(",") if s.strip()}

    def matches(self, record: LogRecord) -> bool:
        if self.ids and record.id not in self.ids:
            return False
        if self.type and self.type not in (record.kind, record.operation_id):
            return False
        if self.tag and self.tag not in record.tags:
            return False
        if self.session_id and record.session_id != self.session_id:
            return False
        if self.since and parse_timestamp(record.timestamp) < self.since:
            return False
        return True


class RetrievalSummary(BaseModel):
    successful: int = 0
    partial: int = 0
    failed: int = 0


class RetrievalResult(BaseModel):
    matches: list[RetrievedRecord] = Field(default_factory=list)
    retrieval_summary: RetrievalSummary = Field(default_factory=RetrievalSummary)
    results: dict[str, list[LogRecord]] = Field(default_factory=dict)
    store_status: dict[str, str] = Field(default_factory=dict)


class RetrievalMeta(BaseModel):
    last_retrieved: Optional[datetime] = None
    retrieval_count: int = 0


class ReconcileRequest(BaseModel):
    window_hours: int = Field(24, ge=1, le=24 * 30)
    dry_run: bool = False


class ReconcileReport(BaseModel):
    checked: int = 0
    missing: dict[str, int] = Field(default_factory=dict)
    backfilled: int = 0
    dry_run: bool = False
    error: Optional[str] = None


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Unparseable or missing values sort as the epoch.
    """
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
