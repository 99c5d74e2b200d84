"""Legacy flat event shape <-> canonical LogRecord.

Older callers and older rows use ``{id, ts, type, who, level, session_id,
tags, payload}``. The canonical record renames those fields:

    ts      -> timestamp
    type    -> kind
    who     -> source
    payload -> detail
"""

import json
from typing import Any, Optional

from agentlog.schemas.log import LogRecord

LEGACY_FIELDS = ("id", "ts", "type", "who", "level", "session_id", "tags", "payload")


def decode_tags(raw: Any) -> list[str]:
    """Tags are persisted as a JSON-encoded list; accept lists as-is."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return [str(t) for t in raw]
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return [str(raw)]
    if isinstance(decoded, list):
        return [str(t) for t in decoded]
    return [str(decoded)]


def encode_tags(tags: list[str]) -> str:
    return json.dumps(list(tags))


def tag_like_pattern(tag: str) -> str:
    """LIKE pattern matching tag inside an encoded tag list; use with escape="\\"."""
    quoted = json.dumps(tag)
    for ch in ("\\", "%", "_"):
        quoted = quoted.replace(ch, "\\" + ch)
    return f"%{quoted}%"


def decode_detail(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def is_legacy_shape(data: dict) -> bool:
    return "kind" not in data and ("type" in data or "payload" in data or "ts" in data)


def to_legacy(record: LogRecord) -> dict:
    """Synthesize the legacy flat shape for callers not yet migrated."""
    return {
        "id": record.id,
        "ts": record.timestamp,
        "type": record.kind,
        "who": record.source,
        "level": record.level,
        "session_id": record.session_id,
        "tags": list(record.tags),
        "payload": record.detail,
    }


def from_legacy(data: dict, operation_id: Optional[str] = None) -> LogRecord:
    """Build a canonical record from a legacy flat row or kv entry."""
    kind = data.get("type") or "log"
    return LogRecord(
        id=str(data["id"]),
        timestamp=data.get("ts") or data.get("timestamp") or data.get("created_at"),
        operation_id=operation_id or kind,
        kind=kind,
        level=data.get("level") or "info",
        source=data.get("who"),
        session_id=data.get("session_id"),
        tags=decode_tags(data.get("tags")),
        detail=decode_detail(data.get("payload")),
    )
