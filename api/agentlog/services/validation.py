"""Schema validation for log records before they are accepted for writing.

Checks are data-driven: the id grammar, kind enumeration, detail limit and
store names all come from Settings (plus the operation registry's canonical
ids), so new kinds can be added without a code change.
"""

import json
import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional

from agentlog.config import UUID_V4_PATTERN


def serialized_detail(detail: Any) -> str:
    """Serialized form used for size accounting and storage."""
    if isinstance(detail, str):
        return detail
    return json.dumps(detail, default=str)


def is_iso_timestamp(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


class LogValidator:
    """Field-level record checks; returns a reason string or None."""

    def __init__(
        self,
        kinds: Iterable[str],
        store_names: Iterable[str],
        max_detail_length: int = 32768,
        uuid_pattern: str = UUID_V4_PATTERN,
        timestamp_pattern: Optional[str] = None,
    ):
        self.kinds = frozenset(kinds)
        self.store_names = frozenset(store_names)
        self.max_detail_length = max_detail_length
        self.uuid_re = re.compile(uuid_pattern)
        self.timestamp_re = re.compile(timestamp_pattern) if timestamp_pattern else None

    @classmethod
    def from_settings(cls, settings, canonical_operations: Iterable[str] = ()) -> "LogValidator":
        return cls(
            kinds=[*settings.log_types, *canonical_operations],
            store_names=settings.store_names,
            max_detail_length=settings.max_detail_length,
            uuid_pattern=settings.uuid_pattern,
            timestamp_pattern=settings.timestamp_pattern,
        )

    def validate(self, record: Any, target_store: Optional[str] = None) -> Optional[str]:
        """Validate a LogRecord or a plain mapping.

        Checks run in order and stop at the first failure: id format, kind,
        detail, timestamp, target store.
        """
        if record is None:
            return "record is required"
        data = record if isinstance(record, dict) else record.model_dump()

        record_id = data.get("id")
        if not isinstance(record_id, str) or not self.uuid_re.match(record_id):
            return f"id must be a version-4 UUID, got {record_id!r}"

        kind = data.get("kind")
        operation_id = data.get("operation_id")
        if kind not in self.kinds and operation_id not in self.kinds:
            return f"kind must be one of {', '.join(sorted(self.kinds))}"

        detail = data.get("detail")
        if detail is not None:
            if not isinstance(detail, (str, dict, list)):
                return "detail must be a string or a JSON object"
            try:
                size = len(serialized_detail(detail))
            except (TypeError, ValueError):
                return "detail is not serializable"
            if size > self.max_detail_length:
                return f"detail exceeds {self.max_detail_length} chars"

        timestamp = data.get("timestamp")
        if not is_iso_timestamp(timestamp):
            return "timestamp must be ISO 8601"
        if self.timestamp_re and not self.timestamp_re.match(timestamp):
            return "timestamp does not match the configured format"

        if target_store is not None and target_store not in self.store_names:
            return f"target store must be one of {', '.join(sorted(self.store_names))}"

        return None
