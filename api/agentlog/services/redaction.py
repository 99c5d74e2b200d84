"""Privacy redaction for payloads before they are persisted.

Masks values whose key looks secret-bearing while keeping every key and the
coarse type of the value, so downstream shape checks still see that a value
existed. Redaction is fail-open: if scrubbing blows up, the original payload
is returned unchanged and a warning is logged. Losing the event entirely is
considered worse than the occasional leak.

Known gap: recursion stops at MAX_DEPTH. Anything nested deeper is returned
as-is, unredacted.
"""

import json
import re
from collections.abc import Sequence
from typing import Any

import structlog

log = structlog.get_logger(__name__)

MAX_DEPTH = 10

REDACTED = "[REDACTED]"
REDACTED_NUMBER = "[REDACTED_NUMBER]"
REDACTED_BOOLEAN = "[REDACTED_BOOLEAN]"

DEFAULT_SECRET_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"^authorization$", re.IGNORECASE),
    re.compile(r"^api[-_]?key$", re.IGNORECASE),
    re.compile(r"^cookie$", re.IGNORECASE),
    re.compile(r"^set[-_]?cookie$", re.IGNORECASE),
    re.compile(r"^password$", re.IGNORECASE),
    re.compile(r"^token$", re.IGNORECASE),
    re.compile(r"^secret$", re.IGNORECASE),
    re.compile(r"^bearer$", re.IGNORECASE),
    re.compile(r"^x[-_]?api[-_]?key$", re.IGNORECASE),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"auth", re.IGNORECASE),
)

DEFAULT_SECRET_KEYWORDS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "api_key",
    "authorization",
    "bearer",
)


def _placeholder(value: Any) -> Any:
    # bool before int: bool is an int subclass
    if isinstance(value, str):
        return REDACTED if value else ""
    if isinstance(value, bool):
        return REDACTED_BOOLEAN
    if isinstance(value, (int, float)):
        return REDACTED_NUMBER
    return REDACTED


class Redactor:
    """Pure payload scrubber over an explicit list of compiled key patterns."""

    def __init__(
        self,
        patterns: Sequence[re.Pattern] = DEFAULT_SECRET_PATTERNS,
        keywords: Sequence[str] = DEFAULT_SECRET_KEYWORDS,
        max_depth: int = MAX_DEPTH,
    ):
        self.patterns = tuple(patterns)
        self.keywords = tuple(k.lower() for k in keywords)
        self.max_depth = max_depth

    def is_secret_key(self, key: Any) -> bool:
        key = str(key)
        return any(p.search(key) for p in self.patterns)

    def redact(self, value: Any) -> Any:
        """Return a redacted copy of value. Never raises."""
        try:
            return self._walk(value, 0)
        except Exception:
            log.warning("redaction_failed", exc_info=True)
            return value

    def _walk(self, value: Any, depth: int) -> Any:
        if depth > self.max_depth:
            return value
        if isinstance(value, dict):
            redacted = {}
            for key, item in value.items():
                if self.is_secret_key(key):
                    redacted[key] = _placeholder(item)
                else:
                    redacted[key] = self._walk(item, depth + 1)
            return redacted
        if isinstance(value, (list, tuple)):
            return [self._walk(item, depth + 1) for item in value]
        return value

    def redact_json_string(self, text: str) -> str:
        """Parse, redact and re-serialize a JSON document; fail-open."""
        try:
            return json.dumps(self.redact(json.loads(text)))
        except (TypeError, ValueError):
            log.warning("json_redaction_failed", exc_info=True)
            return text

    def contains_potential_secrets(self, value: Any) -> bool:
        """Cheap substring heuristic for monitoring. Not used to gate writes."""
        if not value or not isinstance(value, (dict, list)):
            return False
        try:
            serialized = json.dumps(value, default=str).lower()
        except (TypeError, ValueError):
            return False
        return any(keyword in serialized for keyword in self.keywords)
