"""Retrieval meta tracker.

Owned by the application's composition root and injected into the
aggregator, so tests can construct independent instances. Counts are
approximate by contract; the lock only keeps each update self-consistent.
"""

import threading
from datetime import datetime, timezone
from typing import Optional

from agentlog.schemas.log import RetrievalMeta


class RetrievalMetaTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self._last_retrieved: Optional[datetime] = None
        self._retrieval_count = 0

    def record_retrieval(self) -> None:
        with self._lock:
            self._last_retrieved = datetime.now(timezone.utc)
            self._retrieval_count += 1

    def get_meta(self) -> RetrievalMeta:
        with self._lock:
            return RetrievalMeta(
                last_retrieved=self._last_retrieved,
                retrieval_count=self._retrieval_count,
            )
