"""Store adapter interface.

Every backend (kv, relational, blob, vector) implements StoreAdapter. The
fan-out writer and the retrieval aggregator depend only on this interface,
so tests substitute in-memory fakes.

Adapters translate the canonical LogRecord into their backend's native
shape and report failures as data: ``write`` returns a StoreOutcome and
``read`` returns a StoreReadResult rather than raising on backend errors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from agentlog.schemas.log import LogQuery, LogRecord


@dataclass
class StoreOutcome:
    ok: bool
    store_name: str
    error_detail: Optional[str] = None
    fallback: bool = False


@dataclass
class StoreReadResult:
    store_name: str
    records: list[LogRecord] = field(default_factory=list)
    partial: bool = False
    ok: bool = True
    error_detail: Optional[str] = None


class StoreAdapter(ABC):
    """One persistence backend behind the pipeline's write/read contract."""

    name: str = "store"
    # Set on the store that receives oversized details in full
    holds_overflow: bool = False
    # Set on the store that indexes embeddings
    holds_vectors: bool = False

    @property
    @abstractmethod
    def available(self) -> bool:
        """False when the backend is not bound in this deployment."""

    def accepts(self, record: LogRecord) -> bool:
        """Whether this store should receive a write for record."""
        return True

    def expects(self, record: LogRecord) -> bool:
        """Whether a complete read of record should include this store."""
        return True

    @abstractmethod
    async def write(self, record: LogRecord) -> StoreOutcome:
        ...

    @abstractmethod
    async def read(self, query: LogQuery) -> StoreReadResult:
        ...

    async def ping(self) -> None:
        """Raise if the backend is unreachable. Used by the health check."""

    def ok(self, **kwargs) -> StoreOutcome:
        return StoreOutcome(ok=True, store_name=self.name, **kwargs)

    def failed(self, error: str) -> StoreOutcome:
        return StoreOutcome(ok=False, store_name=self.name, error_detail=error)

    def read_failed(self, error: str) -> StoreReadResult:
        return StoreReadResult(store_name=self.name, ok=False, error_detail=error)
