"""Guarded, timeout-bounded dispatch of one operation to one store.

The writer and the aggregator run these concurrently with asyncio.gather.
Each call is wrapped so that a timeout, an open circuit or an unexpected
exception becomes a DispatchResult instead of propagating: nothing an
adapter does can fail the whole fan-out. Cancellation still propagates.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from agentlog import metrics
from agentlog.stores.base import StoreAdapter
from agentlog.stores.breaker import CircuitBreaker

log = structlog.get_logger(__name__)

CIRCUIT_OPEN = "circuit_open"
TIMEOUT = "timeout"


@dataclass
class DispatchResult:
    store_name: str
    ok: bool
    value: Any = None
    error: Optional[str] = None


class StoreDispatcher:
    """Runs adapter calls with a per-call timeout and optional per-store breakers."""

    def __init__(
        self,
        timeout: float = 2.0,
        breaker_enabled: bool = False,
        failure_threshold: int = 5,
        recovery_timeout: float = 300.0,
    ):
        self.timeout = timeout
        self.breaker_enabled = breaker_enabled
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: dict[str, CircuitBreaker] = {}

    def breaker_for(self, store_name: str) -> CircuitBreaker:
        breaker = self._breakers.get(store_name)
        if breaker is None:
            breaker = CircuitBreaker(self.failure_threshold, self.recovery_timeout)
            self._breakers[store_name] = breaker
        return breaker

    async def run(
        self,
        adapter: StoreAdapter,
        operation: str,
        call: Callable[[], Awaitable[Any]],
    ) -> DispatchResult:
        """Execute call() against adapter and capture the result as data.

        The value's own ``ok`` attribute (StoreOutcome / StoreReadResult)
        decides success when present.
        """
        name = adapter.name
        breaker = self.breaker_for(name) if self.breaker_enabled else None

        if breaker is not None and not breaker.allow():
            log.info("store_call_skipped", store=name, operation=operation, reason=CIRCUIT_OPEN)
            return DispatchResult(name, ok=False, error=CIRCUIT_OPEN)

        try:
            value = await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning("store_call_timeout", store=name, operation=operation, timeout=self.timeout)
            self._on_failure(breaker, name)
            return DispatchResult(name, ok=False, error=TIMEOUT)
        except Exception as exc:
            log.warning(
                "store_call_failed",
                store=name,
                operation=operation,
                error=str(exc),
                exc_info=True,
            )
            self._on_failure(breaker, name)
            return DispatchResult(name, ok=False, error=str(exc) or type(exc).__name__)

        ok = getattr(value, "ok", True)
        if ok:
            if breaker is not None:
                breaker.record_success()
            return DispatchResult(name, ok=True, value=value)

        error = getattr(value, "error_detail", None) or "store reported failure"
        log.warning("store_call_unsuccessful", store=name, operation=operation, error=error)
        self._on_failure(breaker, name)
        return DispatchResult(name, ok=False, value=value, error=error)

    def _on_failure(self, breaker: Optional[CircuitBreaker], store_name: str) -> None:
        if breaker is not None and breaker.record_failure():
            metrics.store_circuit_open.labels(store=store_name).inc()
            log.warning(
                "store_circuit_opened",
                store=store_name,
                failures=breaker.failure_count,
            )

    async def gather(
        self,
        calls: list[tuple[StoreAdapter, str, Callable[[], Awaitable[Any]]]],
    ) -> list[DispatchResult]:
        """Run every call concurrently and wait for all of them to settle."""
        return list(
            await asyncio.gather(*(self.run(adapter, op, call) for adapter, op, call in calls))
        )
