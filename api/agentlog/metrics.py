"""Prometheus metrics for the logging pipeline."""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

store_writes = Counter(
    "agentlog_store_writes_total",
    "Per-store write attempts by outcome",
    ["store", "outcome"],
)
missing_store_writes = Counter(
    "agentlog_missing_store_writes_total",
    "Writes skipped because the store is not bound in this deployment",
    ["store"],
)
store_reads = Counter(
    "agentlog_store_reads_total",
    "Per-store read attempts by outcome",
    ["store", "outcome"],
)
store_circuit_open = Counter(
    "agentlog_store_circuit_open_total",
    "Times a store circuit breaker tripped open",
    ["store"],
)
validation_rejections = Counter(
    "agentlog_validation_rejections_total",
    "Records rejected by the schema validator before any write",
)
potential_secrets = Counter(
    "agentlog_potential_secrets_total",
    "Payloads that looked like they carried secrets before redaction",
)
retrievals = Counter(
    "agentlog_retrievals_total",
    "Retrieval aggregator invocations",
)
reconcile_backfills = Counter(
    "agentlog_reconcile_backfills_total",
    "Records copied into a store by reconciliation",
    ["store"],
)
write_duration = Histogram(
    "agentlog_write_duration_seconds",
    "End-to-end fan-out write latency",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)


async def metrics_endpoint() -> Response:
    """Expose all registered metrics in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
