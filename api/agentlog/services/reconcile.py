"""Reconciliation of the kv store against the relational store.

The relational store is the source of truth. Records it holds inside the
window that the kv store should still have (not yet past their TTL) but
does not are reported as missing and, unless this is a dry run, written
back into kv.
"""

from datetime import datetime, timedelta, timezone

import structlog

from agentlog import metrics
from agentlog.schemas.log import LogQuery, ReconcileReport
from agentlog.services.dispatch import StoreDispatcher
from agentlog.stores.base import StoreAdapter

log = structlog.get_logger(__name__)

# Upper bound on records examined per run
RECONCILE_BATCH = 200


class Reconciler:
    def __init__(
        self,
        source: StoreAdapter,
        target: StoreAdapter,
        dispatcher: StoreDispatcher,
    ):
        self.source = source
        self.target = target
        self.dispatcher = dispatcher

    async def run(self, window_hours: int = 24, dry_run: bool = False) -> ReconcileReport:
        report = ReconcileReport(dry_run=dry_run)
        if not self.source.available:
            report.error = f"{self.source.name} store unavailable"
            return report
        if not self.target.available:
            report.error = f"{self.target.name} store unavailable"
            return report

        since = datetime.now(timezone.utc) - timedelta(hours=window_hours)
        scanned = await self.dispatcher.run(
            self.source,
            "read",
            lambda: self.source.read(LogQuery(limit=RECONCILE_BATCH, since=since)),
        )
        if not scanned.ok:
            report.error = f"{self.source.name} read failed: {scanned.error}"
            return report

        records = scanned.value.records
        report.checked = len(records)
        if not records:
            report.missing[self.target.name] = 0
            return report

        present = await self.dispatcher.run(
            self.target,
            "read",
            lambda: self.target.read(
                LogQuery(limit=RECONCILE_BATCH, ids=[r.id for r in records])
            ),
        )
        if not present.ok:
            report.error = f"{self.target.name} read failed: {present.error}"
            return report

        have = {r.id for r in present.value.records}
        missing = [r for r in records if r.id not in have and self.target.expects(r)]
        report.missing[self.target.name] = len(missing)

        if not dry_run:
            for record in missing:
                outcome = await self.dispatcher.run(
                    self.target, "write", lambda r=record: self.target.write(r)
                )
                if outcome.ok:
                    report.backfilled += 1
                    metrics.reconcile_backfills.labels(store=self.target.name).inc()
                else:
                    log.warning(
                        "reconcile_backfill_failed",
                        store=self.target.name,
                        record_id=record.id,
                        error=outcome.error,
                    )

        log.info(
            "reconcile_completed",
            window_hours=window_hours,
            checked=report.checked,
            missing=report.missing,
            backfilled=report.backfilled,
            dry_run=dry_run,
        )
        return report
