"""Tests for kv backfill from the relational store."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from agentlog.schemas.log import LogRecord
from tests.conftest import MemoryStore


def _record(minutes_ago: int = 1) -> LogRecord:
    ts = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return LogRecord(id=str(uuid.uuid4()), timestamp=ts.isoformat(), kind="insight")


@pytest.mark.asyncio
async def test_backfills_missing_kv_entries(pipeline, kv, relational):
    present, absent = _record(), _record()
    for record in (present, absent):
        relational.records[record.id] = record
    kv.records[present.id] = present

    report = await pipeline.reconciler.run(window_hours=24)

    assert report.checked == 2
    assert report.missing == {"kv": 1}
    assert report.backfilled == 1
    assert absent.id in kv.records


@pytest.mark.asyncio
async def test_dry_run_reports_without_writing(pipeline, kv, relational):
    record = _record()
    relational.records[record.id] = record

    report = await pipeline.reconciler.run(dry_run=True)

    assert report.dry_run is True
    assert report.missing == {"kv": 1}
    assert report.backfilled == 0
    assert kv.writes == 0


@pytest.mark.asyncio
async def test_window_excludes_older_records(pipeline, relational):
    relational.records["old"] = _record(minutes_ago=3 * 60)

    report = await pipeline.reconciler.run(window_hours=1)

    assert report.checked == 0
    assert report.missing == {"kv": 0}


@pytest.mark.asyncio
async def test_failed_backfill_is_counted_as_not_backfilled(make_pipeline):
    kv = MemoryStore("kv")
    relational = MemoryStore("relational")
    pipeline = make_pipeline(kv, relational)
    record = _record()
    relational.records[record.id] = record
    async def refuse(_record):
        return kv.failed("read-only")

    kv.write = refuse

    report = await pipeline.reconciler.run()

    assert report.missing == {"kv": 1}
    assert report.backfilled == 0


@pytest.mark.asyncio
async def test_unavailable_stores_reported(make_pipeline):
    pipeline = make_pipeline(MemoryStore("kv", available=False), MemoryStore("relational"))
    report = await pipeline.reconciler.run()
    assert report.error == "kv store unavailable"

    pipeline = make_pipeline(MemoryStore("kv"))
    report = await pipeline.reconciler.run()
    assert report.error == "relational store unavailable"


@pytest.mark.asyncio
async def test_source_read_failure_reported(make_pipeline):
    pipeline = make_pipeline(MemoryStore("kv"), MemoryStore("relational", fail=True))
    report = await pipeline.reconciler.run()
    assert report.error.startswith("relational read failed")
