"""Tests for the retrieval meta tracker."""

from concurrent.futures import ThreadPoolExecutor

from agentlog.services.meta import RetrievalMetaTracker


def test_starts_empty():
    meta = RetrievalMetaTracker().get_meta()
    assert meta.retrieval_count == 0
    assert meta.last_retrieved is None


def test_record_retrieval_updates_count_and_time():
    tracker = RetrievalMetaTracker()
    tracker.record_retrieval()
    first = tracker.get_meta()
    tracker.record_retrieval()
    second = tracker.get_meta()
    assert second.retrieval_count == 2
    assert second.last_retrieved >= first.last_retrieved


def test_instances_are_independent():
    a, b = RetrievalMetaTracker(), RetrievalMetaTracker()
    a.record_retrieval()
    assert b.get_meta().retrieval_count == 0


def test_concurrent_updates():
    tracker = RetrievalMetaTracker()
    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(200):
            pool.submit(tracker.record_retrieval)
    assert tracker.get_meta().retrieval_count == 200
