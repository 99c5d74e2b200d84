"""Tests for legacy flat shape conversion."""

from agentlog.schemas.log import LogRecord
from agentlog.services.compat import (
    decode_tags,
    encode_tags,
    from_legacy,
    is_legacy_shape,
    tag_like_pattern,
    to_legacy,
)


def test_to_legacy_field_mapping():
    record = LogRecord(
        id="abc",
        timestamp="2026-01-01T00:00:00+00:00",
        kind="insight",
        source="mirror",
        level="info",
        session_id="s1",
        tags=["trust"],
        detail={"text": "hello"},
    )
    assert to_legacy(record) == {
        "id": "abc",
        "ts": "2026-01-01T00:00:00+00:00",
        "type": "insight",
        "who": "mirror",
        "level": "info",
        "session_id": "s1",
        "tags": ["trust"],
        "payload": {"text": "hello"},
    }


def test_from_legacy_decodes_encoded_fields():
    record = from_legacy(
        {
            "id": 7,
            "ts": "2026-01-01T00:00:00Z",
            "type": "session",
            "who": "agent",
            "tags": '["a", "b"]',
            "payload": '{"k": 1}',
        }
    )
    assert record.id == "7"
    assert record.kind == "session"
    assert record.operation_id == "session"
    assert record.source == "agent"
    assert record.level == "info"
    assert record.tags == ["a", "b"]
    assert record.detail == {"k": 1}


def test_from_legacy_keeps_plain_text_payload():
    record = from_legacy({"id": "x", "type": "session", "payload": "just text"})
    assert record.detail == "just text"


def test_is_legacy_shape():
    assert is_legacy_shape({"id": "1", "type": "session", "payload": {}})
    assert not is_legacy_shape({"id": "1", "kind": "session", "detail": {}})
    assert not is_legacy_shape({"id": "1"})


def test_tag_codec():
    assert decode_tags(encode_tags(["x", "y"])) == ["x", "y"]
    assert decode_tags(None) == []
    assert decode_tags("") == []
    assert decode_tags("loose") == ["loose"]
    assert decode_tags(["a", 1]) == ["a", "1"]


def test_tag_like_pattern_escapes_wildcards():
    assert tag_like_pattern("a_c") == '%"a\\_c"%'
    assert tag_like_pattern("100%") == '%"100\\%"%'
