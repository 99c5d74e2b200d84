"""Tests for record validation."""

import uuid

import pytest

from agentlog.config import Settings
from agentlog.schemas.log import LogRecord, utc_now_iso
from agentlog.services.validation import LogValidator


@pytest.fixture
def validator():
    return LogValidator.from_settings(
        Settings(_env_file=None, max_detail_length=100), ["logDataOrEvent"]
    )


def _record(**overrides) -> dict:
    data = {
        "id": str(uuid.uuid4()),
        "kind": "insight",
        "timestamp": utc_now_iso(),
        "detail": {"text": "hello"},
    }
    data.update(overrides)
    return data


def test_valid_record(validator):
    assert validator.validate(_record()) is None


def test_accepts_model_instances(validator):
    record = LogRecord(**_record())
    assert validator.validate(record) is None


def test_rejects_non_v4_uuid(validator):
    reason = validator.validate(_record(id=str(uuid.uuid1())))
    assert reason.startswith("id must be a version-4 UUID")
    assert validator.validate(_record(id="not-a-uuid")) is not None


def test_unknown_kind_rejected_unless_operation_is_known(validator):
    assert validator.validate(_record(kind="made-up")).startswith("kind must be one of")
    assert validator.validate(_record(kind="made-up", operation_id="logDataOrEvent")) is None


def test_detail_length_limit(validator):
    assert validator.validate(_record(detail="x" * 100)) is None
    assert validator.validate(_record(detail="x" * 101)) == "detail exceeds 100 chars"
    # Structured details are measured in serialized form
    assert validator.validate(_record(detail={"text": "x" * 100})) is not None


def test_detail_type(validator):
    assert validator.validate(_record(detail=42)) == "detail must be a string or a JSON object"
    assert validator.validate(_record(detail=None)) is None


def test_timestamp_must_parse(validator):
    assert validator.validate(_record(timestamp="yesterday")) == "timestamp must be ISO 8601"
    assert validator.validate(_record(timestamp=None)) == "timestamp must be ISO 8601"
    assert validator.validate(_record(timestamp="2026-01-02T03:04:05Z")) is None


def test_checks_short_circuit_in_order(validator):
    reason = validator.validate(_record(id="bad", kind="made-up", timestamp="never"))
    assert reason.startswith("id must be")


def test_target_store(validator):
    assert validator.validate(_record(), target_store="kv") is None
    assert validator.validate(_record(), target_store="tape").startswith("target store")


def test_configured_timestamp_pattern():
    validator = LogValidator(
        kinds=["insight"],
        store_names=["kv"],
        timestamp_pattern=r"^\d{4}-\d{2}-\d{2}T",
    )
    assert validator.validate(_record(timestamp="2026-01-02T00:00:00+00:00")) is None
    assert validator.validate(_record(timestamp="2026-01-02 00:00:00")) == (
        "timestamp does not match the configured format"
    )


def test_missing_record(validator):
    assert validator.validate(None) == "record is required"
