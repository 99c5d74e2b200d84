"""Tests for payload redaction."""

import json

from agentlog.services.redaction import (
    REDACTED,
    REDACTED_BOOLEAN,
    REDACTED_NUMBER,
    Redactor,
)


def test_secret_keys_are_masked_with_typed_placeholders():
    redactor = Redactor()
    out = redactor.redact(
        {"password": "hunter2", "api_key": 12345, "is_authenticated": True, "text": "hi"}
    )
    assert out == {
        "password": REDACTED,
        "api_key": REDACTED_NUMBER,
        "is_authenticated": REDACTED_BOOLEAN,
        "text": "hi",
    }


def test_substring_and_case_insensitive_matches():
    redactor = Redactor()
    out = redactor.redact({"X-Auth-Header": "abc", "refreshToken": "def", "Cookie": "c"})
    assert out == {"X-Auth-Header": REDACTED, "refreshToken": REDACTED, "Cookie": REDACTED}


def test_nested_objects_and_lists():
    redactor = Redactor()
    out = redactor.redact({"calls": [{"headers": {"Authorization": "Bearer x"}, "ok": 1}]})
    assert out == {"calls": [{"headers": {"Authorization": REDACTED}, "ok": 1}]}


def test_keys_are_kept_and_input_not_mutated():
    redactor = Redactor()
    payload = {"secret": {"inner": "value"}}
    out = redactor.redact(payload)
    assert out == {"secret": REDACTED}
    assert payload == {"secret": {"inner": "value"}}


def test_empty_string_secret_stays_empty():
    assert Redactor().redact({"token": ""}) == {"token": ""}


def test_scalars_pass_through():
    redactor = Redactor()
    assert redactor.redact("password=abc") == "password=abc"
    assert redactor.redact(None) is None
    assert redactor.redact(42) == 42


def test_depth_cap_returns_deep_values_unredacted():
    redactor = Redactor(max_depth=2)
    payload = {"a": {"b": {"c": {"password": "deep"}}}}
    assert redactor.redact(payload) == payload


def test_failure_returns_original_value():
    class Exploding(dict):
        def items(self):
            raise RuntimeError("boom")

    payload = Exploding(password="x")
    assert Redactor().redact(payload) is payload


def test_redact_json_string():
    redactor = Redactor()
    out = redactor.redact_json_string('{"token": "abc", "n": 1}')
    assert json.loads(out) == {"token": REDACTED, "n": 1}
    assert redactor.redact_json_string("not json") == "not json"


def test_contains_potential_secrets():
    redactor = Redactor()
    assert redactor.contains_potential_secrets({"note": "my password is x"})
    assert redactor.contains_potential_secrets([{"Authorization": "y"}])
    assert not redactor.contains_potential_secrets({"text": "hello"})
    assert not redactor.contains_potential_secrets("password")
    assert not redactor.contains_potential_secrets(None)


def test_key_set_is_preserved():
    payload = {"password": "x", "nested": {"token": 1, "plain": [{"secret": True}]}, "n": None}
    out = Redactor().redact(payload)
    assert set(out) == set(payload)
    assert set(out["nested"]) == {"token", "plain"}
    assert set(out["nested"]["plain"][0]) == {"secret"}
