"""Tests for queue message validation."""

import json

import pytest

from feed_store import InvalidMessageError
from feed_store.queue import DispatchResult, parse_message


def test_valid_message(valid_message):
    message = parse_message(json.dumps(valid_message))
    assert message.operation == "create"
    assert message.id == "1"
    assert message.timestamp == "2024-01-01T00:00:00Z"
    assert message.data == {}


def test_numeric_id_and_epoch_timestamp(valid_message):
    message = parse_message(json.dumps({**valid_message, "id": 42, "timestamp": 1704067200000}))
    assert message.id == 42
    assert message.timestamp == 1704067200000


def test_extra_fields_are_kept(valid_message):
    message = parse_message(json.dumps({**valid_message, "source": "api"}))
    assert message.model_extra == {"source": "api"}


@pytest.mark.parametrize(
    "raw",
    [
        '{"incomplete": true}',
        '{"id": "1", "timestamp": "2024-01-01T00:00:00Z"}',
        '{"operation": "", "id": "1", "timestamp": "2024-01-01T00:00:00Z"}',
        '{"operation": "create", "id": 0, "timestamp": "2024-01-01T00:00:00Z"}',
        '{"operation": "create", "id": null, "timestamp": "2024-01-01T00:00:00Z"}',
        '{"operation": "create", "id": ["1"], "timestamp": "2024-01-01T00:00:00Z"}',
        '"test-string-message"',
        "[1, 2, 3]",
        "not json at all",
    ],
)
def test_invalid_messages_fail_closed(raw):
    with pytest.raises(InvalidMessageError) as exc_info:
        parse_message(raw)
    assert str(exc_info.value) == "Invalid message format"
    assert exc_info.value.detail


def test_dispatch_result_defaults_to_failure():
    assert DispatchResult.model_validate_json("{}").success is False
    assert DispatchResult.model_validate_json('{"success": true}').success is True
