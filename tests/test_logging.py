"""
Tests for the structured log formatters.
"""
import json
import logging

from messaging.core.logging import JSONFormatter, TextFormatter, REDACTED


def make_record(extra_data=None, msg="Message sent"):
    record = logging.LogRecord(
        name="messaging.services.ledger",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:

    def test_standard_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "messaging.services.ledger"
        assert data["message"] == "Message sent"
        assert data["line"] == 10

    def test_extra_data_is_merged(self):
        data = json.loads(JSONFormatter().format(make_record({"sender_id": "alice", "receiver_id": "bob"})))
        assert data["sender_id"] == "alice"
        assert data["receiver_id"] == "bob"

    def test_message_content_and_signature_are_masked(self):
        record = make_record({"user_id": "alice", "content": "my phone number", "signature": "abc123"})
        data = json.loads(JSONFormatter().format(record))
        assert data["user_id"] == "alice"
        assert data["content"] == REDACTED
        assert data["signature"] == REDACTED

    def test_non_dict_extra_data_is_ignored(self):
        data = json.loads(JSONFormatter().format(make_record("not a dict")))
        assert "extra_data" not in data
        assert data["message"] == "Message sent"


class TestTextFormatter:

    def test_extra_data_is_appended(self):
        line = TextFormatter().format(make_record({"user_id": "alice"}))
        assert "Message sent" in line
        assert line.endswith("[user_id=alice]")

    def test_content_is_masked(self):
        line = TextFormatter().format(make_record({"content": "hello"}))
        assert "hello" not in line
        assert f"content={REDACTED}" in line

    def test_no_suffix_without_extra_data(self):
        assert TextFormatter().format(make_record()).endswith("Message sent")
