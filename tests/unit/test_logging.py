import json
import logging

from utils.logging import StructuredFormatter


def _record(**extra):
    record = logging.LogRecord(
        "price-tracker", logging.INFO, __file__, 1, "hello %s", ("world",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_emits_json_with_extra():
    entry = json.loads(StructuredFormatter().format(_record(email="a@b.com")))

    assert entry["message"] == "hello world"
    assert entry["level"] == "INFO"
    assert entry["email"] == "a@b.com"


def test_structured_formatter_redacts_sensitive_keys():
    formatted = StructuredFormatter().format(
        _record(password="pw123", token="abc.def.ghi", Authorization="Bearer x")
    )

    entry = json.loads(formatted)
    assert entry["password"] == "***"
    assert entry["token"] == "***"
    assert entry["Authorization"] == "***"
    assert "pw123" not in formatted
