import json
import logging
import sys

from observability.logging import JSONFormatter, sanitize_log_data, setup_logging


def test_json_formatter_redacts_secrets():
    record = logging.LogRecord(
        "client_transaction", logging.INFO, __file__, 1,
        "signed request transaction_id=QkJDQEFG verification_key=AAECAwQF", None, None
    )
    output = json.loads(JSONFormatter().format(record))
    assert output["level"] == "INFO"
    assert "QkJDQEFG" not in output["message"]
    assert "AAECAwQF" not in output["message"]


def test_sanitize_log_data_nested():
    data = {"verification_key": "abc", "headers": {"x-client-transaction-id": "zzz", "accept": "*/*"}}
    sanitized = sanitize_log_data(data)
    assert sanitized["verification_key"] == "***REDACTED***"
    assert sanitized["headers"]["x-client-transaction-id"] == "***REDACTED***"
    assert sanitized["headers"]["accept"] == "*/*"


def test_setup_logging_json_to_stderr(capsys):
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        setup_logging(log_level="debug", json_output=True)
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
        logging.getLogger("client_transaction.session").info("ready verification_key=AAEC")
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)

    captured = capsys.readouterr()
    assert captured.out == ""
    line = json.loads(captured.err.strip().splitlines()[-1])
    assert line["logger"] == "client_transaction.session"
    assert "AAEC" not in line["message"]


def test_json_formatter_includes_masked_extras():
    record = logging.LogRecord("client_transaction.session", logging.INFO, __file__, 1, "ready", None, None)
    record.ondemand_offsets = [0, 1, 2]
    record.verification_key = "AAECAwQF"
    output = json.loads(JSONFormatter().format(record))
    assert output["context"] == {"ondemand_offsets": [0, 1, 2], "verification_key": "***REDACTED***"}
    assert "exception" not in output


def test_json_formatter_exception_location():
    try:
        raise ValueError("bad cookie=abc123")
    except ValueError:
        record = logging.LogRecord(
            "client_transaction", logging.ERROR, __file__, 42, "failed", None, sys.exc_info()
        )
    output = json.loads(JSONFormatter().format(record))
    assert "ValueError" in output["exception"]
    assert "abc123" not in output["exception"]
    assert output["location"].startswith(f"{__file__}:42")
