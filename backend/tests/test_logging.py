"""Tests for logging configuration."""

import json
import logging

from authgate.core.logging import DevFormatter, JSONFormatter, get_logger


class TestJSONFormatter:
    """Tests for the structured log formatter."""

    def _record(self, message: str) -> logging.LogRecord:
        return logging.LogRecord(
            name="authgate.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg=message,
            args=(),
            exc_info=None,
        )

    def test_output_is_one_json_object(self):
        line = JSONFormatter().format(self._record("User logged in"))
        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "authgate.test"
        assert entry["message"] == "User logged in"

    def test_special_characters_escaped(self):
        line = JSONFormatter().format(self._record('quote " and\nnewline'))
        assert "\n" not in line
        assert json.loads(line)["message"] == 'quote " and\nnewline'

    def test_extra_fields_become_keys(self):
        record = self._record("User logged out")
        record.user_id = "42"
        record.jti = "abc123"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["user_id"] == "42"
        assert entry["jti"] == "abc123"
        assert "args" not in entry

    def test_extra_fields_do_not_override_base_keys(self):
        record = self._record("hello")
        record.level = "spoofed"
        record.logger = "other"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "authgate.test"


class TestDevFormatter:
    """Tests for the readable formatter."""

    def test_extra_fields_appended(self):
        logger = logging.getLogger("authgate.test.dev")
        record = logger.makeRecord(
            logger.name,
            logging.INFO,
            __file__,
            1,
            "Login rate limit exceeded",
            (),
            None,
            extra={"client_ip": "198.51.100.4"},
        )

        line = DevFormatter().format(record)

        assert "Login rate limit exceeded" in line
        assert line.endswith("client_ip=198.51.100.4")

    def test_plain_record_unchanged(self):
        record = logging.LogRecord("authgate.test", logging.INFO, __file__, 1, "plain", (), None)
        assert DevFormatter().format(record).endswith("| plain")


def test_get_logger_prefix():
    assert get_logger("main").name == "authgate.main"
