"""Tests for the record sink."""

import logging
import logging.handlers

import pytest

from wirelog.models import DecodedRecord
from wirelog.sink import LogSink, SinkConfig, parse_syslog_address


class ListHandler(logging.Handler):
    """Collects log records in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture()
def sink(request: pytest.FixtureRequest):
    sink = LogSink(logger_name=f"wirelog.test.{request.node.name}")
    collected = ListHandler()
    sink.logger.addHandler(collected)
    yield sink, collected
    sink.logger.removeHandler(collected)
    sink.close()


class TestLogSink:
    """Tests for LogSink.emit."""

    def test_emit_with_timestamp(self, sink) -> None:
        """Test the timestamp is prefixed in brackets."""
        log_sink, collected = sink
        log_sink.emit(
            DecodedRecord(
                host="Storage",
                category="smartd",
                timestamp="Jan 26 14:32:15",
                message="disk ok",
            )
        )

        assert len(collected.records) == 1
        entry = collected.records[0]
        assert entry.getMessage() == "[Jan 26 14:32:15] disk ok"
        assert entry.device == "Storage"
        assert entry.category == "smartd"
        assert log_sink.emitted == 1

    def test_emit_without_category(self, sink) -> None:
        """Test an empty category is shown as a dash."""
        log_sink, collected = sink
        log_sink.emit(DecodedRecord(host="local.address(10.0.0.1)", message="hello"))

        entry = collected.records[0]
        assert entry.getMessage() == "hello"
        assert entry.category == "-"

    def test_does_not_propagate(self, sink) -> None:
        log_sink, _ = sink
        assert log_sink.logger.propagate is False

    def test_stdout_by_default(self, sink) -> None:
        log_sink, _ = sink
        assert isinstance(log_sink.handler, logging.StreamHandler)

    def test_syslog_handler(self) -> None:
        """Test a configured address selects the syslog handler."""
        log_sink = LogSink(
            SinkConfig(syslog_address="localhost:5514", facility="local3"),
            logger_name="wirelog.test.syslog",
        )
        try:
            assert isinstance(log_sink.handler, logging.handlers.SysLogHandler)
            assert log_sink.handler.facility == logging.handlers.SysLogHandler.LOG_LOCAL3
        finally:
            log_sink.close()

    def test_unknown_facility(self) -> None:
        with pytest.raises(ValueError, match="facility"):
            LogSink(
                SinkConfig(syslog_address="localhost:5514", facility="nope"),
                logger_name="wirelog.test.facility",
            )


class TestParseSyslogAddress:
    """Tests for syslog address parsing."""

    def test_unix_socket(self) -> None:
        assert parse_syslog_address("/dev/log") == "/dev/log"

    def test_host_and_port(self) -> None:
        assert parse_syslog_address("logs.lan:5514") == ("logs.lan", 5514)

    def test_host_only(self) -> None:
        assert parse_syslog_address("logs.lan") == ("logs.lan", 514)

    def test_bracketed_ipv6(self) -> None:
        assert parse_syslog_address("[2001:db8::1]:5514") == ("2001:db8::1", 5514)
