"""Tests for diagnostic capture: levels, records, spans and the bridge."""

import dataclasses
import json
import logging
import uuid

import pytest

from ez_rke.config import Settings
from ez_rke.log import (
    TRACE,
    DiagnosticBridge,
    JsonFormatter,
    Level,
    LogRecord,
    current_scope,
    init_logging,
    instrument,
    span,
)
from ez_rke.tui.event import EventHandler, Invalid


class RecordingSink:
    """LogSink collecting every record it receives."""

    def __init__(self, accept: bool = True) -> None:
        self.records: list[LogRecord] = []
        self.accept = accept

    def send_log(self, record: LogRecord) -> bool:
        if self.accept:
            self.records.append(record)
        return self.accept


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def bridged_logger(sink):
    """Isolated logger with a DiagnosticBridge installed."""
    test_logger = logging.getLogger(f"tests.bridge.{uuid.uuid4().hex}")
    test_logger.propagate = False
    test_logger.setLevel(TRACE)
    bridge = DiagnosticBridge(sink)
    bridge.install(test_logger)
    yield test_logger
    bridge.uninstall()


@pytest.fixture
def clean_root():
    """Restore root logger handlers and level after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers and isinstance(
            handler, (logging.FileHandler, DiagnosticBridge)
        ):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestLevel:
    """Tests for Level mapping and ordering."""

    @pytest.mark.parametrize(
        "levelno,expected",
        [
            (TRACE, Level.TRACE),
            (logging.DEBUG, Level.DEBUG),
            (logging.INFO, Level.INFO),
            (logging.WARNING, Level.WARN),
            (logging.ERROR, Level.ERROR),
            (logging.CRITICAL, Level.ERROR),
        ],
    )
    def test_from_levelno(self, levelno, expected):
        """stdlib levels should map onto the five dashboard levels."""
        assert Level.from_levelno(levelno) is expected

    def test_ordering(self):
        """Levels should be ordered TRACE < DEBUG < INFO < WARN < ERROR."""
        assert Level.TRACE < Level.DEBUG < Level.INFO < Level.WARN < Level.ERROR


class TestLogRecord:
    """Tests for LogRecord immutability."""

    def test_record_is_frozen(self, make_record):
        """Attributes cannot be reassigned."""
        record = make_record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.level = Level.ERROR

    def test_fields_are_read_only(self, make_record):
        """The fields mapping cannot be mutated."""
        record = make_record()
        with pytest.raises(TypeError):
            record.fields["message"] = "changed"


class TestDiagnosticBridge:
    """Tests for DiagnosticBridge conversion and delivery."""

    def test_converts_record(self, bridged_logger, sink):
        """Level, target, message and extra fields should be captured."""
        bridged_logger.info("node joined", extra={"node": "cp-1", "attempt": 2})

        assert len(sink.records) == 1
        record = sink.records[0]
        assert record.level is Level.INFO
        assert record.target == bridged_logger.name
        assert record.name.startswith("event test_log.py:")
        assert dict(record.fields) == {
            "message": "node joined",
            "node": "'cp-1'",
            "attempt": "2",
        }
        assert record.scope is None
        assert record.timestamp.tzinfo is not None

    def test_message_arguments_are_formatted(self, bridged_logger, sink):
        """%-style arguments should be merged into the message field."""
        bridged_logger.warning("%d nodes down", 3)
        assert sink.records[0].message == "3 nodes down"
        assert sink.records[0].level is Level.WARN

    def test_trace_level(self, bridged_logger, sink):
        """Records below DEBUG should be captured as TRACE."""
        bridged_logger.log(TRACE, "tick")
        assert sink.records[0].level is Level.TRACE

    def test_records_keep_emission_order(self, bridged_logger, sink):
        """Records from one call site should arrive in emission order."""
        for i in range(5):
            bridged_logger.info("step %d", i)
        assert [r.message for r in sink.records] == [f"step {i}" for i in range(5)]

    def test_nested_spans_innermost_first(self, bridged_logger, sink):
        """The scope should join the span chain with ':' innermost first."""
        with span("deploy"):
            with span("node"):
                bridged_logger.info("inside")
            bridged_logger.info("outer")
        bridged_logger.info("outside")

        assert [r.scope for r in sink.records] == ["node:deploy", "deploy", None]

    @pytest.mark.asyncio
    async def test_instrument_async(self, bridged_logger, sink):
        """instrument should wrap coroutines in a span named after them."""

        @instrument
        async def provision():
            bridged_logger.info("provisioning")
            return "done"

        assert await provision() == "done"
        assert sink.records[0].scope == "provision"
        assert current_scope() is None

    def test_instrument_sync(self, bridged_logger, sink):
        """instrument should wrap plain functions too."""

        @instrument
        def drain(node):
            bridged_logger.info("draining %s", node)

        with span("upgrade"):
            drain("w-1")
        assert sink.records[0].scope == "drain:upgrade"

    def test_rejected_send_does_not_raise(self, bridged_logger):
        """A sink that discards records must not affect the caller."""
        bridge = DiagnosticBridge(RecordingSink(accept=False))
        bridge.install(bridged_logger)
        try:
            bridged_logger.error("lost")
        finally:
            bridge.uninstall()

    @pytest.mark.asyncio
    async def test_closed_multiplexer_discards_silently(self, bridged_logger):
        """Logging after the consumer has closed must neither raise nor enqueue."""
        events = EventHandler(tick_rate=3600)
        bridge = DiagnosticBridge(events.sender())
        bridge.install(bridged_logger)
        events.close()
        try:
            bridged_logger.info("after shutdown")
        finally:
            bridge.uninstall()
        assert isinstance(await events.next(), Invalid)

    def test_uninstall(self, sink):
        """An uninstalled bridge receives nothing."""
        test_logger = logging.getLogger(f"tests.bridge.{uuid.uuid4().hex}")
        test_logger.propagate = False
        bridge = DiagnosticBridge(sink)
        bridge.install(test_logger)
        bridge.uninstall()
        test_logger.warning("ignored")
        assert sink.records == []
        assert bridge not in test_logger.handlers


class TestJsonFormatter:
    """Tests for the persistent JSON log format."""

    def test_format(self):
        """Each record should become one JSON object."""
        record = logging.LogRecord(
            "ez_rke.test", logging.INFO, __file__, 10, "hello %s", ("world",), None
        )
        record.node = "cp-1"
        with span("boot"):
            payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["target"] == "ez_rke.test"
        assert payload["fields"] == {"message": "hello world", "node": "'cp-1'"}
        assert payload["span"] == "boot"


class TestInitLogging:
    """Tests for init_logging() and LoggingSession."""

    def test_installs_bridge_and_file(self, clean_root, sink, tmp_path):
        """init_logging should write JSON lines and feed the sink."""
        log_file = tmp_path / "ez_rke.log"
        settings = Settings(log_file=log_file, log_level="DEBUG")

        session = init_logging(settings, sink)
        try:
            assert session.bridge in clean_root.handlers
            assert session.file_handler in clean_root.handlers
            assert clean_root.level == logging.DEBUG
            assert sink.records[-1].message == "Initialized ez_rke loggers"

            lines = log_file.read_text().splitlines()
            assert json.loads(lines[-1])["fields"]["message"] == "Initialized ez_rke loggers"
        finally:
            session.close()

    def test_close_removes_and_closes_handlers(self, clean_root, sink, tmp_path):
        """close() detaches both handlers and closes the log file."""
        settings = Settings(log_file=tmp_path / "ez_rke.log")
        session = init_logging(settings, sink)
        bridge, file_handler = session.bridge, session.file_handler

        session.close()

        assert bridge not in clean_root.handlers
        assert file_handler not in clean_root.handlers
        assert file_handler.stream is None
        assert session.file_handler is None
        session.close()

    def test_without_file(self, clean_root, sink):
        """No file handler should be added when log_file is None."""
        settings = Settings(log_file=None)
        before = len(clean_root.handlers)
        session = init_logging(settings, sink)
        try:
            assert session.file_handler is None
            assert len(clean_root.handlers) == before + 1
        finally:
            session.close()
        assert len(clean_root.handlers) == before
