"""
Diagnostic capture for the dashboard log panel.

This module bridges stdlib logging into the TUI event stream:
- Level: Ordered severity enum (TRACE < DEBUG < INFO < WARN < ERROR)
- LogRecord: Immutable record shown in the log panel
- span()/instrument: Named scopes attached to records emitted inside them
- DiagnosticBridge: logging.Handler forwarding records to an event sink
- init_logging(): Root logger setup (JSON log file + bridge), undone by
  LoggingSession.close()

The bridge is an explicit object: it is constructed with the sink it feeds
and installed on a logger by the caller. Forwarding is fire-and-forget, so
a closed sink never makes a logging call fail or block.

Example:
    bridge = DiagnosticBridge(events.sender())
    bridge.install()

    with span("provision"):
        logger.info("joining node", extra={"node": "cp-1"})
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Protocol, TypeVar

if TYPE_CHECKING:
    from ez_rke.config import Settings

logger = logging.getLogger(__name__)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Attributes every stdlib LogRecord carries; anything else came from `extra=`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_scope: ContextVar[tuple[str, ...]] = ContextVar("ez_rke_scope", default=())

F = TypeVar("F", bound=Callable[..., Any])


class Level(IntEnum):
    """Record severity, ordered from most to least verbose."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4

    @classmethod
    def from_levelno(cls, levelno: int) -> Level:
        """Map a stdlib logging level number onto a Level."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


@dataclass(frozen=True)
class LogRecord:
    """
    A captured diagnostic record.

    Attributes:
        level: Severity
        target: Emitting logger name (e.g. "ez_rke.tui.app")
        name: Call site identifier (e.g. "event app.py:42")
        fields: Field name to rendered value; the message is under "message"
        timestamp: Local capture time, microsecond resolution
        scope: Active span chain joined with ":" (innermost first), if any
    """

    level: Level
    target: str
    name: str
    fields: Mapping[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())
    scope: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_logging(cls, record: logging.LogRecord, scope: str | None = None) -> LogRecord:
        """
        Convert a stdlib logging record.

        Args:
            record: The record passed to a logging handler
            scope: Span chain active where the record was emitted

        Returns:
            LogRecord with the message under "message" and every extra
            attribute rendered with repr()
        """
        fields = {"message": record.getMessage()}
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                fields[key] = repr(value)

        return cls(
            level=Level.from_levelno(record.levelno),
            target=record.name,
            name=f"event {record.filename}:{record.lineno}",
            fields=fields,
            timestamp=datetime.now().astimezone(),
            scope=scope,
        )

    @property
    def message(self) -> str:
        return self.fields.get("message", "")


def current_scope() -> str | None:
    """Return the active span chain, innermost first, or None outside spans."""
    chain = _scope.get()
    if not chain:
        return None
    return ":".join(reversed(chain))


@contextmanager
def span(name: str) -> Iterator[None]:
    """
    Enter a named scope for the current task or thread.

    Records emitted inside carry the scope chain, so nested spans
    "deploy" then "node" produce the scope "node:deploy".
    """
    token = _scope.set(_scope.get() + (name,))
    try:
        yield
    finally:
        _scope.reset(token)


def instrument(func: F) -> F:
    """Run a sync or async function inside a span named after it."""
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with span(func.__name__):
                return await func(*args, **kwargs)

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with span(func.__name__):
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


class LogSink(Protocol):
    """Anything that accepts converted records without raising."""

    def send_log(self, record: LogRecord) -> bool: ...


class DiagnosticBridge(logging.Handler):
    """
    Logging handler that forwards every record to a LogSink.

    Install once per process on the logger whose records should reach the
    dashboard (the root logger by default).

    Example:
        bridge = DiagnosticBridge(events.sender())
        bridge.install()
        ...
        bridge.uninstall()
    """

    def __init__(self, sink: LogSink, level: int = logging.NOTSET) -> None:
        """
        Initialize bridge.

        Args:
            sink: Destination for converted records
            level: Minimum stdlib level forwarded (default: everything)
        """
        super().__init__(level)
        self._sink = sink
        self._logger: logging.Logger | None = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            converted = LogRecord.from_logging(record, scope=current_scope())
        except Exception:
            self.handleError(record)
            return
        self._sink.send_log(converted)

    def install(self, target: logging.Logger | None = None) -> None:
        """Attach to `target` (root logger when None)."""
        self._logger = target if target is not None else logging.getLogger()
        self._logger.addHandler(self)

    def uninstall(self) -> None:
        """Detach from the logger this bridge was installed on."""
        if self._logger is not None:
            self._logger.removeHandler(self)
            self._logger = None


class JsonFormatter(logging.Formatter):
    """Formats records as one JSON object per line for the persistent log."""

    def format(self, record: logging.LogRecord) -> str:
        converted = LogRecord.from_logging(record, scope=current_scope())
        payload: dict[str, Any] = {
            "timestamp": converted.timestamp.isoformat(),
            "level": converted.level.name,
            "target": converted.target,
            "fields": dict(converted.fields),
        }
        if converted.scope is not None:
            payload["span"] = converted.scope
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


@dataclass
class LoggingSession:
    """
    Handlers installed on the root logger by init_logging().

    Attributes:
        bridge: Bridge feeding the dashboard
        file_handler: JSON log file handler, if a log file is configured
    """

    bridge: DiagnosticBridge
    file_handler: logging.FileHandler | None = None

    def close(self) -> None:
        """Detach the bridge and close the log file."""
        self.bridge.uninstall()
        if self.file_handler is not None:
            logging.getLogger().removeHandler(self.file_handler)
            self.file_handler.close()
            self.file_handler = None


def init_logging(settings: Settings, sink: LogSink) -> LoggingSession:
    """
    Configure the root logger for a dashboard session.

    Sets the root level, attaches the JSON log file (when configured)
    and installs a DiagnosticBridge feeding `sink`. No stream handler is
    added because the dashboard owns the terminal.

    Args:
        settings: Runtime settings (log_level, log_file)
        sink: Destination for dashboard log records

    Returns:
        The installed handlers; call close() on shutdown
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)

    file_handler = None
    if settings.log_file is not None:
        file_handler = logging.FileHandler(Path(settings.log_file), encoding="utf-8")
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    bridge = DiagnosticBridge(sink)
    bridge.install(root)

    logger.info("Initialized ez_rke loggers")
    return LoggingSession(bridge, file_handler)
