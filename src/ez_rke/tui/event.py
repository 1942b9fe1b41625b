"""
Event multiplexer for the dashboard run loop.

This module merges every asynchronous input of the TUI into one ordered
stream consumed by a single render loop:
- Tick: fixed-interval clock
- Key / Mouse / Resize: decoded terminal input
- Log: diagnostic records forwarded by the DiagnosticBridge
- Invalid: returned once the multiplexer is closed and drained

Producers never block: the queue is unbounded. The timer/input producer
runs as one asyncio task racing a pending tick against a pending input read.
Diagnostic records can be sent from any thread through an EventSender.
If terminal input fails (including end of input), the error is queued
behind the events already sent and re-raised by next().
Events are delivered first enqueued, first dequeued; nothing reorders them
across producers.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union

if TYPE_CHECKING:
    from ez_rke.log import LogRecord

logger = logging.getLogger(__name__)


class KeyCode(str, enum.Enum):
    """Non-character keys. Character keys use the character itself."""

    ESC = "esc"
    ENTER = "enter"
    TAB = "tab"
    BACKTAB = "backtab"
    BACKSPACE = "backspace"
    DELETE = "delete"
    INSERT = "insert"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    F1 = "f1"
    F2 = "f2"
    F3 = "f3"
    F4 = "f4"


class KeyModifiers(enum.Flag):
    NONE = 0
    SHIFT = enum.auto()
    CONTROL = enum.auto()
    ALT = enum.auto()


class MouseEventKind(enum.Enum):
    DOWN = "down"
    UP = "up"
    DRAG = "drag"
    MOVED = "moved"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


@dataclass(frozen=True)
class KeyEvent:
    """
    A key press.

    Attributes:
        code: The character typed, or a KeyCode for non-character keys
        modifiers: Modifier keys held during the press
    """

    code: str
    modifiers: KeyModifiers = KeyModifiers.NONE


@dataclass(frozen=True)
class MouseEvent:
    """
    A mouse report. Coordinates are zero-based cells.

    Attributes:
        kind: Press, release, drag, move or scroll
        button: Button number for press/release/drag (0 left, 1 middle, 2 right)
        column: Cell column
        row: Cell row
        modifiers: Modifier keys held
    """

    kind: MouseEventKind
    button: int
    column: int
    row: int
    modifiers: KeyModifiers = KeyModifiers.NONE


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Key:
    key: KeyEvent


@dataclass(frozen=True)
class Mouse:
    mouse: MouseEvent


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Log:
    record: LogRecord


@dataclass(frozen=True)
class Invalid:
    pass


Event = Union[Tick, Key, Mouse, Resize, Log, Invalid]


class InputSource(Protocol):
    """Terminal input producer raced against the clock."""

    async def read(self) -> Event | None:
        """Return the next input event, None if nothing arrived, EOFError at end."""
        ...

    def close(self) -> None: ...


_CLOSED = object()


class EventSender:
    """
    Producer handle for an EventHandler.

    Safe to use from any thread. Sending never raises: once the handler
    is closed (or its event loop is gone) events are discarded and
    send() returns False.
    """

    def __init__(self, handler: EventHandler) -> None:
        self._handler = handler

    def send(self, event: Event) -> bool:
        return self._handler._enqueue(event)

    def send_log(self, record: LogRecord) -> bool:
        """Wrap a diagnostic record in a Log event and send it."""
        return self._handler._enqueue(Log(record))


class EventHandler:
    """
    Single-consumer event source for the run loop.

    Must be created inside a running event loop; the loop owns the queue.

    Example:
        events = EventHandler(tick_rate=0.25, input_source=TerminalInput(fd))
        events.start()
        while running:
            event = await events.next()
        events.close()
    """

    def __init__(self, tick_rate: float, input_source: InputSource | None = None) -> None:
        """
        Initialize multiplexer.

        Args:
            tick_rate: Seconds between Tick events
            input_source: Terminal input producer (None for clock only)
        """
        self._tick_rate = tick_rate
        self._input = input_source
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._producer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def sender(self) -> EventSender:
        """Return a producer handle for this multiplexer."""
        return EventSender(self)

    def start(self) -> None:
        """Spawn the timer/input producer task."""
        if self._producer is None and not self._closed:
            self._producer = self._loop.create_task(self._produce())

    async def next(self) -> Event:
        """
        Return the next event, or Invalid once closed and drained.

        Raises:
            OSError: If reading terminal input failed
            EOFError: If terminal input reached end of file
        """
        if self._closed and self._queue.empty():
            return Invalid()
        item = await self._queue.get()
        if item is _CLOSED:
            return Invalid()
        if isinstance(item, Exception):
            raise item
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop producers and wake the consumer. Later sends are discarded."""
        if self._closed:
            return
        self._closed = True
        if self._producer is not None:
            self._producer.cancel()
        if self._input is not None:
            self._input.close()
        self._queue.put_nowait(_CLOSED)

    def _enqueue(self, event: Event) -> bool:
        if self._closed:
            return False
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        try:
            if running is self._loop:
                self._queue.put_nowait(event)
            else:
                self._loop.call_soon_threadsafe(self._put, event)
        except RuntimeError:
            # Event loop already closed
            return False
        return True

    def _put(self, event: object) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    async def _produce(self) -> None:
        """Race the clock against terminal input, pushing whichever fires first."""
        tick_task: asyncio.Task[None] | None = None
        input_task: asyncio.Task[Event | None] | None = None
        deadline = self._loop.time() + self._tick_rate

        try:
            while True:
                if tick_task is None:
                    tick_task = asyncio.create_task(self._sleep_until(deadline))
                if input_task is None and self._input is not None:
                    input_task = asyncio.create_task(self._input.read())

                pending = {t for t in (tick_task, input_task) if t is not None}
                done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

                if tick_task in done:
                    tick_task = None
                    self._enqueue(Tick())
                    deadline += self._tick_rate
                    now = self._loop.time()
                    if deadline < now:
                        # Missed ticks are skipped, not replayed
                        deadline = now + self._tick_rate

                if input_task is not None and input_task in done:
                    finished, input_task = input_task, None
                    event = finished.result()
                    if event is not None:
                        self._enqueue(event)
        except EOFError as e:
            logger.error("terminal input closed")
            self._put(e)
        except Exception as e:
            logger.exception("event producer failed")
            self._put(e)
        finally:
            for task in (tick_task, input_task):
                if task is not None:
                    task.cancel()

    async def _sleep_until(self, deadline: float) -> None:
        await asyncio.sleep(max(0.0, deadline - self._loop.time()))
