"""
Dashboard run loop and startup wiring.

App drives the render -> await event -> apply cycle:
- Renders the current state into a Canvas and shows it
- Waits for the next multiplexed event
- Key events go through interpret_key(); Log events are appended to the
  log buffer; Tick, Mouse, Resize and Invalid only trigger the next frame

The loop stops when a quit key is applied or when terminal input fails
(read error or end of input), in which case the error propagates. The
terminal is restored by the Terminal context manager either way.

run_dashboard() builds the session: event multiplexer, logging bridge,
state and terminal, then runs the App.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Protocol

from rich.console import RenderableType

from ez_rke.log import init_logging, span
from ez_rke.tui.buffer import LogBuffer
from ez_rke.tui.event import Event, EventHandler, Key, Log
from ez_rke.tui.keyboard import TerminalInput
from ez_rke.tui.layout import compute_layout
from ez_rke.tui.render import Canvas, render_frame
from ez_rke.tui.state import AppState, interpret_key
from ez_rke.tui.terminal import Terminal

if TYPE_CHECKING:
    from ez_rke.config import Settings, Topology

logger = logging.getLogger(__name__)


class Screen(Protocol):
    """The parts of Terminal the run loop uses."""

    def __enter__(self) -> Screen: ...

    def __exit__(self, *exc_info: object) -> None: ...

    def size(self) -> tuple[int, int]: ...

    def draw(self, renderable: RenderableType) -> None: ...


class App:
    """
    Single consumer of the event stream and sole owner of AppState.

    Example:
        app = App(Terminal(), events, AppState(topology=topology))
        await app.run()  # Runs until q, Esc or Ctrl+C
    """

    def __init__(self, terminal: Screen, events: EventHandler, state: AppState) -> None:
        """
        Initialize app.

        Args:
            terminal: Screen to draw on (entered for the duration of run())
            events: Event multiplexer to consume
            state: Application state to render and mutate
        """
        self.terminal = terminal
        self.events = events
        self.state = state

    async def run(self) -> None:
        """
        Run until a quit command is applied.

        Raises:
            OSError: If the terminal cannot be read, sized or drawn on
            EOFError: If terminal input reaches end of file
        """
        with self.terminal:
            self.events.start()
            try:
                while self.state.running:
                    self.draw()
                    self.handle_event(await self.events.next())
            finally:
                self.events.close()

    def draw(self) -> None:
        """Render the current state as one frame."""
        width, height = self.terminal.size()
        plan = compute_layout(width, height, self.state)
        canvas = Canvas(width, height)
        render_frame(plan, self.state, canvas)
        self.terminal.draw(canvas)

    def handle_event(self, event: Event) -> None:
        if isinstance(event, Key):
            logger.debug("key event", extra={"key_event": event.key})
            command = interpret_key(event.key)
            if command is not None:
                self.state.apply(command)
        elif isinstance(event, Log):
            self.state.logs.append(event.record)


async def _heartbeat(interval: float) -> None:
    """Emit a debug record every `interval` seconds."""
    beat = 0
    with span("heartbeat"):
        while True:
            await asyncio.sleep(interval)
            beat += 1
            logger.debug("heartbeat", extra={"beat": beat})


async def run_dashboard(settings: Settings, topology: Topology, heartbeat: float = 0.0) -> None:
    """
    Run a dashboard session on the controlling terminal.

    Args:
        settings: Runtime settings (tick rate, logging, buffer capacity)
        topology: Cluster topology to display
        heartbeat: Seconds between demo heartbeat records (0 disables)
    """
    fd = sys.stdin.fileno()
    events = EventHandler(settings.tick_rate, input_source=TerminalInput(fd))
    logging_session = init_logging(settings, events.sender())
    state = AppState(topology=topology, logs=LogBuffer(settings.log_capacity))
    app = App(Terminal(fd=fd), events, state)

    beats = asyncio.create_task(_heartbeat(heartbeat)) if heartbeat > 0 else None
    try:
        await app.run()
    finally:
        if beats is not None:
            beats.cancel()
        logger.info("Dashboard stopped")
        logging_session.close()
