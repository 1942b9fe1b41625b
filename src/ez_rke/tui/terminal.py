"""
Exclusive terminal ownership for the dashboard.

Terminal is a context manager that:
- Switches stdin to raw-style input (no echo, no line buffering, no
  signal keys, so Ctrl+C arrives as a key press)
- Shows frames on the alternate screen through Rich Live
- Restores the previous terminal mode on exit, including error paths

Output post-processing is left enabled so Rich's line endings still
return the cursor to column 0.
"""

from __future__ import annotations

import logging
import os
import sys
import termios
import tty
from types import TracebackType

from rich.console import Console, RenderableType
from rich.live import Live

logger = logging.getLogger(__name__)


class Terminal:
    """
    Raw-mode alternate-screen terminal.

    Example:
        with Terminal() as terminal:
            width, height = terminal.size()
            terminal.draw(canvas)
    """

    def __init__(self, console: Console | None = None, fd: int | None = None) -> None:
        """
        Initialize terminal wrapper.

        Args:
            console: Rich Console to draw with (creates default if None)
            fd: Input file descriptor (stdin if None)
        """
        self.console = console if console is not None else Console()
        self.fd = fd if fd is not None else sys.stdin.fileno()
        self._saved: list | None = None
        self._live: Live | None = None

    def __enter__(self) -> Terminal:
        self._saved = termios.tcgetattr(self.fd)
        try:
            self._enter_raw_mode()
            self._live = Live(
                console=self.console,
                screen=True,
                auto_refresh=False,
                transient=True,
            )
            self._live.start()
        except BaseException:
            self._restore()
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._restore()

    def size(self) -> tuple[int, int]:
        """
        Query the terminal size.

        Returns:
            (columns, rows)

        Raises:
            OSError: If the terminal cannot report its size
        """
        size = os.get_terminal_size(self.console.file.fileno())
        return size.columns, size.lines

    def draw(self, renderable: RenderableType) -> None:
        """Replace the screen contents with a renderable."""
        if self._live is None:
            raise RuntimeError("Terminal is not active")
        self._live.update(renderable, refresh=True)

    def _enter_raw_mode(self) -> None:
        mode = termios.tcgetattr(self.fd)
        mode[tty.IFLAG] &= ~(
            termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
        )
        mode[tty.LFLAG] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        mode[tty.CC][termios.VMIN] = 1
        mode[tty.CC][termios.VTIME] = 0
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, mode)

    def _restore(self) -> None:
        try:
            if self._live is not None:
                self._live.stop()
        finally:
            self._live = None
            if self._saved is not None:
                termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
                self._saved = None
                logger.debug("terminal restored")
