"""
Application state and key command interpretation.

The run loop is the only reader and writer of AppState. Keys are mapped
to Commands by interpret_key() (a pure function) and applied with
AppState.apply(), so key handling can be tested without a terminal.
"""

from dataclasses import dataclass, field
from enum import Enum

from ez_rke.config import Topology
from ez_rke.tui.buffer import LogBuffer
from ez_rke.tui.event import KeyCode, KeyEvent, KeyModifiers


class Command(Enum):
    """State transitions a key press can request."""

    QUIT = "quit"
    TOGGLE_DEBUG = "toggle_debug"


@dataclass
class AppState:
    """
    Mutable UI state.

    Attributes:
        topology: Cluster topology snapshot (never mutated)
        logs: Captured diagnostic records, oldest first
        running: True until a quit command is applied
        debug: True while the log panel is shown
    """

    topology: Topology
    logs: LogBuffer = field(default_factory=LogBuffer)
    running: bool = True
    debug: bool = False

    def apply(self, command: Command) -> None:
        if command is Command.QUIT:
            self.running = False
        elif command is Command.TOGGLE_DEBUG:
            self.debug = not self.debug


def interpret_key(key: KeyEvent) -> Command | None:
    """
    Map a key press to a command.

    - Esc or q: quit
    - Ctrl+C: quit
    - d or D: toggle the log panel
    Any other key is ignored.

    Args:
        key: Decoded key press

    Returns:
        The requested command, or None for unmapped keys
    """
    if key.code == KeyCode.ESC or key.code == "q":
        return Command.QUIT
    if key.code in ("c", "C") and KeyModifiers.CONTROL in key.modifiers:
        return Command.QUIT
    if key.code in ("d", "D"):
        return Command.TOGGLE_DEBUG
    return None
