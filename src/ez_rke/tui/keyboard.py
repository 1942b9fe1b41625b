"""
Terminal input producer for the event multiplexer.

This module provides non-blocking terminal input for the EventHandler:
- _read_with_timeout(): select()-guarded read of whatever bytes are pending
- decode_input(): Byte sequence to Key/Mouse events
- TerminalInput: InputSource reading stdin in the default executor

Reads never block the event loop: the blocking select() runs in an
executor thread with a short timeout so the thread always returns quickly,
which keeps shutdown prompt. The caller (Terminal) is responsible for
putting the terminal in raw mode.
"""

from __future__ import annotations

import asyncio
import os
import re
import select
import signal
from collections import deque

from ez_rke.tui.event import (
    Event,
    Key,
    KeyCode,
    KeyEvent,
    KeyModifiers,
    Mouse,
    MouseEvent,
    MouseEventKind,
    Resize,
)

ESC = 0x1B

_CSI_KEYS = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
    "H": KeyCode.HOME,
    "F": KeyCode.END,
    "Z": KeyCode.BACKTAB,
    "P": KeyCode.F1,
    "Q": KeyCode.F2,
    "R": KeyCode.F3,
    "S": KeyCode.F4,
}

_TILDE_KEYS = {
    "1": KeyCode.HOME,
    "2": KeyCode.INSERT,
    "3": KeyCode.DELETE,
    "4": KeyCode.END,
    "5": KeyCode.PAGE_UP,
    "6": KeyCode.PAGE_DOWN,
    "7": KeyCode.HOME,
    "8": KeyCode.END,
}

# ESC [ params final, final byte in 0x40-0x7E
_CSI = re.compile(rb"\x1b\[([0-?]*)([ -/]*)([@-~])")
_SS3 = re.compile(rb"\x1bO([@-~])")
_SGR_MOUSE = re.compile(rb"\x1b\[<(\d+);(\d+);(\d+)([Mm])")


def _read_with_timeout(fd: int, timeout: float) -> bytes | None:
    """
    Read pending input bytes with timeout.

    Args:
        fd: File descriptor to read from
        timeout: Maximum seconds to wait for input

    Returns:
        Bytes read (b"" at end of input), or None if timeout
    """
    if select.select([fd], [], [], timeout)[0]:
        return os.read(fd, 1024)
    return None


def _modifiers_from_param(param: int) -> KeyModifiers:
    # xterm encodes modifiers as 1 + bitmask (shift=1, alt=2, ctrl=4)
    bits = max(param - 1, 0)
    modifiers = KeyModifiers.NONE
    if bits & 1:
        modifiers |= KeyModifiers.SHIFT
    if bits & 2:
        modifiers |= KeyModifiers.ALT
    if bits & 4:
        modifiers |= KeyModifiers.CONTROL
    return modifiers


def _decode_mouse(match: re.Match[bytes]) -> Mouse:
    code = int(match.group(1))
    column = int(match.group(2)) - 1
    row = int(match.group(3)) - 1
    released = match.group(4) == b"m"

    modifiers = KeyModifiers.NONE
    if code & 4:
        modifiers |= KeyModifiers.SHIFT
    if code & 8:
        modifiers |= KeyModifiers.ALT
    if code & 16:
        modifiers |= KeyModifiers.CONTROL

    button = code & 3
    if code & 64:
        kind = MouseEventKind.SCROLL_DOWN if button & 1 else MouseEventKind.SCROLL_UP
    elif code & 32:
        kind = MouseEventKind.MOVED if button == 3 else MouseEventKind.DRAG
    elif released:
        kind = MouseEventKind.UP
    else:
        kind = MouseEventKind.DOWN

    return Mouse(MouseEvent(kind, button, column, row, modifiers))


def _decode_csi(match: re.Match[bytes]) -> Key | None:
    params = match.group(1).decode("ascii", "replace")
    final = match.group(3).decode("ascii", "replace")
    parts = [p for p in params.split(";") if p]

    modifiers = KeyModifiers.NONE
    if len(parts) > 1 and parts[1].isdigit():
        modifiers = _modifiers_from_param(int(parts[1]))

    if final == "~" and parts:
        code = _TILDE_KEYS.get(parts[0])
    else:
        code = _CSI_KEYS.get(final)
    if code is None:
        return None
    if code == KeyCode.BACKTAB:
        modifiers |= KeyModifiers.SHIFT
    return Key(KeyEvent(code, modifiers))


def _decode_char(char: str, modifiers: KeyModifiers) -> Key:
    byte = ord(char)
    if char in ("\r", "\n"):
        return Key(KeyEvent(KeyCode.ENTER, modifiers))
    if char == "\t":
        return Key(KeyEvent(KeyCode.TAB, modifiers))
    if byte in (0x7F, 0x08):
        return Key(KeyEvent(KeyCode.BACKSPACE, modifiers))
    if 0x01 <= byte <= 0x1A:
        return Key(KeyEvent(chr(byte + 0x60), modifiers | KeyModifiers.CONTROL))
    if char.isupper():
        modifiers |= KeyModifiers.SHIFT
    return Key(KeyEvent(char, modifiers))


def decode_input(data: bytes) -> list[Event]:
    """
    Decode a chunk of raw terminal input.

    Handles printable characters (UTF-8), control bytes (Ctrl+letter),
    Enter/Tab/Backspace, a lone Esc, Alt+key (Esc prefix), CSI and SS3
    key sequences and SGR mouse reports. Unrecognized sequences are
    dropped.

    Args:
        data: Bytes read from the terminal in one go

    Returns:
        Decoded events in input order
    """
    events: list[Event] = []
    pos = 0
    while pos < len(data):
        if data[pos] == ESC:
            mouse = _SGR_MOUSE.match(data, pos)
            if mouse:
                events.append(_decode_mouse(mouse))
                pos = mouse.end()
                continue
            csi = _CSI.match(data, pos)
            if csi:
                key = _decode_csi(csi)
                if key is not None:
                    events.append(key)
                pos = csi.end()
                continue
            ss3 = _SS3.match(data, pos)
            if ss3:
                code = _CSI_KEYS.get(ss3.group(1).decode("ascii", "replace"))
                if code is not None:
                    events.append(Key(KeyEvent(code)))
                pos = ss3.end()
                continue
            if pos + 1 < len(data) and data[pos + 1] != ESC:
                # Esc prefix means Alt held
                char, width = _next_char(data, pos + 1)
                events.append(_decode_char(char, KeyModifiers.ALT))
                pos += 1 + width
                continue
            events.append(Key(KeyEvent(KeyCode.ESC)))
            pos += 1
            continue

        char, width = _next_char(data, pos)
        events.append(_decode_char(char, KeyModifiers.NONE))
        pos += width
    return events


def _next_char(data: bytes, pos: int) -> tuple[str, int]:
    """Decode one UTF-8 character starting at pos."""
    lead = data[pos]
    if lead < 0x80:
        width = 1
    elif lead >> 5 == 0b110:
        width = 2
    elif lead >> 4 == 0b1110:
        width = 3
    elif lead >> 3 == 0b11110:
        width = 4
    else:
        width = 1
    chunk = data[pos : pos + width]
    return chunk.decode("utf-8", "replace")[:1] or "�", len(chunk)


class TerminalInput:
    """
    Async terminal reader for the EventHandler producer task.

    Example:
        source = TerminalInput(sys.stdin.fileno())
        events = EventHandler(tick_rate=0.25, input_source=source)
    """

    def __init__(self, fd: int, timeout: float = 0.1) -> None:
        """
        Initialize terminal input.

        Args:
            fd: Terminal file descriptor (already in raw mode)
            timeout: select() timeout for each executor read
        """
        self._fd = fd
        self._timeout = timeout
        self._pending: deque[Event] = deque()
        self._loop: asyncio.AbstractEventLoop | None = None

    async def read(self) -> Event | None:
        """
        Return the next decoded input event.

        Returns:
            The next event, or None if no input arrived within the timeout

        Raises:
            EOFError: If the terminal input was closed
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
            self._loop.add_signal_handler(signal.SIGWINCH, self._on_resize)

        if not self._pending:
            data = await self._loop.run_in_executor(
                None, _read_with_timeout, self._fd, self._timeout
            )
            if data is None:
                return None
            if not data:
                raise EOFError("terminal input closed")
            self._pending.extend(decode_input(data))

        if self._pending:
            return self._pending.popleft()
        return None

    def close(self) -> None:
        """Stop listening for resize signals."""
        if self._loop is not None and not self._loop.is_closed():
            self._loop.remove_signal_handler(signal.SIGWINCH)
        self._loop = None

    def _on_resize(self) -> None:
        size = os.get_terminal_size(self._fd)
        self._pending.append(Resize(size.columns, size.lines))
