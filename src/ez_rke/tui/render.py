"""
Frame rendering for the topology dashboard.

This module provides:
- RenderTarget: Protocol for anything that can draw bordered panels and
  styled lines at cell positions
- Canvas: Cell-grid RenderTarget that is also a Rich renderable, used as
  the Live renderable for each frame
- render_frame(): Issues draw commands for a LayoutPlan
- format_log_line(): Severity-coloured one-line view of a LogRecord

render_frame() only reads its inputs, so calling it twice with the same
plan and state issues the same draw commands.
"""

from __future__ import annotations

from typing import Protocol

from rich.cells import get_character_cell_size
from rich.console import Console, ConsoleOptions, RenderResult
from rich.segment import Segment
from rich.style import StyleType
from rich.text import Text

from ez_rke.log import Level, LogRecord
from ez_rke.tui.borders import PanelKind, Sides
from ez_rke.tui.layout import LayoutPlan, PanelPlan
from ez_rke.tui.state import AppState

EMPTY_CONTROL_PLANE = "No control plane nodes configured"
SCOPE_WIDTH = 30
TIMESTAMP_FORMAT = "[%Y-%m-%d][%H:%M:%S]"

LEVEL_STYLES = {
    Level.TRACE: "yellow",
    Level.DEBUG: "white",
    Level.INFO: "green",
    Level.WARN: "red",
    Level.ERROR: "bold red",
}


class RenderTarget(Protocol):
    """Receiver of draw commands for one frame."""

    def draw_panel(self, panel: PanelPlan) -> None:
        """Draw the panel's border sides and title."""
        ...

    def draw_text(self, x: int, y: int, width: int, text: Text) -> None:
        """Draw one styled line starting at (x, y), clipped to width cells."""
        ...


class Canvas:
    """
    Character grid for one frame.

    Drawing outside the grid is clipped. Rendering the canvas with Rich
    yields exactly `height` lines of `width` cells.

    Example:
        canvas = Canvas(80, 24)
        render_frame(plan, state, canvas)
        live.update(canvas, refresh=True)
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = max(width, 0)
        self.height = max(height, 0)
        self._chars = [[" "] * self.width for _ in range(self.height)]
        self._styles: list[list[StyleType | None]] = [
            [None] * self.width for _ in range(self.height)
        ]

    def put(
        self,
        x: int,
        y: int,
        text: str,
        style: StyleType | None = None,
        limit: int | None = None,
    ) -> None:
        """
        Write text at (x, y) with a single style.

        Wide characters take two cells; the second holds an empty
        placeholder. A character that would cross column `limit` (or the
        grid edge) is not drawn, nor is anything after it.
        """
        if not 0 <= y < self.height:
            return
        end = self.width if limit is None else min(limit, self.width)
        row, styles = self._chars[y], self._styles[y]
        col = x
        for char in text:
            size = get_character_cell_size(char)
            if size == 0:
                continue
            if col + size > end:
                break
            if col >= 0:
                self._claim(col, y, size)
                row[col], styles[col] = char, style
                if size == 2:
                    row[col + 1], styles[col + 1] = "", style
            elif col + size > 0:
                # Wide character cut by the left edge
                self._claim(0, y, 1)
                row[0], styles[0] = " ", style
            col += size

    def _claim(self, x: int, y: int, size: int) -> None:
        """Blank the other half of any wide character cut by cells x..x+size-1."""
        row = self._chars[y]
        if row[x] == "" and x > 0:
            row[x - 1] = " "
        after = x + size
        if after < self.width and row[after] == "":
            row[after] = " "

    def draw_panel(self, panel: PanelPlan) -> None:
        region = panel.region
        if region.width <= 0 or region.height <= 0:
            return

        sides = panel.border.sides
        box = panel.border.box
        left, right = Sides.LEFT in sides, Sides.RIGHT in sides
        top, bottom = Sides.TOP in sides, Sides.BOTTOM in sides
        x0, x1 = region.x, region.x + region.width - 1
        y0, y1 = region.y, region.y + region.height - 1

        for y in range(y0 + top, y1 - bottom + 1):
            if left:
                self.put(x0, y, box.mid_left)
            if right:
                self.put(x1, y, box.mid_right)

        if top:
            edge = self._edge(panel, box.top, box.top_left, box.top_right, box.top_divider)
            self.put(x0, y0, edge)
            room = region.width - left - right
            if room > 0:
                self.put(x0 + left, y0, panel.title[:room], "bold")
        if bottom:
            self.put(x0, y1, self._edge(panel, box.bottom, box.bottom_left, box.bottom_right))

    def draw_text(self, x: int, y: int, width: int, text: Text) -> None:
        plain = text.plain
        styles: list[StyleType | None] = [text.style or None] * len(plain)
        for span in text.spans:
            for i in range(span.start, min(span.end, len(plain))):
                styles[i] = span.style
        col = x
        limit = x + max(width, 0)
        for char, style in zip(plain, styles):
            if not char.isprintable():
                char = " "
            size = get_character_cell_size(char)
            if col + size > limit:
                break
            self.put(col, y, char, style, limit)
            col += size

    def row_text(self, y: int) -> str:
        """Plain text of one row (wide-character placeholders omitted)."""
        return "".join(self._chars[y])

    def lines(self) -> list[str]:
        """Plain text of every row, top to bottom."""
        return [self.row_text(y) for y in range(self.height)]

    def char_at(self, x: int, y: int) -> str:
        """Character in a cell; "" for the second cell of a wide character."""
        return self._chars[y][x]

    def style_at(self, x: int, y: int) -> StyleType | None:
        return self._styles[y][x]

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        for chars, styles in zip(self._chars, self._styles):
            start = 0
            for i in range(1, len(chars) + 1):
                if i == len(chars) or styles[i] != styles[start]:
                    style = styles[start]
                    yield Segment(
                        "".join(chars[start:i]),
                        console.get_style(style) if style else None,
                    )
                    start = i
            yield Segment.line()

    @staticmethod
    def _edge(
        panel: PanelPlan, line: str, first: str, last: str, divider: str | None = None
    ) -> str:
        sides = panel.border.sides
        width = panel.region.width
        edge = [line] * width
        if divider is not None:
            for offset in panel.dividers:
                if 0 < offset < width - 1:
                    edge[offset] = divider
        if Sides.LEFT in sides:
            edge[0] = first
        if Sides.RIGHT in sides:
            edge[-1] = last
        return "".join(edge)


def format_log_line(record: LogRecord) -> Text:
    """
    Format a record as one dashboard line.

    Layout: "[date][time] LEVEL target:scope  message key=value ..."
    with the scope column padded or clipped to SCOPE_WIDTH cells.
    """
    scope = f"{record.target}:{record.scope}" if record.scope else record.target
    fields = [record.message] if record.message else []
    fields.extend(f"{key}={value}" for key, value in record.fields.items() if key != "message")

    text = Text(no_wrap=True)
    text.append(record.timestamp.strftime(TIMESTAMP_FORMAT), style="dim")
    text.append(" ")
    text.append(f"{record.level.name:<5}", style=LEVEL_STYLES[record.level])
    text.append(" ")
    text.append(f"{scope[:SCOPE_WIDTH]:<{SCOPE_WIDTH}}", style="cyan")
    text.append(" ")
    text.append(" ".join(fields))
    return text


def panel_lines(panel: PanelPlan, plan: LayoutPlan, state: AppState) -> list[Text]:
    """Content lines for a panel, top to bottom, before clipping."""
    topology = state.topology

    if panel.kind is PanelKind.CONFIGURATION:
        return [
            Text(f"Control nodes: {len(topology.control)}"),
            Text(f"Worker nodes: {len(topology.worker)}"),
            Text(f"VIP: {topology.vip or 'none'}"),
        ]
    if panel.kind is PanelKind.VIP:
        return [Text(topology.vip or "")]
    if panel.kind is PanelKind.CONTROL_NODES:
        if not topology.control:
            return [Text(EMPTY_CONTROL_PLANE, style="dim")]
        return [Text(name) for name in topology.control]
    if panel.kind is PanelKind.WORKER_NODES:
        return [Text(name) for name in topology.worker]
    if panel.kind is PanelKind.LOGS:
        records = state.logs.window(plan.log_offset, plan.log_visible)
        return [format_log_line(record) for record in records]
    return []


def render_frame(plan: LayoutPlan, state: AppState, target: RenderTarget) -> None:
    """
    Draw every panel of the plan onto a render target.

    Args:
        plan: Layout computed for this frame
        state: Application state the plan was computed from
        target: Receiver of the draw commands
    """
    for panel in plan.panels:
        target.draw_panel(panel)
        inner = panel.inner
        if inner.width <= 0 or inner.height <= 0:
            continue
        for row, line in enumerate(panel_lines(panel, plan, state)[: inner.height]):
            target.draw_text(inner.x, inner.y + row, inner.width, line)
