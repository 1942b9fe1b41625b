"""
Adaptive layout for the topology dashboard.

compute_layout() turns (terminal size, AppState) into a LayoutPlan: the
panel regions, their borders and the log scroll window. It is a pure
function recomputed from scratch every frame.

Layout structure (debug on, VIP and workers configured):
+--------------------+-------------------------------+
|                    |  VIP (2 rows fixed)           |
|  Configuration     +-------------------------------+
|  (20 cols fixed)   |  Control Nodes (half)         |
|                    +-------------------------------+
|                    |  Worker Nodes (half)          |
+--------------------+-------------------------------+
|  Logs (lower half of the terminal)                 |
+----------------------------------------------------+

Without debug the main area takes the whole terminal. Without a VIP or
workers the Control Nodes panel takes the space they would use.
"""

from __future__ import annotations

from dataclasses import dataclass

from ez_rke.tui.borders import Border, PanelKind, Sides, border_glyphs
from ez_rke.tui.state import AppState

CONFIG_WIDTH = 20
VIP_HEIGHT = 2

TITLES = {
    PanelKind.CONFIGURATION: "Configuration",
    PanelKind.VIP: "VIP",
    PanelKind.CONTROL_NODES: "Control Nodes",
    PanelKind.WORKER_NODES: "Worker Nodes",
    PanelKind.LOGS: "Logs",
}


@dataclass(frozen=True)
class Region:
    """A rectangle of terminal cells."""

    x: int
    y: int
    width: int
    height: int

    def split_top(self, height: int) -> tuple[Region, Region]:
        """Split into a `height`-row top part and the rest below it."""
        height = max(0, min(height, self.height))
        top = Region(self.x, self.y, self.width, height)
        rest = Region(self.x, self.y + height, self.width, self.height - height)
        return top, rest

    def split_left(self, width: int) -> tuple[Region, Region]:
        """Split into a `width`-column left part and the rest to its right."""
        width = max(0, min(width, self.width))
        left = Region(self.x, self.y, width, self.height)
        rest = Region(self.x + width, self.y, self.width - width, self.height)
        return left, rest

    def shrink(self, sides: Sides) -> Region:
        """Return the area left inside the given border sides."""
        left = 1 if Sides.LEFT in sides else 0
        right = 1 if Sides.RIGHT in sides else 0
        top = 1 if Sides.TOP in sides else 0
        bottom = 1 if Sides.BOTTOM in sides else 0
        return Region(
            self.x + left,
            self.y + top,
            max(0, self.width - left - right),
            max(0, self.height - top - bottom),
        )


@dataclass(frozen=True)
class PanelPlan:
    """
    One bordered panel of the frame.

    Attributes:
        kind: What the panel shows
        region: Cells covered, border included
        border: Sides drawn and glyph set
        title: Text drawn on the top edge
        dividers: Top-edge columns (relative to region.x) drawn with the
            box's top_divider glyph
    """

    kind: PanelKind
    region: Region
    border: Border
    title: str
    dividers: tuple[int, ...] = ()

    @property
    def inner(self) -> Region:
        return self.region.shrink(self.border.sides)


@dataclass(frozen=True)
class LayoutPlan:
    """
    Everything needed to draw one frame.

    Attributes:
        width: Terminal columns
        height: Terminal rows
        panels: Panels in draw order
        log_offset: Index of the first log record shown
        log_visible: Log rows available in the Logs panel
    """

    width: int
    height: int
    panels: tuple[PanelPlan, ...]
    log_offset: int = 0
    log_visible: int = 0

    def panel(self, kind: PanelKind) -> PanelPlan | None:
        for panel in self.panels:
            if panel.kind is kind:
                return panel
        return None

    @property
    def kinds(self) -> tuple[PanelKind, ...]:
        return tuple(panel.kind for panel in self.panels)


def log_scroll_offset(length: int, visible: int) -> int:
    """Offset that anchors the log window to the newest record."""
    return max(0, length - visible)


def compute_layout(width: int, height: int, state: AppState) -> LayoutPlan:
    """
    Compute the frame layout.

    1. debug: lower half of the terminal is the Logs panel
    2. Configuration column (CONFIG_WIDTH) on the left of the main area
    3. VIP configured: VIP_HEIGHT-row strip on top of the server column
    4. Workers configured: server column split in half, control on top
    5. Borders chosen by border_glyphs() from the panels present

    Args:
        width: Terminal columns
        height: Terminal rows
        state: Current application state

    Returns:
        LayoutPlan for this frame
    """
    topology = state.topology
    has_vip = topology.vip is not None
    has_worker = bool(topology.worker)
    borders = border_glyphs(has_vip, has_worker, state.debug)

    area = Region(0, 0, max(width, 0), max(height, 0))
    if state.debug:
        main_area, log_area = area.split_top(area.height // 2)
    else:
        main_area, log_area = area, None

    config_area, server_area = main_area.split_left(CONFIG_WIDTH)
    panels = [_panel(PanelKind.CONFIGURATION, config_area, borders)]

    if has_vip:
        vip_area, server_area = server_area.split_top(VIP_HEIGHT)
        panels.append(_panel(PanelKind.VIP, vip_area, borders))

    if has_worker:
        control_area, worker_area = server_area.split_top(server_area.height // 2)
        panels.append(_panel(PanelKind.CONTROL_NODES, control_area, borders))
        panels.append(_panel(PanelKind.WORKER_NODES, worker_area, borders))
    else:
        panels.append(_panel(PanelKind.CONTROL_NODES, server_area, borders))

    log_offset = log_visible = 0
    if log_area is not None:
        divider = server_area.x - log_area.x
        dividers = (divider,) if 0 < divider < log_area.width - 1 else ()
        logs = _panel(PanelKind.LOGS, log_area, borders, dividers)
        panels.append(logs)
        log_visible = logs.inner.height
        log_offset = log_scroll_offset(len(state.logs), log_visible)

    return LayoutPlan(
        width=area.width,
        height=area.height,
        panels=tuple(panels),
        log_offset=log_offset,
        log_visible=log_visible,
    )


def _panel(
    kind: PanelKind,
    region: Region,
    borders: dict[PanelKind, Border],
    dividers: tuple[int, ...] = (),
) -> PanelPlan:
    return PanelPlan(kind, region, borders[kind], TITLES[kind], dividers)
