"""
Border glyph selection for adjacent dashboard panels.

Panels are laid out edge to edge, never overlapping. Where two panels
share an edge only one of them draws it, and corners that land on a
neighbour's line use junction glyphs, so every shared edge renders as a
single continuous line:

    ┌Configuration──────┬VIP─────────────────┐
    │                   │10.0.0.100          │
    │                   ├Control Nodes───────┤
    │                   │cp-1                │
    │                   ├Worker Nodes────────┤
    │                   │worker-1            │
    ├Logs───────────────┴────────────────────┤
    │...                                     │
    └────────────────────────────────────────┘

Which glyphs each panel needs depends only on which optional panels are
present, so the selection is a lookup keyed by (vip, worker, debug).
Glyph sets are rich Box instances; the Logs box carries the junction
placed under the left edge of the control-server column in its
top_divider.
"""

from dataclasses import dataclass
from enum import Enum, Flag, auto

from rich.box import SQUARE, Box


class PanelKind(Enum):
    CONFIGURATION = "configuration"
    VIP = "vip"
    CONTROL_NODES = "control_nodes"
    WORKER_NODES = "worker_nodes"
    LOGS = "logs"


class Sides(Flag):
    NONE = 0
    TOP = auto()
    RIGHT = auto()
    BOTTOM = auto()
    LEFT = auto()
    ALL = TOP | RIGHT | BOTTOM | LEFT


def _box(
    top_left: str = "┌",
    top_right: str = "┐",
    bottom_left: str = "└",
    bottom_right: str = "┘",
    top_divider: str = "┬",
) -> Box:
    """Build a SQUARE-style Box with the given corner and divider glyphs."""
    return Box(
        f"{top_left}─{top_divider}{top_right}\n"
        "│ ││\n"
        "├─┼┤\n"
        "│ ││\n"
        "├─┼┤\n"
        "├─┼┤\n"
        "│ ││\n"
        f"{bottom_left}─┴{bottom_right}\n"
    )


PLAIN = SQUARE
# Top-left corner sits on the Configuration panel's top line
TEE_DOWN_LEFT = _box(top_left="┬", bottom_left="┴")
# Top edge meets the panel above on both corners
TEE_TOP = _box(top_left="├", top_right="┤", bottom_left="┴")
# Logs: top edge closes the whole main area above it
LOGS_TOP = _box(top_left="├", top_right="┤", top_divider="┴")


@dataclass(frozen=True)
class Border:
    """
    How a panel draws its frame.

    Attributes:
        sides: Which edges the panel draws itself
        box: Glyphs for corners, edges and top-edge dividers
    """

    sides: Sides
    box: Box


_WITHOUT_BOTTOM = Sides.TOP | Sides.LEFT | Sides.RIGHT


def border_glyphs(vip: bool, worker: bool, debug: bool) -> dict[PanelKind, Border]:
    """
    Select borders for every panel present in a layout.

    The main-area panels leave their bottom edge to the Logs panel when
    debug is on. The Configuration panel never draws its right edge; the
    control-server column's left edge is the shared line.

    Args:
        vip: A VIP panel sits above the control nodes
        worker: A worker panel sits below the control nodes
        debug: The Logs panel spans the lower half of the terminal

    Returns:
        Border per present panel kind
    """
    main_sides = _WITHOUT_BOTTOM if debug else Sides.ALL

    borders = {
        PanelKind.CONFIGURATION: Border(main_sides & ~Sides.RIGHT, PLAIN),
        PanelKind.CONTROL_NODES: Border(
            _WITHOUT_BOTTOM if worker else main_sides,
            TEE_TOP if vip else TEE_DOWN_LEFT,
        ),
    }
    if vip:
        borders[PanelKind.VIP] = Border(_WITHOUT_BOTTOM, TEE_DOWN_LEFT)
    if worker:
        borders[PanelKind.WORKER_NODES] = Border(main_sides, TEE_TOP)
    if debug:
        borders[PanelKind.LOGS] = Border(Sides.ALL, LOGS_TOP)
    return borders
