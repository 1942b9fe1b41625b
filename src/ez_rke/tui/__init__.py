"""
TUI module for the topology dashboard.

This module provides the building blocks of the dashboard:
- EventHandler: Multiplexer merging clock, terminal input and log records
- TerminalInput: Raw terminal reader and decoder
- LogBuffer: Ring buffer for captured log records
- AppState, interpret_key: UI state and key command interpretation
- border_glyphs: Junction-aware border selection
- compute_layout: Adaptive panel layout
- Canvas, render_frame: Frame rendering
- Terminal: Raw mode + alternate screen ownership
- App, run_dashboard: Run loop and session wiring
"""

from ez_rke.tui.app import App, run_dashboard
from ez_rke.tui.borders import Border, PanelKind, Sides, border_glyphs
from ez_rke.tui.buffer import LogBuffer
from ez_rke.tui.event import (
    Event,
    EventHandler,
    EventSender,
    Invalid,
    Key,
    KeyCode,
    KeyEvent,
    KeyModifiers,
    Log,
    Mouse,
    MouseEvent,
    Resize,
    Tick,
)
from ez_rke.tui.keyboard import TerminalInput, decode_input
from ez_rke.tui.layout import LayoutPlan, PanelPlan, Region, compute_layout
from ez_rke.tui.render import Canvas, RenderTarget, render_frame
from ez_rke.tui.state import AppState, Command, interpret_key
from ez_rke.tui.terminal import Terminal

__all__ = [
    "App",
    "AppState",
    "Border",
    "Canvas",
    "Command",
    "Event",
    "EventHandler",
    "EventSender",
    "Invalid",
    "Key",
    "KeyCode",
    "KeyEvent",
    "KeyModifiers",
    "LayoutPlan",
    "Log",
    "LogBuffer",
    "Mouse",
    "MouseEvent",
    "PanelKind",
    "PanelPlan",
    "Region",
    "RenderTarget",
    "Resize",
    "Sides",
    "Terminal",
    "TerminalInput",
    "Tick",
    "border_glyphs",
    "compute_layout",
    "decode_input",
    "interpret_key",
    "render_frame",
    "run_dashboard",
]
