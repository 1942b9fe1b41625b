"""Shared fixtures for ez-rke tests."""

from datetime import datetime

import pytest
from rich.text import Text

from ez_rke.config import Servers, Topology
from ez_rke.log import Level, LogRecord
from ez_rke.tui.layout import PanelPlan


class RecordingTarget:
    """RenderTarget that records draw commands instead of drawing."""

    def __init__(self) -> None:
        self.panels: list[PanelPlan] = []
        self.texts: list[tuple[int, int, int, str]] = []

    def draw_panel(self, panel: PanelPlan) -> None:
        self.panels.append(panel)

    def draw_text(self, x: int, y: int, width: int, text: Text) -> None:
        self.texts.append((x, y, width, text.plain))

    def texts_in(self, panel: PanelPlan) -> list[str]:
        """Plain text drawn inside a panel's inner region, top to bottom."""
        inner = panel.inner
        return [
            plain
            for x, y, _, plain in sorted(self.texts, key=lambda t: t[1])
            if inner.x <= x < inner.x + inner.width and inner.y <= y < inner.y + inner.height
        ]


@pytest.fixture
def recording_target() -> RecordingTarget:
    return RecordingTarget()


@pytest.fixture
def make_topology():
    """Factory for Topology instances."""

    def _make(
        control: tuple[str, ...] = ("cp-1", "cp-2"),
        worker: tuple[str, ...] = (),
        vip: str | None = None,
    ) -> Topology:
        return Topology(servers=Servers(control=control, worker=worker, vip=vip))

    return _make


@pytest.fixture
def make_record():
    """Factory for LogRecord instances with a fixed timestamp."""

    def _make(
        message: str = "hello",
        level: Level = Level.INFO,
        target: str = "tests",
        scope: str | None = None,
        **fields: str,
    ) -> LogRecord:
        return LogRecord(
            level=level,
            target=target,
            name="event test.py:1",
            fields={"message": message, **fields},
            timestamp=datetime(2024, 5, 1, 12, 30, 45, 123456).astimezone(),
            scope=scope,
        )

    return _make
