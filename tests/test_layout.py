"""Tests for compute_layout() and the log scroll window."""

import pytest

from ez_rke.tui.borders import PanelKind
from ez_rke.tui.buffer import LogBuffer
from ez_rke.tui.layout import (
    CONFIG_WIDTH,
    VIP_HEIGHT,
    Region,
    compute_layout,
    log_scroll_offset,
)
from ez_rke.tui.render import render_frame
from ez_rke.tui.state import AppState


class TestRegion:
    """Tests for Region splitting."""

    def test_split_top_clamps(self):
        """Splitting past the bottom gives an empty remainder."""
        top, rest = Region(0, 0, 10, 4).split_top(9)
        assert top == Region(0, 0, 10, 4)
        assert rest == Region(0, 4, 10, 0)

    def test_split_left(self):
        left, rest = Region(2, 1, 30, 5).split_left(20)
        assert left == Region(2, 1, 20, 5)
        assert rest == Region(22, 1, 10, 5)


class TestComputeLayout:
    """Tests for panel selection and placement."""

    def test_control_only(self, make_topology, recording_target):
        """Two control nodes, no workers, no VIP: Configuration and Control Nodes only."""
        state = AppState(topology=make_topology(control=("cp-1", "cp-2")))
        plan = compute_layout(80, 24, state)

        assert plan.kinds == (PanelKind.CONFIGURATION, PanelKind.CONTROL_NODES)
        render_frame(plan, state, recording_target)
        control = plan.panel(PanelKind.CONTROL_NODES)
        assert recording_target.texts_in(control) == ["cp-1", "cp-2"]

    def test_all_panels(self, make_topology):
        """VIP, workers and debug add their panels in draw order."""
        topology = make_topology(worker=("w-1",), vip="10.0.0.100")
        state = AppState(topology=topology, debug=True)
        plan = compute_layout(80, 24, state)

        assert plan.kinds == (
            PanelKind.CONFIGURATION,
            PanelKind.VIP,
            PanelKind.CONTROL_NODES,
            PanelKind.WORKER_NODES,
            PanelKind.LOGS,
        )
        assert plan.panel(PanelKind.CONFIGURATION).region == Region(0, 0, CONFIG_WIDTH, 12)
        assert plan.panel(PanelKind.VIP).region == Region(CONFIG_WIDTH, 0, 60, VIP_HEIGHT)
        assert plan.panel(PanelKind.CONTROL_NODES).region == Region(CONFIG_WIDTH, 2, 60, 5)
        assert plan.panel(PanelKind.WORKER_NODES).region == Region(CONFIG_WIDTH, 7, 60, 5)
        assert plan.panel(PanelKind.LOGS).region == Region(0, 12, 80, 12)

    def test_panels_tile_without_overlap(self, make_topology):
        """Panels cover the whole terminal exactly once."""
        topology = make_topology(worker=("w-1", "w-2"), vip="10.0.0.100")
        plan = compute_layout(61, 25, AppState(topology=topology, debug=True))

        cells = [
            (x, y)
            for panel in plan.panels
            for x in range(panel.region.x, panel.region.x + panel.region.width)
            for y in range(panel.region.y, panel.region.y + panel.region.height)
        ]
        assert len(cells) == len(set(cells)) == 61 * 25

    def test_debug_with_empty_logs(self, make_topology, recording_target):
        """Debug on with no records shows a titled Logs panel and no lines."""
        state = AppState(topology=make_topology(), debug=True)
        plan = compute_layout(80, 24, state)
        render_frame(plan, state, recording_target)

        assert len(plan.panels) == 3
        logs = plan.panel(PanelKind.LOGS)
        assert logs.title == "Logs"
        assert logs.dividers == (CONFIG_WIDTH,)
        assert recording_target.texts_in(logs) == []

    def test_is_idempotent(self, make_topology):
        """The same inputs always give the same plan."""
        state = AppState(topology=make_topology(worker=("w-1",)), debug=True)
        assert compute_layout(100, 30, state) == compute_layout(100, 30, state)

    @pytest.mark.parametrize("width,height", [(0, 0), (5, 2), (21, 3), (1, 1)])
    def test_tiny_terminals(self, make_topology, recording_target, width, height):
        """Small sizes produce clamped regions instead of errors."""
        state = AppState(topology=make_topology(worker=("w-1",), vip="10.0.0.1"), debug=True)
        plan = compute_layout(width, height, state)
        render_frame(plan, state, recording_target)

        for panel in plan.panels:
            assert panel.region.width >= 0
            assert panel.region.height >= 0
            assert panel.inner.width >= 0
            assert panel.inner.height >= 0
        assert plan.log_visible >= 0


class TestLogWindow:
    """Tests for the log panel scroll window."""

    @pytest.mark.parametrize(
        "length,visible,expected",
        [(0, 10, 0), (5, 10, 0), (10, 10, 0), (25, 10, 15), (3, 0, 3)],
    )
    def test_scroll_offset(self, length, visible, expected):
        assert log_scroll_offset(length, visible) == expected

    @pytest.mark.parametrize("count", [0, 1, 9, 10, 11, 40])
    def test_shows_newest_records(self, make_topology, make_record, recording_target, count):
        """The Logs panel shows min(n, visible) records, newest at the bottom."""
        logs = LogBuffer()
        for i in range(count):
            logs.append(make_record(f"record-{i}"))
        state = AppState(topology=make_topology(), logs=logs, debug=True)

        # 24 rows: Logs panel is the lower 12 rows, 10 inside the border
        plan = compute_layout(80, 24, state)
        assert plan.log_visible == 10
        render_frame(plan, state, recording_target)
        lines = recording_target.texts_in(plan.panel(PanelKind.LOGS))

        assert len(lines) == min(count, 10)
        if count:
            assert lines[-1].endswith(f"record-{count - 1}")
            assert lines[0].endswith(f"record-{max(0, count - 10)}")
