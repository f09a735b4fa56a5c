from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from adapters.layout.config import LayoutConfig
from adapters.layout.label_placer import LabelGeometry, LabelPlacer
from adapters.layout.occupancy import Occupancy
from domain.models import ConnectorVector, Interval
from domain.services.width_estimation import WidthEstimator
from tests.helpers.timeline_fixtures import short_event, standard_item


def _placer(config: LayoutConfig | None = None) -> LabelPlacer:
    resolved = config or LayoutConfig()
    return LabelPlacer(resolved, LabelGeometry(resolved, WidthEstimator(resolved.widths)))


def _occupancy_with_bar(row: int, item_id: str, start: float, end: float, rows: int) -> Occupancy:
    occupancy = Occupancy()
    for _ in range(rows):
        occupancy.add_row()
    occupancy.place_bar(row, Interval(start=start, end=end, kind="bar", owner=item_id))
    return occupancy


def _block_gap(occupancy: Occupancy, gap: int) -> None:
    occupancy.place_label(gap, Interval(start=0, end=5000, kind="label", owner=f"blocker-{gap}"))


def test_row_zero_uses_gap_below() -> None:
    item = short_event("e", 732, 735)
    occupancy = _occupancy_with_bar(0, "e", 732, 735, rows=1)

    placements, diagnostics = _placer().place([item], {"e": 0}, occupancy)

    placement = placements["e"]
    assert placement.bar_row == 0
    assert placement.slot.label_row == 0.5
    assert placement.offset == 5
    assert not diagnostics


def test_gap_above_is_tried_before_gap_below() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)

    placements, _ = _placer().place([item], {"e": 1}, occupancy)

    assert placements["e"].slot.label_row == 0.5
    assert placements["e"].slot.above


def test_label_and_connector_are_registered() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)
    config = LayoutConfig()

    _placer(config).place([item], {"e": 1}, occupancy)

    label = occupancy.label_interval(0, "e")
    assert label is not None
    assert label.start == 507
    assert label.end == pytest.approx(507 + 120 / 10 + 3)
    assert occupancy.connectors == [
        ConnectorVector(
            item_id="e",
            x1=500,
            y1=1 + config.bar_anchor,
            x2=507,
            y2=0 + config.label_anchor_above,
        )
    ]


def test_crossing_connector_blocks_gap() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)
    occupancy.add_connector(ConnectorVector(item_id="other", x1=495, y1=0.9, x2=510, y2=1.3))

    placements, _ = _placer().place([item], {"e": 1}, occupancy)

    assert placements["e"].bar_row == 1
    assert placements["e"].slot.label_row == 1.5


def test_blocked_gaps_relocate_bar_to_new_row() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)
    _block_gap(occupancy, 0)
    _block_gap(occupancy, 1)
    config = LayoutConfig()

    placements, diagnostics = _placer(config).place([item], {"e": 1}, occupancy)

    placement = placements["e"]
    assert placement.bar_row == 2
    assert placement.slot.label_row == 2.5
    assert 1 <= placement.relocations <= config.max_relocation_attempts
    assert not placement.fallback
    assert not diagnostics
    assert all(interval.owner != "e" for interval in occupancy.rows[1])
    assert [interval.owner for interval in occupancy.rows[2]] == ["e"]


def test_relocation_scan_is_bounded() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=4)
    occupancy.place_bar(2, Interval(start=480, end=520, kind="bar", owner="wall"))
    _block_gap(occupancy, 0)
    _block_gap(occupancy, 1)

    narrow = replace(LayoutConfig(), relocation_scan_limit=1)
    placements, _ = _placer(narrow).place([item], {"e": 1}, occupancy)

    # Only row 2 was scanned, so the bar skips the free row 3 and lands on a new row.
    assert placements["e"].bar_row == 4
    assert placements["e"].slot.label_row == 3.5


def test_relocation_picks_first_free_row_within_scan() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=4)
    occupancy.place_bar(2, Interval(start=480, end=520, kind="bar", owner="wall"))
    _block_gap(occupancy, 0)
    _block_gap(occupancy, 1)

    placements, _ = _placer().place([item], {"e": 1}, occupancy)

    assert placements["e"].bar_row == 3
    assert placements["e"].slot.label_row == 2.5


def test_exhausted_budget_falls_back_to_new_row(caplog: pytest.LogCaptureFixture) -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)
    _block_gap(occupancy, 0)
    _block_gap(occupancy, 1)
    strict = replace(LayoutConfig(), max_relocation_attempts=0)

    with caplog.at_level(logging.WARNING, logger="adapters.layout.label_placer"):
        placements, diagnostics = _placer(strict).place([item], {"e": 1}, occupancy)

    placement = placements["e"]
    assert placement.fallback
    assert placement.bar_row == 2
    assert placement.slot.label_row == 2.5
    assert [diagnostic.code for diagnostic in diagnostics] == ["emergency_fallback"]
    assert diagnostics[0].item_id == "e"
    assert "No free gap for label of e" in caplog.text
    assert occupancy.label_interval(2, "e") is not None


def test_standard_items_are_ignored() -> None:
    occupancy = _occupancy_with_bar(0, "p", 100, 150, rows=1)
    placements, diagnostics = _placer().place(
        [standard_item("p", 100, 150)], {"p": 0}, occupancy
    )
    assert placements == {}
    assert diagnostics == []
    assert occupancy.gap_count == 0


def test_position_reached_by_last_relocation_is_still_checked() -> None:
    item = short_event("e", 500, 505)
    occupancy = _occupancy_with_bar(1, "e", 500, 505, rows=2)
    _block_gap(occupancy, 0)
    _block_gap(occupancy, 1)
    single = replace(LayoutConfig(), max_relocation_attempts=1)

    placements, diagnostics = _placer(single).place([item], {"e": 1}, occupancy)

    placement = placements["e"]
    assert placement.relocations == 1
    assert not placement.fallback
    assert placement.bar_row == 2
    assert placement.slot.label_row == 2.5
    assert diagnostics == []
