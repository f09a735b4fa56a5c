from __future__ import annotations

from collections.abc import Sequence
from typing import Dict, List

from adapters.layout.config import LayoutConfig
from adapters.layout.occupancy import Occupancy
from domain.models import Interval, TimelineItem
from domain.services.width_estimation import WidthEstimator


def packing_order(items: Sequence[TimelineItem]) -> List[TimelineItem]:
    priority_items = sorted(
        (item for item in items if item.priority), key=lambda item: item.start_value
    )
    remaining = sorted(
        (item for item in items if not item.priority), key=lambda item: item.start_value
    )
    return [*priority_items, *remaining]


class RowPacker:
    def __init__(self, config: LayoutConfig, estimator: WidthEstimator) -> None:
        self.config = config
        self.estimator = estimator

    def pack(self, ordered: Sequence[TimelineItem], occupancy: Occupancy) -> Dict[str, int]:
        bar_rows: Dict[str, int] = {}
        for item in ordered:
            start = item.start_value
            end = start + self.estimator.footprint(item)
            row = occupancy.first_fit_row(start, end, self.config.bar_margin)
            if row is None:
                row = occupancy.add_row()
            occupancy.place_bar(row, Interval(start=start, end=end, kind="bar", owner=item.item_id))
            bar_rows[item.item_id] = row
        return bar_rows
