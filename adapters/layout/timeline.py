from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import List, Set

from adapters.layout.config import LayoutConfig
from adapters.layout.label_placer import LabelGeometry, LabelPlacer
from adapters.layout.occupancy import Occupancy
from adapters.layout.overlap_auditor import OverlapAuditor
from adapters.layout.row_packer import RowPacker, packing_order
from domain.models import LayoutResult, PlacementRecord, TimelineItem
from domain.ports.layout import LayoutEngine
from domain.services.width_estimation import WidthEstimator

logger = logging.getLogger(__name__)


class TimelineLayoutEngine(LayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self.estimator = WidthEstimator(self.config.widths)
        self.geometry = LabelGeometry(self.config, self.estimator)
        self.row_packer = RowPacker(self.config, self.estimator)
        self.label_placer = LabelPlacer(self.config, self.geometry)
        self.auditor = OverlapAuditor(self.config, self.geometry)

    def compute_layout(self, items: Sequence[TimelineItem]) -> LayoutResult:
        self._ensure_unique_ids(items)
        occupancy = Occupancy()
        ordered = packing_order(items)

        bar_rows = self.row_packer.pack(ordered, occupancy)
        labels, diagnostics = self.label_placer.place(ordered, bar_rows, occupancy)
        for item_id, label in labels.items():
            bar_rows[item_id] = label.bar_row
        diagnostics.extend(self.auditor.audit(ordered, bar_rows, labels, occupancy))

        placements: List[PlacementRecord] = []
        for item in ordered:
            label = labels.get(item.item_id)
            if label is None:
                placements.append(
                    PlacementRecord(item_id=item.item_id, bar_row=bar_rows[item.item_id])
                )
                continue
            placements.append(
                PlacementRecord(
                    item_id=item.item_id,
                    bar_row=label.bar_row,
                    label_row=label.slot.label_row,
                    label_offset=label.offset,
                )
            )

        total_rows = self._total_rows(occupancy)
        logger.debug(
            "Laid out %s items (%s floating labels) on %s rows with %s diagnostics",
            len(placements),
            len(labels),
            total_rows,
            len(diagnostics),
        )
        return LayoutResult(
            placements=placements,
            total_rows=total_rows,
            connectors=list(occupancy.connectors),
            diagnostics=diagnostics,
        )

    def _total_rows(self, occupancy: Occupancy) -> int:
        if not occupancy.row_count and not occupancy.gap_count:
            return 0
        effective = max(float(occupancy.row_count), occupancy.gap_count + 0.5)
        return math.ceil(effective)

    def _ensure_unique_ids(self, items: Sequence[TimelineItem]) -> None:
        seen: Set[str] = set()
        for item in items:
            if item.item_id in seen:
                msg = f"Duplicate item id found: {item.item_id}"
                raise ValueError(msg)
            seen.add(item.item_id)
