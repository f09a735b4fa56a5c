from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Dict, List, Tuple

from adapters.layout.config import LayoutConfig
from adapters.layout.occupancy import Occupancy
from domain.models import ConnectorVector, Interval, LayoutDiagnostic, TimelineItem
from domain.services.width_estimation import EstimateMode, WidthEstimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelSlot:
    gap: int
    above: bool

    @property
    def label_row(self) -> float:
        return self.gap + 0.5


@dataclass(frozen=True)
class LabelPlacement:
    item_id: str
    bar_row: int
    slot: LabelSlot
    offset: float
    width: float
    relocations: int = 0
    fallback: bool = False


class LabelGeometry:
    """Label footprint, connector anchors and the two collision checks a gap must pass."""

    def __init__(self, config: LayoutConfig, estimator: WidthEstimator) -> None:
        self.config = config
        self.estimator = estimator

    def offset(self, item: TimelineItem) -> float:
        return item.duration + self.config.label_offset_padding

    def width(self, item: TimelineItem) -> float:
        return self.estimator.estimate(item, EstimateMode.FLOATING)

    def slot_above(self, bar_row: int) -> LabelSlot | None:
        if bar_row - 0.5 < 0:
            return None
        return LabelSlot(gap=bar_row - 1, above=True)

    def slot_below(self, bar_row: int) -> LabelSlot:
        return LabelSlot(gap=bar_row, above=False)

    def opposite(self, bar_row: int, slot: LabelSlot) -> LabelSlot | None:
        if slot.above:
            return self.slot_below(bar_row)
        return self.slot_above(bar_row)

    def label_anchor_y(self, slot: LabelSlot) -> float:
        anchor = self.config.label_anchor_above if slot.above else self.config.label_anchor_below
        return slot.gap + anchor

    def connector(
        self, item: TimelineItem, bar_row: int, slot: LabelSlot, offset: float
    ) -> ConnectorVector:
        return ConnectorVector(
            item_id=item.item_id,
            x1=item.start_value,
            y1=bar_row + self.config.bar_anchor,
            x2=item.start_value + offset,
            y2=self.label_anchor_y(slot),
        )

    def slot_is_free(
        self,
        occupancy: Occupancy,
        item: TimelineItem,
        bar_row: int,
        slot: LabelSlot,
        offset: float,
        width: float,
        ignore_owner: str | None = None,
    ) -> bool:
        start = item.start_value + offset
        if not occupancy.gap_fits(
            slot.gap, start, start + width, self.config.label_margin, ignore_owner
        ):
            return False
        vec = self.connector(item, bar_row, slot, offset)
        return not occupancy.crosses_connector((vec.x1, vec.y1), (vec.x2, vec.y2), ignore_owner)

    def register(
        self,
        occupancy: Occupancy,
        item: TimelineItem,
        bar_row: int,
        slot: LabelSlot,
        offset: float,
        width: float,
    ) -> None:
        start = item.start_value + offset
        occupancy.place_label(
            slot.gap, Interval(start=start, end=start + width, kind="label", owner=item.item_id)
        )
        occupancy.add_connector(self.connector(item, bar_row, slot, offset))


class LabelPlacer:
    def __init__(self, config: LayoutConfig, geometry: LabelGeometry) -> None:
        self.config = config
        self.geometry = geometry

    def place(
        self,
        ordered: Sequence[TimelineItem],
        bar_rows: Mapping[str, int],
        occupancy: Occupancy,
    ) -> Tuple[Dict[str, LabelPlacement], List[LayoutDiagnostic]]:
        placements: Dict[str, LabelPlacement] = {}
        diagnostics: List[LayoutDiagnostic] = []
        for item in ordered:
            if not item.is_short_event:
                continue
            placement = self._place_item(item, bar_rows[item.item_id], occupancy)
            placements[item.item_id] = placement
            if placement.fallback:
                message = (
                    f"No free gap for label of {item.item_id} after "
                    f"{placement.relocations} relocations; placed on new row {placement.bar_row}"
                )
                logger.warning(message)
                diagnostics.append(
                    LayoutDiagnostic(
                        code="emergency_fallback", item_id=item.item_id, message=message
                    )
                )
        return placements, diagnostics

    def _place_item(self, item: TimelineItem, bar_row: int, occupancy: Occupancy) -> LabelPlacement:
        offset = self.geometry.offset(item)
        width = self.geometry.width(item)
        current_row = bar_row
        relocations = 0
        while True:
            slot = self._free_slot(item, current_row, offset, width, occupancy)
            if slot is not None:
                self.geometry.register(occupancy, item, current_row, slot, offset, width)
                return LabelPlacement(
                    item_id=item.item_id,
                    bar_row=current_row,
                    slot=slot,
                    offset=offset,
                    width=width,
                    relocations=relocations,
                )
            # The position reached by the final relocation still gets its gap check.
            if relocations >= self.config.max_relocation_attempts:
                break
            current_row = self._relocate_bar(item, current_row, occupancy)
            relocations += 1
            logger.debug("Relocated bar of %s to row %s", item.item_id, current_row)

        return self._emergency_placement(item, current_row, offset, width, relocations, occupancy)

    def _free_slot(
        self,
        item: TimelineItem,
        bar_row: int,
        offset: float,
        width: float,
        occupancy: Occupancy,
    ) -> LabelSlot | None:
        # Above before below, always: identical input yields identical layout.
        for slot in (self.geometry.slot_above(bar_row), self.geometry.slot_below(bar_row)):
            if slot is None:
                continue
            if self.geometry.slot_is_free(occupancy, item, bar_row, slot, offset, width):
                return slot
        return None

    def _relocate_bar(self, item: TimelineItem, bar_row: int, occupancy: Occupancy) -> int:
        bar = occupancy.remove_bar(bar_row, item.item_id)
        start = item.start_value
        end = bar.end if bar is not None else start + item.duration
        row = occupancy.first_fit_row(
            start,
            end,
            self.config.bar_margin,
            begin=bar_row + 1,
            limit=self.config.relocation_scan_limit,
        )
        if row is None:
            row = occupancy.add_row()
        occupancy.place_bar(row, Interval(start=start, end=end, kind="bar", owner=item.item_id))
        return row

    def _emergency_placement(
        self,
        item: TimelineItem,
        bar_row: int,
        offset: float,
        width: float,
        relocations: int,
        occupancy: Occupancy,
    ) -> LabelPlacement:
        bar = occupancy.remove_bar(bar_row, item.item_id)
        end = bar.end if bar is not None else item.end_value
        row = occupancy.add_row()
        occupancy.place_bar(
            row, Interval(start=item.start_value, end=end, kind="bar", owner=item.item_id)
        )
        slot = self.geometry.slot_below(row)
        self.geometry.register(occupancy, item, row, slot, offset, width)
        return LabelPlacement(
            item_id=item.item_id,
            bar_row=row,
            slot=slot,
            offset=offset,
            width=width,
            relocations=relocations,
            fallback=True,
        )
