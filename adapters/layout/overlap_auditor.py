from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from itertools import combinations
from typing import Dict, List, Set

from adapters.layout.config import LayoutConfig
from adapters.layout.label_placer import LabelGeometry, LabelPlacement
from adapters.layout.occupancy import Occupancy
from domain.models import Interval, LayoutDiagnostic, TimelineItem
from domain.services.geometry import overlap_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelOverlap:
    first: str
    second: str


@dataclass(frozen=True)
class BarOverlap:
    row: int
    first: str
    second: str


class OverlapAuditor:
    def __init__(self, config: LayoutConfig, geometry: LabelGeometry) -> None:
        self.config = config
        self.geometry = geometry

    def audit(
        self,
        ordered: Sequence[TimelineItem],
        bar_rows: Mapping[str, int],
        labels: Dict[str, LabelPlacement],
        occupancy: Occupancy,
    ) -> List[LayoutDiagnostic]:
        items = {item.item_id: item for item in ordered}
        diagnostics = self._resolve_label_overlaps(items, labels, occupancy)
        for overlap in self.detect_bar_overlaps(ordered, bar_rows, occupancy):
            message = (
                f"Bars of {overlap.first} and {overlap.second} overlap on row {overlap.row}"
            )
            logger.warning(message)
            diagnostics.append(
                LayoutDiagnostic(
                    code="bar_overlap",
                    item_id=overlap.first,
                    related_item_id=overlap.second,
                    message=message,
                )
            )
        return diagnostics

    def detect_label_overlaps(
        self, labels: Mapping[str, LabelPlacement], occupancy: Occupancy
    ) -> List[LabelOverlap]:
        overlaps: List[LabelOverlap] = []
        for first, second in combinations(labels.values(), 2):
            if self._labels_overlap(first, second, occupancy):
                overlaps.append(LabelOverlap(first=first.item_id, second=second.item_id))
        return overlaps

    def detect_bar_overlaps(
        self,
        ordered: Sequence[TimelineItem],
        bar_rows: Mapping[str, int],
        occupancy: Occupancy,
    ) -> List[BarOverlap]:
        by_row: Dict[int, List[Interval]] = defaultdict(list)
        for item in ordered:
            if item.is_short_event:
                continue
            row = bar_rows[item.item_id]
            bar = next(
                (
                    interval
                    for interval in occupancy.rows[row]
                    if interval.owner == item.item_id and interval.kind == "bar"
                ),
                None,
            )
            if bar is not None:
                by_row[row].append(bar)

        overlaps: List[BarOverlap] = []
        for row in sorted(by_row):
            for first, second in combinations(by_row[row], 2):
                amount = overlap_amount(first.start, first.end, second.start, second.end)
                if amount > self.config.audit_overlap_threshold:
                    overlaps.append(BarOverlap(row=row, first=first.owner, second=second.owner))
        return overlaps

    def _labels_overlap(
        self, first: LabelPlacement, second: LabelPlacement, occupancy: Occupancy
    ) -> bool:
        if abs(first.slot.gap - second.slot.gap) > 1:
            return False
        # Labels in adjacent gaps clash only when label_height_px exceeds their anchor
        # spacing. With the default anchors that spacing is at least 150px, so only
        # same-gap pairs can be flagged unless the anchors or the height are retuned.
        vertical_px = abs(
            self.geometry.label_anchor_y(first.slot) - self.geometry.label_anchor_y(second.slot)
        ) * self.config.row_height
        if vertical_px >= self.config.label_height_px:
            return False
        a = occupancy.label_interval(first.slot.gap, first.item_id)
        b = occupancy.label_interval(second.slot.gap, second.item_id)
        if a is None or b is None:
            return False
        return overlap_amount(a.start, a.end, b.start, b.end) > self.config.audit_overlap_threshold

    def _resolve_label_overlaps(
        self,
        items: Mapping[str, TimelineItem],
        labels: Dict[str, LabelPlacement],
        occupancy: Occupancy,
    ) -> List[LayoutDiagnostic]:
        diagnostics: List[LayoutDiagnostic] = []
        moved: Set[str] = set()
        for overlap in self.detect_label_overlaps(labels, occupancy):
            if not self._labels_overlap(labels[overlap.first], labels[overlap.second], occupancy):
                continue
            # Move the later-packed label first; earlier labels keep priority.
            winner = None
            for candidate in (overlap.second, overlap.first):
                if candidate in moved:
                    continue
                if self._move_to_opposite_gap(items[candidate], labels, occupancy):
                    moved.add(candidate)
                    winner = candidate
                    break
            if winner is not None:
                other = overlap.first if winner == overlap.second else overlap.second
                message = (
                    f"Moved label of {winner} to row {labels[winner].slot.label_row} "
                    f"to clear {other}"
                )
                logger.debug(message)
                diagnostics.append(
                    LayoutDiagnostic(
                        code="label_overlap_resolved",
                        item_id=winner,
                        related_item_id=other,
                        message=message,
                    )
                )
                continue
            message = f"Labels of {overlap.first} and {overlap.second} overlap"
            logger.warning(message)
            diagnostics.append(
                LayoutDiagnostic(
                    code="label_overlap_unresolved",
                    item_id=overlap.second,
                    related_item_id=overlap.first,
                    message=message,
                )
            )
        return diagnostics

    def _move_to_opposite_gap(
        self,
        item: TimelineItem,
        labels: Dict[str, LabelPlacement],
        occupancy: Occupancy,
    ) -> bool:
        placement = labels[item.item_id]
        target = self.geometry.opposite(placement.bar_row, placement.slot)
        if target is None:
            return False
        if not self.geometry.slot_is_free(
            occupancy,
            item,
            placement.bar_row,
            target,
            placement.offset,
            placement.width,
            ignore_owner=item.item_id,
        ):
            return False
        occupancy.remove_label(placement.slot.gap, item.item_id)
        occupancy.remove_connector(item.item_id)
        self.geometry.register(
            occupancy, item, placement.bar_row, target, placement.offset, placement.width
        )
        labels[item.item_id] = replace(placement, slot=target)
        return True
