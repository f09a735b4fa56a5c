from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from domain.models import ConnectorVector, Interval
from domain.services.geometry import Vec, intervals_overlap, segments_intersect


@dataclass
class Occupancy:
    """Row, gap and connector bookkeeping for a single layout run.

    Rows and gaps are index-addressed and only ever appended. Gap ``k`` is the
    space between row ``k`` and row ``k + 1``, i.e. label row ``k + 0.5``.
    """

    rows: List[List[Interval]] = field(default_factory=list)
    gaps: List[List[Interval]] = field(default_factory=list)
    connectors: List[ConnectorVector] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def gap_count(self) -> int:
        return len(self.gaps)

    def add_row(self) -> int:
        self.rows.append([])
        return len(self.rows) - 1

    def row_fits(self, row: int, start: float, end: float, margin: float) -> bool:
        if row >= len(self.rows):
            return True
        return not any(
            intervals_overlap(start, end, interval.start, interval.end, margin)
            for interval in self.rows[row]
        )

    def first_fit_row(
        self,
        start: float,
        end: float,
        margin: float,
        begin: int = 0,
        limit: int | None = None,
    ) -> int | None:
        stop = len(self.rows) if limit is None else min(len(self.rows), begin + limit)
        for row in range(begin, stop):
            if self.row_fits(row, start, end, margin):
                return row
        return None

    def place_bar(self, row: int, interval: Interval) -> None:
        while len(self.rows) <= row:
            self.rows.append([])
        self.rows[row].append(interval)

    def remove_bar(self, row: int, owner: str) -> Interval | None:
        intervals = self.rows[row]
        for idx, interval in enumerate(intervals):
            if interval.owner == owner and interval.kind == "bar":
                return intervals.pop(idx)
        return None

    def gap_fits(
        self,
        gap: int,
        start: float,
        end: float,
        margin: float,
        ignore_owner: str | None = None,
    ) -> bool:
        if gap < 0:
            return False
        if gap >= len(self.gaps):
            return True
        return not any(
            intervals_overlap(start, end, interval.start, interval.end, margin)
            for interval in self.gaps[gap]
            if interval.owner != ignore_owner
        )

    def place_label(self, gap: int, interval: Interval) -> None:
        while len(self.gaps) <= gap:
            self.gaps.append([])
        self.gaps[gap].append(interval)

    def remove_label(self, gap: int, owner: str) -> Interval | None:
        if gap >= len(self.gaps):
            return None
        intervals = self.gaps[gap]
        for idx, interval in enumerate(intervals):
            if interval.owner == owner:
                return intervals.pop(idx)
        return None

    def label_interval(self, gap: int, owner: str) -> Interval | None:
        if gap >= len(self.gaps):
            return None
        return next((interval for interval in self.gaps[gap] if interval.owner == owner), None)

    def add_connector(self, connector: ConnectorVector) -> None:
        self.connectors.append(connector)

    def remove_connector(self, owner: str) -> ConnectorVector | None:
        for idx, connector in enumerate(self.connectors):
            if connector.item_id == owner:
                return self.connectors.pop(idx)
        return None

    def crosses_connector(self, start: Vec, end: Vec, ignore_owner: str | None = None) -> bool:
        return any(
            segments_intersect(start, end, (vec.x1, vec.y1), (vec.x2, vec.y2))
            for vec in self.connectors
            if vec.item_id != ignore_owner
        )
