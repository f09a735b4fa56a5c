from __future__ import annotations

from dataclasses import dataclass, field

from domain.services.width_estimation import WidthMetrics


@dataclass(frozen=True)
class LayoutConfig:
    widths: WidthMetrics = field(default_factory=WidthMetrics)
    bar_margin: float = 6.0
    label_margin: float = 10.0
    label_offset_padding: float = 2.0
    max_relocation_attempts: int = 10
    relocation_scan_limit: int = 20
    audit_overlap_threshold: float = 2.0
    # Render offsets (px) used to place connector anchors inside a row.
    row_height: float = 180.0
    bar_anchor_px: float = 80.0
    label_anchor_above_px: float = 145.0
    label_anchor_below_px: float = 175.0
    label_height_px: float = 40.0

    @property
    def bar_anchor(self) -> float:
        return self.bar_anchor_px / self.row_height

    @property
    def label_anchor_above(self) -> float:
        return self.label_anchor_above_px / self.row_height

    @property
    def label_anchor_below(self) -> float:
        return self.label_anchor_below_px / self.row_height
