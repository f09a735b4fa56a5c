from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from domain.models import TimelineItem


class EstimateMode(str, Enum):
    INLINE = "inline"
    FLOATING = "floating"


@dataclass(frozen=True)
class WidthMetrics:
    pixels_per_unit: float = 10.0
    # Inline labels: name is uppercase black, occupation bold, dates capitalized.
    uppercase_bold_px: float = 18.0
    bold_px: float = 14.0
    capitalized_px: float = 14.0
    date_padding_px: float = 60.0
    min_bar_width_px: float = 40.0
    inline_margin_units: float = 5.0
    # Floating labels use a smaller font on a single line.
    floating_name_px: float = 8.0
    floating_secondary_px: float = 6.0
    floating_date_px: float = 6.0
    min_floating_label_px: float = 120.0
    floating_buffer_units: float = 3.0


class WidthEstimator:
    def __init__(self, metrics: WidthMetrics | None = None) -> None:
        self.metrics = metrics or WidthMetrics()

    def estimate(self, item: TimelineItem, mode: EstimateMode) -> float:
        if mode == EstimateMode.FLOATING:
            return self._floating_width(item)
        return self._inline_width(item)

    def footprint(self, item: TimelineItem) -> float:
        # A short event's bar is too narrow to hold text, so it only claims its span.
        if item.is_short_event:
            return item.duration
        return self._inline_width(item)

    def _inline_width(self, item: TimelineItem) -> float:
        m = self.metrics
        text = item.text_metrics
        name_px = text.name_chars * m.uppercase_bold_px
        secondary_px = text.secondary_chars * m.bold_px
        date_px = text.date_chars * m.capitalized_px + m.date_padding_px
        bar_px = max(item.duration * m.pixels_per_unit, m.min_bar_width_px)
        content_px = max(name_px, secondary_px, date_px, bar_px)
        return content_px / m.pixels_per_unit + m.inline_margin_units

    def _floating_width(self, item: TimelineItem) -> float:
        m = self.metrics
        text = item.text_metrics
        line_px = (
            text.name_chars * m.floating_name_px
            + text.secondary_chars * m.floating_secondary_px
            + text.date_chars * m.floating_date_px
            + m.date_padding_px
        )
        return max(line_px, m.min_floating_label_px) / m.pixels_per_unit + m.floating_buffer_units
