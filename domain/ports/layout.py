from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import LayoutResult, TimelineItem


class LayoutEngine(Protocol):
    def compute_layout(self, items: Sequence[TimelineItem]) -> LayoutResult:
        ...
