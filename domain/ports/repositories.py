from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.models import LayoutResult, TimelineDataset


class TimelineDatasetRepository(Protocol):
    def load_by_path(self, path: Path) -> TimelineDataset: ...

    def save(self, dataset: TimelineDataset, path: Path) -> None: ...


class LayoutResultRepository(Protocol):
    def save(self, result: LayoutResult, path: Path) -> None: ...
