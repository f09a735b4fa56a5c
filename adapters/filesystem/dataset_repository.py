from __future__ import annotations

from pathlib import Path
from typing import Any

from adapters.filesystem.json_utils import load_json_document, write_json_atomic
from domain.models import LayoutResult, TimelineDataset
from domain.ports.repositories import LayoutResultRepository, TimelineDatasetRepository


class FileSystemTimelineDatasetRepository(TimelineDatasetRepository):
    def load_by_path(self, path: Path) -> TimelineDataset:
        return self._to_dataset(load_json_document(path))

    def save(self, dataset: TimelineDataset, path: Path) -> None:
        write_json_atomic(path, dataset)

    def _to_dataset(self, payload: Any) -> TimelineDataset:
        # A bare list is shorthand for a dataset without priority hints.
        if isinstance(payload, list):
            return TimelineDataset.model_validate({"entities": payload})
        return TimelineDataset.model_validate(payload)


class FileSystemLayoutResultRepository(LayoutResultRepository):
    def save(self, result: LayoutResult, path: Path) -> None:
        write_json_atomic(path, result)
