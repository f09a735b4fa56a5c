from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

EVENT_CATEGORY = "EVENTS"
CATEGORIES = (
    "ARTISTS",
    "BUSINESS",
    "ENTERTAINERS",
    EVENT_CATEGORY,
    "EXPLORERS",
    "LEADERS & BADDIES",
    "SCIENTISTS",
    "THINKERS",
    "WRITERS",
)


class ItemKind(str, Enum):
    STANDARD = "standard"
    SHORT_EVENT = "short_event"


class TextMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    name_chars: int = Field(0, ge=0)
    secondary_chars: int = Field(0, ge=0)
    date_chars: int = Field(0, ge=0)


class TimelineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., min_length=1)
    start_value: float
    end_value: float
    kind: ItemKind = ItemKind.STANDARD
    text_metrics: TextMetrics = TextMetrics()
    priority: bool = False

    @model_validator(mode="after")
    def ensure_ordered_span(self) -> "TimelineItem":
        if self.end_value < self.start_value:
            msg = (
                f"Item {self.item_id} ends before it starts: "
                f"{self.end_value} < {self.start_value}"
            )
            raise ValueError(msg)
        return self

    @property
    def duration(self) -> float:
        return self.end_value - self.start_value

    @property
    def is_short_event(self) -> bool:
        return self.kind == ItemKind.SHORT_EVENT


class TimelineEntity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entity_id: str = Field(..., min_length=1, validation_alias=AliasChoices("entity_id", "id"))
    name: str = ""
    occupation: str = ""
    category: str
    start_year: int = Field(..., validation_alias=AliasChoices("start_year", "birthYear"))
    end_year: int = Field(..., validation_alias=AliasChoices("end_year", "deathYear"))

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value: object) -> str:
        normalized = str(value or "").strip().upper()
        if normalized not in CATEGORIES:
            msg = f"Unknown category: {value}"
            raise ValueError(msg)
        return normalized

    @model_validator(mode="after")
    def ensure_ordered_years(self) -> "TimelineEntity":
        if self.end_year < self.start_year:
            msg = (
                f"Entity {self.entity_id} ends before it starts: "
                f"{self.end_year} < {self.start_year}"
            )
            raise ValueError(msg)
        return self

    @property
    def duration(self) -> int:
        return self.end_year - self.start_year

    @property
    def is_event(self) -> bool:
        return self.category == EVENT_CATEGORY


class TimelineDataset(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entities: List[TimelineEntity] = Field(
        default_factory=list, validation_alias=AliasChoices("entities", "figures")
    )
    priority_ids: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("priority_ids", "priorityIds", "newlyDiscoveredIds"),
    )
    discovery_source_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("discovery_source_id", "discoverySourceId"),
    )

    @field_validator("entities", mode="after")
    @classmethod
    def ensure_unique_entity_ids(cls, entities: List[TimelineEntity]) -> List[TimelineEntity]:
        seen: Set[str] = set()
        for entity in entities:
            if entity.entity_id in seen:
                msg = f"Duplicate entity id found: {entity.entity_id}"
                raise ValueError(msg)
            seen.add(entity.entity_id)
        return entities

    def resolved_priority_ids(self) -> Set[str]:
        ids = set(self.priority_ids)
        if self.discovery_source_id:
            ids.add(self.discovery_source_id)
        return ids


@dataclass
class Interval:
    start: float
    end: float
    kind: Literal["bar", "label"]
    owner: str


@dataclass(frozen=True)
class ConnectorVector:
    item_id: str
    x1: float
    y1: float
    x2: float
    y2: float

    def to_dict(self) -> dict:
        return {"itemId": self.item_id, "x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}


@dataclass(frozen=True)
class PlacementRecord:
    item_id: str
    bar_row: int
    label_row: float | None = None
    label_offset: float | None = None

    @property
    def has_floating_label(self) -> bool:
        return self.label_row is not None

    def to_dict(self) -> dict:
        payload: dict = {"itemId": self.item_id, "barRow": self.bar_row}
        if self.label_row is not None:
            payload["labelRow"] = self.label_row
            payload["labelOffset"] = self.label_offset
        return payload


DiagnosticCode = Literal[
    "emergency_fallback",
    "label_overlap_resolved",
    "label_overlap_unresolved",
    "bar_overlap",
]


@dataclass(frozen=True)
class LayoutDiagnostic:
    code: DiagnosticCode
    item_id: str
    message: str
    related_item_id: str | None = None

    def to_dict(self) -> dict:
        payload = {"code": self.code, "itemId": self.item_id, "message": self.message}
        if self.related_item_id is not None:
            payload["relatedItemId"] = self.related_item_id
        return payload


@dataclass(frozen=True)
class LayoutResult:
    placements: List[PlacementRecord]
    total_rows: int
    connectors: List[ConnectorVector] = field(default_factory=list)
    diagnostics: List[LayoutDiagnostic] = field(default_factory=list)

    def placement_for(self, item_id: str) -> PlacementRecord | None:
        return self._index().get(item_id)

    def _index(self) -> Dict[str, PlacementRecord]:
        return {record.item_id: record for record in self.placements}

    def to_dict(self) -> dict:
        return {
            "placements": [record.to_dict() for record in self.placements],
            "totalRows": self.total_rows,
            "connectors": [connector.to_dict() for connector in self.connectors],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }
