from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from domain.models import (
    EVENT_CATEGORY,
    ItemKind,
    TextMetrics,
    TimelineDataset,
    TimelineEntity,
    TimelineItem,
)

DATE_SEPARATOR = " – "


@dataclass(frozen=True)
class ItemThresholds:
    short_event_threshold: float = 15.0
    exclusion_threshold: float = 3.0


def format_year(year: int | None) -> str:
    if year is None:
        return ""
    if year < 0:
        return f"{abs(year)} BC"
    return str(year)


def format_date_range(start_year: int, end_year: int, current_year: int | None = None) -> str:
    current = current_year if current_year is not None else date.today().year
    start_text = format_year(start_year)
    # Ongoing spans (living people, current events) show only their start.
    if end_year >= current:
        return f"{start_text}{DATE_SEPARATOR}"
    return f"{start_text}{DATE_SEPARATOR}{format_year(end_year)}"


def classify_kind(category: str, duration: float, short_event_threshold: float) -> ItemKind:
    if category == EVENT_CATEGORY and duration < short_event_threshold:
        return ItemKind.SHORT_EVENT
    return ItemKind.STANDARD


def is_excluded(entity: TimelineEntity, exclusion_threshold: float) -> bool:
    return entity.is_event and entity.duration < exclusion_threshold


def text_metrics_for(entity: TimelineEntity, current_year: int | None = None) -> TextMetrics:
    return TextMetrics(
        name_chars=len(entity.name),
        secondary_chars=len(entity.occupation),
        date_chars=len(format_date_range(entity.start_year, entity.end_year, current_year)),
    )


def to_timeline_item(
    entity: TimelineEntity,
    thresholds: ItemThresholds,
    priority: bool = False,
    current_year: int | None = None,
) -> TimelineItem:
    return TimelineItem(
        item_id=entity.entity_id,
        start_value=float(entity.start_year),
        end_value=float(entity.end_year),
        kind=classify_kind(entity.category, entity.duration, thresholds.short_event_threshold),
        text_metrics=text_metrics_for(entity, current_year),
        priority=priority,
    )


def build_timeline_items(
    dataset: TimelineDataset,
    thresholds: ItemThresholds | None = None,
    current_year: int | None = None,
) -> list[TimelineItem]:
    resolved = thresholds or ItemThresholds()
    priority_ids = dataset.resolved_priority_ids()
    return [
        to_timeline_item(
            entity,
            resolved,
            priority=entity.entity_id in priority_ids,
            current_year=current_year,
        )
        for entity in _kept_entities(dataset.entities, resolved)
    ]


def _kept_entities(
    entities: Iterable[TimelineEntity], thresholds: ItemThresholds
) -> Iterable[TimelineEntity]:
    for entity in entities:
        if is_excluded(entity, thresholds.exclusion_threshold):
            continue
        yield entity
