"""Turn a technology selection into the ordered list of subtopics to study."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from study_scheduler.scheduling.errors import ValidationError
from study_scheduler.scheduling.hours import ZERO, to_hours


@dataclass(frozen=True)
class WorkItem:
    technology_id: UUID
    subtopic_id: UUID
    hours_required: Decimal
    difficulty: str
    technology_rank: int
    order_index: int


def _as_uuid(value) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def dedupe_selection(selected_ids: Iterable) -> list[UUID]:
    """Selected technology ids as UUIDs, first occurrence wins."""
    seen: set[UUID] = set()
    ordered: list[UUID] = []
    for raw in selected_ids:
        try:
            tech_id = _as_uuid(raw)
        except (TypeError, ValueError, AttributeError) as exc:
            raise ValidationError(f"Invalid technology id: {raw!r}") from exc
        if tech_id not in seen:
            seen.add(tech_id)
            ordered.append(tech_id)
    return ordered


def resolve_work_items(selected_ids: Iterable, technologies: Sequence) -> list[WorkItem]:
    """Flatten the selected technologies into ordered work items.

    ``technologies`` are catalog rows exposing ``id``, ``complexity_rank``,
    ``is_active`` and ``subtopics``. Technologies are ordered by
    ``complexity_rank`` (selection order breaks ties); subtopics by
    ``order_index``, then name, then id. Inactive rows and technologies that
    were not selected are skipped.
    """
    selection = dedupe_selection(selected_ids)
    by_id = {_as_uuid(tech.id): tech for tech in technologies}

    chosen = [
        by_id[tech_id]
        for tech_id in selection
        if tech_id in by_id and by_id[tech_id].is_active
    ]
    # sorted() is stable, so equal ranks keep the user's selection order
    chosen = sorted(chosen, key=lambda tech: tech.complexity_rank or 0)

    items: list[WorkItem] = []
    for tech in chosen:
        subtopics = sorted(
            (sub for sub in tech.subtopics if sub.is_active),
            key=lambda sub: (sub.order_index or 0, sub.name or "", str(sub.id)),
        )
        for sub in subtopics:
            hours = to_hours(sub.hours_required)
            if hours <= ZERO:
                raise ValidationError(f"Subtopic {sub.id} has non-positive hours")
            items.append(
                WorkItem(
                    technology_id=_as_uuid(tech.id),
                    subtopic_id=_as_uuid(sub.id),
                    hours_required=hours,
                    difficulty=sub.difficulty_level,
                    technology_rank=tech.complexity_rank or 0,
                    order_index=sub.order_index or 0,
                )
            )
    return items
