"""Greedy allocation of work items onto study days.

Items are consumed strictly in order. Each item takes as much of the current
day as it needs; whatever is left over on that day goes to the next item, and
an item larger than the day spills onto the following study days.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Sequence

from study_scheduler.scheduling.calendar import StudyDaysInput, iter_available_days
from study_scheduler.scheduling.errors import AllocationError, ValidationError
from study_scheduler.scheduling.hours import ZERO, to_hours
from study_scheduler.scheduling.resolver import WorkItem

logger = logging.getLogger(__name__)

DEFAULT_MAX_HORIZON_DAYS = 3650


@dataclass(frozen=True)
class Allocation:
    scheduled_date: date
    item: WorkItem
    hours: Decimal


def allocate(
    work_items: Sequence[WorkItem],
    start_date: date,
    study_days: StudyDaysInput,
    max_horizon_days: int = DEFAULT_MAX_HORIZON_DAYS,
) -> list[Allocation]:
    # validates availability even when there is nothing to place
    days = iter_available_days(start_date, study_days)
    if not work_items:
        return []

    for item in work_items:
        if to_hours(item.hours_required) <= ZERO:
            raise ValidationError(f"Subtopic {item.subtopic_id} has non-positive hours")

    horizon = start_date + timedelta(days=max_horizon_days)
    allocations: list[Allocation] = []

    current_day, capacity = next(days)
    for item in work_items:
        remaining = to_hours(item.hours_required)
        while remaining > ZERO:
            if capacity <= ZERO:
                current_day, capacity = next(days)
            if current_day > horizon:
                raise AllocationError(
                    f"Schedule would run past {horizon.isoformat()}; "
                    "add study hours or select fewer technologies"
                )
            portion = min(remaining, capacity)
            allocations.append(Allocation(current_day, item, portion))
            remaining -= portion
            capacity -= portion

    logger.debug(
        "Allocated %d work items into %d sessions ending %s",
        len(work_items),
        len(allocations),
        allocations[-1].scheduled_date.isoformat(),
    )
    return allocations
