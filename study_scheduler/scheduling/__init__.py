from study_scheduler.scheduling.allocator import Allocation, allocate
from study_scheduler.scheduling.calendar import WEEKDAYS, iter_available_days, normalize_study_days
from study_scheduler.scheduling.errors import (
    AllocationError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from study_scheduler.scheduling.hours import to_hours
from study_scheduler.scheduling.resolver import WorkItem, resolve_work_items

__all__ = [
    "Allocation",
    "allocate",
    "WEEKDAYS",
    "iter_available_days",
    "normalize_study_days",
    "AllocationError",
    "PersistenceError",
    "SchedulingError",
    "ValidationError",
    "to_hours",
    "WorkItem",
    "resolve_work_items",
]
