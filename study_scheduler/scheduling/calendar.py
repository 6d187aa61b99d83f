"""Weekly availability: turns a day-of-week budget into a stream of study days."""
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Union

from study_scheduler.scheduling.errors import ValidationError
from study_scheduler.scheduling.hours import ZERO, to_hours

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

StudyDaysInput = Union[Mapping[Union[str, int], object], Iterable[Mapping[str, object]]]


def _weekday_index(day: Union[str, int]) -> int:
    if isinstance(day, int) and not isinstance(day, bool):
        if 0 <= day <= 6:
            return day
    elif isinstance(day, str) and day.strip().lower() in WEEKDAYS:
        return WEEKDAYS.index(day.strip().lower())
    raise ValidationError(f"Unknown study day: {day!r}")


def normalize_study_days(study_days: StudyDaysInput) -> dict[int, Decimal]:
    """Map weekday index (Monday=0) to available hours.

    Accepts either a ``{"monday": 2, ...}`` mapping or the stored
    ``[{"day": "monday", "hours": 2}, ...]`` list. Zero-hour days are
    dropped; negative hours, repeated days and an empty result are errors.
    """
    if study_days is None:
        raise ValidationError("At least one study day with hours > 0 is required")

    if isinstance(study_days, Mapping):
        pairs = list(study_days.items())
    else:
        try:
            pairs = [(entry["day"], entry["hours"]) for entry in study_days]
        except (KeyError, TypeError) as exc:
            raise ValidationError("Study days must be {day, hours} entries") from exc

    availability: dict[int, Decimal] = {}
    for day, raw_hours in pairs:
        weekday = _weekday_index(day)
        if weekday in availability:
            raise ValidationError(f"Study day listed twice: {WEEKDAYS[weekday]}")
        try:
            hours = to_hours(raw_hours)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if hours < ZERO:
            raise ValidationError(f"Hours for {WEEKDAYS[weekday]} must not be negative")
        if hours > Decimal("24"):
            raise ValidationError(f"Hours for {WEEKDAYS[weekday]} exceed a day")
        if hours > ZERO:
            availability[weekday] = hours

    if not availability:
        raise ValidationError("At least one study day with hours > 0 is required")
    return availability


def iter_available_days(
    start_date: date, study_days: StudyDaysInput
) -> Iterator[tuple[date, Decimal]]:
    """Yield ``(date, hours)`` for every study day on or after ``start_date``.

    The stream is infinite and depends only on its arguments, so calling it
    again with the same inputs replays the same sequence.
    """
    availability = normalize_study_days(study_days)
    return _walk(start_date, availability)


def _walk(start_date: date, availability: dict[int, Decimal]) -> Iterator[tuple[date, Decimal]]:
    current = start_date
    one_day = timedelta(days=1)
    while True:
        hours = availability.get(current.weekday())
        if hours is not None:
            yield current, hours
        current += one_day
