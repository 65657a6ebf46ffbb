# okr_committees/services/recurrence.py
from __future__ import annotations

from datetime import date as date_type, datetime, timedelta

from dateutil.relativedelta import relativedelta

from okr_committees.schemas.meeting import RecurrenceKind
from okr_committees.services.errors import MeetingValidationError

_WEEKLY_STEPS = {
    RecurrenceKind.WEEKLY: timedelta(weeks=1),
    RecurrenceKind.BIWEEKLY: timedelta(weeks=2),
}


def _as_calendar_day(value: date_type) -> date_type:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def validate_recurrence(
    start: datetime,
    kind: RecurrenceKind,
    end: date_type | None,
) -> None:
    """
    Reject recurrence requests that cannot be expanded.

    Raises
    ------
    MeetingValidationError
        - a recurring kind was requested without an end date
        - the end date falls before the start's calendar day
    """
    if kind == RecurrenceKind.NONE:
        return

    if end is None:
        raise MeetingValidationError(
            f"recurrence_end_date is required for '{kind.value}' recurrence",
            operation="create_series",
        )

    if _as_calendar_day(end) < _as_calendar_day(start):
        raise MeetingValidationError(
            "recurrence_end_date must be on or after the first occurrence date",
            operation="create_series",
        )


def expand_recurrence(
    start: datetime,
    kind: RecurrenceKind,
    end: date_type | None,
) -> list[datetime]:
    """
    Compute the occurrences that follow `start` under the given rule.

    The first occurrence (`start` itself) is NOT included. Generation stops
    at the first candidate whose calendar day falls after `end`'s calendar
    day; a candidate on the same day as `end` is kept whatever its time.

    Monthly occurrences are computed from the start's day-of-month, clamped
    to the end of shorter months, so a day-31 series keeps returning to
    day 31 whenever the month has one.

    Parameters
    ----------
    start:
        Timestamp of the anchor occurrence.
    kind:
        Recurrence rule. `none` always yields an empty list.
    end:
        Inclusive calendar-day bound. Must be provided for recurring kinds.

    Returns
    -------
    list[datetime]
        Strictly increasing timestamps, same time of day as `start`.
    """
    kind = RecurrenceKind(kind)
    if kind == RecurrenceKind.NONE:
        return []

    validate_recurrence(start, kind, end)
    last_day = _as_calendar_day(end)

    occurrences: list[datetime] = []
    step_count = 1
    while True:
        if kind == RecurrenceKind.MONTHLY:
            candidate = start + relativedelta(months=step_count)
        else:
            candidate = start + _WEEKLY_STEPS[kind] * step_count

        if candidate.date() > last_day:
            break

        occurrences.append(candidate)
        step_count += 1

    return occurrences
