# okr_committees/schemas/meeting.py

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _as_naive_utc(value: datetime | None) -> datetime | None:
    """
    Meetings are stored as naive wall-clock timestamps; aware inputs are
    converted to UTC first.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class RecurrenceKind(str, Enum):
    """
    Recurrence rule used to generate a meeting series.
    """

    NONE = "none"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class DeletionScope(str, Enum):
    """
    How much of a meeting series a delete request removes.
    """

    SINGLE = "single"
    SERIES = "series"


# --------------------------------------------------------------------------
# Create schema (POST /committees/{committee_id}/meetings)
# --------------------------------------------------------------------------

class MeetingCreate(BaseModel):
    """
    Schema for scheduling a meeting, optionally as a recurring series.
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Meeting title shown on the committee calendar.",
        example="Comitê de Estratégia - Reunião mensal",
    )
    scheduled_at: datetime = Field(
        ...,
        description="Date and time of the first occurrence.",
        example="2025-01-01T14:00:00",
    )
    location: str | None = Field(
        default=None,
        max_length=255,
        description="Room or video-call link.",
        example="Sala 3",
    )
    recurrence_kind: RecurrenceKind = Field(
        default=RecurrenceKind.NONE,
        description="Recurrence rule: none, weekly, biweekly or monthly.",
        example="weekly",
    )
    recurrence_end_date: date | None = Field(
        default=None,
        description=(
            "Last calendar day (inclusive) on which an occurrence may be generated. "
            "Required unless recurrence_kind is 'none'."
        ),
        example="2025-03-31",
    )
    created_by: str | None = Field(
        default=None,
        max_length=64,
        description="Identifier of the user scheduling the meeting.",
    )

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, value: datetime | None) -> datetime | None:
        return _as_naive_utc(value)


class MeetingDraft(BaseModel):
    """
    An occurrence that has been planned but not persisted yet.
    """

    committee_id: int
    group_id: int | None = None
    title: str
    scheduled_at: datetime
    location: str | None = None
    recurrence_kind: RecurrenceKind = RecurrenceKind.NONE
    recurrence_end_date: date | None = None
    created_by: str | None = None


# --------------------------------------------------------------------------
# Update schema (PATCH /meetings/{id})
# --------------------------------------------------------------------------

class MeetingUpdate(BaseModel):
    """
    Schema for editing a single occurrence.
    Recurrence fields are deliberately absent: edits never touch the series.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    scheduled_at: datetime | None = Field(default=None)
    location: str | None = Field(default=None, max_length=255)

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, value: datetime | None) -> datetime | None:
        return _as_naive_utc(value)


# --------------------------------------------------------------------------
# Read schemas
# --------------------------------------------------------------------------

class MeetingRead(BaseModel):
    """
    Public representation of a persisted meeting occurrence.
    """

    id: int = Field(..., example=10, description="Database identifier of the occurrence.")
    committee_id: int = Field(..., example=3)
    group_id: int | None = Field(
        None,
        example=10,
        description="Identifier shared by all occurrences of the same series.",
    )
    title: str
    scheduled_at: datetime
    location: str | None = None
    recurrence_kind: RecurrenceKind
    recurrence_end_date: date | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MeetingDeleteResult(BaseModel):
    """
    Summary payload returned by DELETE /meetings/{id}.
    """

    occurrence_id: int = Field(..., example=10)
    group_id: int | None = Field(None, example=10)
    scope: DeletionScope = Field(
        ...,
        description=(
            "Scope actually applied. A 'series' request on a non-recurring meeting "
            "is reported as 'single'."
        ),
        example="series",
    )
    deleted_count: int = Field(..., example=4)
