# okr_committees/api/routes/meetings.py
from http import HTTPStatus
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from okr_committees.api.dependencies.meeting_store import get_meeting_store
from okr_committees.schemas.meeting import (
    DeletionScope,
    MeetingCreate,
    MeetingDeleteResult,
    MeetingRead,
    MeetingUpdate,
)
from okr_committees.services.errors import (
    MeetingServiceError,
    MeetingValidationError,
    OccurrenceNotFoundError,
)
from okr_committees.services.meeting_series import (
    create_meeting_series,
    delete_meeting,
    get_meeting,
    list_committee_meetings,
    list_series,
    update_meeting,
)
from okr_committees.services.meeting_store import SqlMeetingStore

router = APIRouter(tags=["Meetings"])


def _raise_http_error(exc: MeetingServiceError) -> NoReturn:
    if isinstance(exc, MeetingValidationError):
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=exc.message) from exc
    if isinstance(exc, OccurrenceNotFoundError):
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Meeting with id={exc.occurrence_id} not found.",
        ) from exc
    raise HTTPException(
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        detail=f"Storage failure during {exc.operation or 'request'}; no changes were kept.",
    ) from exc


@router.post(
    "/committees/{committee_id}/meetings",
    response_model=MeetingRead,
    status_code=HTTPStatus.CREATED,
    summary="Schedule a committee meeting (optionally recurring)",
    description=(
        "Create a meeting for the committee. When `recurrence_kind` is `weekly`, "
        "`biweekly` or `monthly`, every occurrence up to and including "
        "`recurrence_end_date` is generated as one series.\n\n"
        "The series is created all-or-nothing: if any write fails, the occurrences "
        "already written are removed before the error is returned.\n\n"
        "The response is the first occurrence; its `group_id` identifies the series."
    ),
    responses={
        201: {
            "description": "Meeting (series) created.",
            "content": {
                "application/json": {
                    "example": {
                        "id": 10,
                        "committee_id": 3,
                        "group_id": 10,
                        "title": "Comitê de Estratégia",
                        "scheduled_at": "2025-01-01T14:00:00",
                        "location": "Sala 3",
                        "recurrence_kind": "weekly",
                        "recurrence_end_date": "2025-01-22",
                    }
                }
            },
        },
        400: {"description": "Missing or invalid recurrence end date."},
        503: {"description": "Storage failure; nothing was persisted."},
    },
)
async def create_committee_meeting(
    payload: MeetingCreate,
    committee_id: int = Path(..., description="Committee owning the meeting.", ge=1, example=3),
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> MeetingRead:
    try:
        return await create_meeting_series(
            store,
            committee_id=committee_id,
            title=payload.title,
            scheduled_at=payload.scheduled_at,
            location=payload.location,
            recurrence_kind=payload.recurrence_kind,
            recurrence_end_date=payload.recurrence_end_date,
            created_by=payload.created_by,
        )
    except MeetingServiceError as exc:
        _raise_http_error(exc)


@router.get(
    "/committees/{committee_id}/meetings",
    response_model=list[MeetingRead],
    summary="List meetings of a committee",
    description="Return every occurrence scheduled for the committee, newest first.",
)
async def list_meetings_for_committee(
    committee_id: int = Path(..., ge=1, example=3),
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> list[MeetingRead]:
    try:
        return await list_committee_meetings(store, committee_id)
    except MeetingServiceError as exc:
        _raise_http_error(exc)


@router.get(
    "/meetings/{meeting_id}",
    response_model=MeetingRead,
    summary="Get a meeting occurrence by ID",
    responses={404: {"description": "No meeting exists with the given ID."}},
)
async def read_meeting(
    meeting_id: int = Path(..., ge=1, example=10),
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> MeetingRead:
    try:
        return await get_meeting(store, meeting_id)
    except MeetingServiceError as exc:
        _raise_http_error(exc)


@router.get(
    "/meetings/{meeting_id}/series",
    response_model=list[MeetingRead],
    summary="List every occurrence in a meeting's series",
    description=(
        "Return all occurrences sharing the meeting's `group_id`, oldest first. "
        "A non-recurring meeting returns only itself."
    ),
    responses={404: {"description": "No meeting exists with the given ID."}},
)
async def read_meeting_series(
    meeting_id: int = Path(..., ge=1, example=10),
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> list[MeetingRead]:
    try:
        return await list_series(store, meeting_id)
    except MeetingServiceError as exc:
        _raise_http_error(exc)


@router.patch(
    "/meetings/{meeting_id}",
    response_model=MeetingRead,
    summary="Edit a single meeting occurrence",
    description=(
        "Update `title`, `scheduled_at` and/or `location` of one occurrence. "
        "Other occurrences of the series are not modified and the recurrence "
        "settings cannot be changed."
    ),
    responses={404: {"description": "No meeting exists with the given ID."}},
)
async def edit_meeting(
    meeting_id: int = Path(..., ge=1, example=10),
    payload: MeetingUpdate | None = None,
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> MeetingRead:
    try:
        if payload is None:
            # Nothing to update; return current state
            return await get_meeting(store, meeting_id)
        return await update_meeting(store, meeting_id, payload)
    except MeetingServiceError as exc:
        _raise_http_error(exc)


@router.delete(
    "/meetings/{meeting_id}",
    response_model=MeetingDeleteResult,
    summary="Delete a meeting occurrence or its whole series",
    description=(
        "`scope=single` (default) removes only this occurrence. `scope=series` removes "
        "every occurrence sharing its `group_id`; for a non-recurring meeting it "
        "behaves like `single`."
    ),
    responses={
        404: {"description": "No meeting exists with the given ID."},
        503: {"description": "Storage failure; remaining rows were left untouched."},
    },
)
async def remove_meeting(
    meeting_id: int = Path(..., ge=1, example=10),
    scope: DeletionScope = Query(
        default=DeletionScope.SINGLE,
        description="'single' for this occurrence only, 'series' for the whole series.",
        example="series",
    ),
    store: SqlMeetingStore = Depends(get_meeting_store),
) -> MeetingDeleteResult:
    try:
        return await delete_meeting(store, meeting_id, scope)
    except MeetingServiceError as exc:
        _raise_http_error(exc)
