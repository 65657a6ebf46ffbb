# okr_committees/services/meeting_series.py
from __future__ import annotations

import logging
from datetime import date as date_type, datetime

from okr_committees.schemas.meeting import (
    DeletionScope,
    MeetingDeleteResult,
    MeetingDraft,
    MeetingRead,
    MeetingUpdate,
    RecurrenceKind,
)
from okr_committees.services.errors import (
    MeetingServiceError,
    OccurrenceNotFoundError,
    StorageError,
)
from okr_committees.services.meeting_store import MeetingStore
from okr_committees.services.recurrence import expand_recurrence, validate_recurrence

logger = logging.getLogger(__name__)


class SeriesRepository:
    """
    Persists a meeting together with every occurrence of its recurrence rule.

    Steps
    -----
    1) Validate the rule and expand it into the follow-up timestamps
       (pure, no I/O).
    2) Insert the anchor occurrence with no group id.
    3) Relabel the anchor so that `group_id == id`.
    4) Insert every follow-up occurrence in a single batch tagged with the
       anchor's group id.

    If step 3 or 4 fails, `_discard_series` removes whatever was written and
    the original `StorageError` is re-raised: callers observe either the whole
    series or nothing.
    """

    def __init__(self, store: MeetingStore) -> None:
        self.store = store

    async def create_series(
        self,
        anchor: MeetingDraft,
        kind: RecurrenceKind,
        end: date_type | None,
    ) -> MeetingRead:
        """
        Create the anchor occurrence and the rest of its series.

        Returns
        -------
        MeetingRead
            The anchor occurrence, carrying its final `group_id`.

        Raises
        ------
        MeetingValidationError
            Before anything is written, if the rule cannot be expanded.
        StorageError
            If any write fails (after the partial series has been discarded).
        """
        kind = RecurrenceKind(kind)
        validate_recurrence(anchor.scheduled_at, kind, end)
        follow_ups = expand_recurrence(anchor.scheduled_at, kind, end)

        end_date = end if kind != RecurrenceKind.NONE else None
        if isinstance(end_date, datetime):
            end_date = end_date.date()

        anchor_draft = anchor.model_copy(
            update={
                "group_id": None,
                "recurrence_kind": kind,
                "recurrence_end_date": end_date,
            }
        )

        created = await self.store.insert_occurrence(anchor_draft)
        group_id = created.id

        try:
            created = await self.store.update_occurrence_group_id(created.id, group_id)

            drafts = [
                anchor_draft.model_copy(update={"group_id": group_id, "scheduled_at": scheduled_at})
                for scheduled_at in follow_ups
            ]
            if drafts:
                await self.store.insert_occurrences_batch(drafts)
        except MeetingServiceError as exc:
            logger.warning(
                "Creating meeting series %s failed at %s; discarding partial series",
                group_id,
                exc.operation,
            )
            await self._discard_series(group_id)
            if isinstance(exc, StorageError):
                raise
            raise StorageError(
                exc.message,
                operation=exc.operation,
                occurrence_id=group_id,
                group_id=group_id,
            ) from exc

        logger.info(
            "Created meeting series %s (%s, %d occurrence(s)) for committee %s",
            group_id,
            kind.value,
            len(follow_ups) + 1,
            created.committee_id,
        )
        return created

    async def _discard_series(self, anchor_id: int) -> None:
        """
        Best-effort removal of everything written for a failed series.

        The anchor may not have been relabelled yet, so it is also deleted
        by id. Each delete is attempted even if the other fails; failures
        are logged and never retried.
        """
        try:
            await self.store.delete_occurrences_by_group_id(anchor_id)
        except MeetingServiceError:
            logger.exception(
                "Rollback of meeting series %s failed; rows may need manual cleanup",
                anchor_id,
            )

        try:
            await self.store.delete_occurrence(anchor_id)
        except MeetingServiceError:
            logger.exception(
                "Rollback of anchor meeting %s failed; row may need manual cleanup",
                anchor_id,
            )


class SeriesDeleter:
    """
    Deletes one occurrence or a whole series.
    """

    def __init__(self, store: MeetingStore) -> None:
        self.store = store

    async def delete(self, occurrence_id: int, scope: DeletionScope) -> MeetingDeleteResult:
        scope = DeletionScope(scope)

        target = await self.store.get_occurrence(occurrence_id)
        if target is None:
            raise OccurrenceNotFoundError(
                "Meeting not found",
                operation="delete",
                occurrence_id=occurrence_id,
            )

        recurring = target.recurrence_kind != RecurrenceKind.NONE
        if scope == DeletionScope.SERIES and recurring and target.group_id is not None:
            deleted = await self.store.delete_occurrences_by_group_id(target.group_id)
            applied = DeletionScope.SERIES
        else:
            deleted = await self.store.delete_occurrence(occurrence_id)
            applied = DeletionScope.SINGLE

        logger.info(
            "Deleted %d meeting occurrence(s) (scope=%s, occurrence=%s, group=%s)",
            deleted,
            applied.value,
            occurrence_id,
            target.group_id,
        )
        return MeetingDeleteResult(
            occurrence_id=occurrence_id,
            group_id=target.group_id,
            scope=applied,
            deleted_count=deleted,
        )


# --------------------------------------------------------------------------
# Caller-facing operations
# --------------------------------------------------------------------------

async def create_meeting_series(
    store: MeetingStore,
    *,
    committee_id: int,
    title: str,
    scheduled_at: datetime,
    location: str | None,
    recurrence_kind: RecurrenceKind = RecurrenceKind.NONE,
    recurrence_end_date: date_type | None = None,
    created_by: str | None = None,
) -> MeetingRead:
    """
    Schedule a meeting and, for recurring kinds, every occurrence up to
    `recurrence_end_date`. Returns the anchor occurrence.
    """
    anchor = MeetingDraft(
        committee_id=committee_id,
        title=title,
        scheduled_at=scheduled_at,
        location=location,
        recurrence_kind=recurrence_kind,
        recurrence_end_date=recurrence_end_date,
        created_by=created_by,
    )
    return await SeriesRepository(store).create_series(
        anchor, recurrence_kind, recurrence_end_date
    )


async def delete_meeting(
    store: MeetingStore,
    occurrence_id: int,
    scope: DeletionScope = DeletionScope.SINGLE,
) -> MeetingDeleteResult:
    return await SeriesDeleter(store).delete(occurrence_id, scope)


async def get_meeting(store: MeetingStore, occurrence_id: int) -> MeetingRead:
    meeting = await store.get_occurrence(occurrence_id)
    if meeting is None:
        raise OccurrenceNotFoundError(
            "Meeting not found",
            operation="get",
            occurrence_id=occurrence_id,
        )
    return meeting


async def update_meeting(store: MeetingStore, occurrence_id: int, changes: MeetingUpdate) -> MeetingRead:
    """
    Edit title, time or location of a single occurrence.

    Other occurrences of the series and the recurrence fields are never
    touched.
    """
    updated = await store.update_occurrence(occurrence_id, changes)
    if updated is None:
        raise OccurrenceNotFoundError(
            "Meeting not found",
            operation="update",
            occurrence_id=occurrence_id,
        )
    return updated


async def list_series(store: MeetingStore, occurrence_id: int) -> list[MeetingRead]:
    """
    Every occurrence sharing the given occurrence's group id, oldest first.
    """
    meeting = await get_meeting(store, occurrence_id)
    if meeting.group_id is None:
        return [meeting]
    return await store.list_occurrences_by_group_id(meeting.group_id)


async def list_committee_meetings(store: MeetingStore, committee_id: int) -> list[MeetingRead]:
    return await store.list_occurrences_by_committee(committee_id)
