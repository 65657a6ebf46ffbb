# tests/test_meeting_series_service.py
import logging
from datetime import date, datetime

import pytest

from okr_committees.schemas.meeting import (
    DeletionScope,
    MeetingRead,
    MeetingUpdate,
    RecurrenceKind,
)
from okr_committees.services.errors import (
    MeetingValidationError,
    OccurrenceNotFoundError,
    StorageError,
)
from okr_committees.services.meeting_series import (
    create_meeting_series,
    delete_meeting,
    list_series,
    update_meeting,
)


class FakeMeetingStore:
    """
    In-memory stand-in for the meeting store.

    Operations listed in `fail_on` raise StorageError instead of running.
    """

    def __init__(self, fail_on=()):
        self.rows: dict[int, MeetingRead] = {}
        self.calls: list[str] = []
        self.fail_on = set(fail_on)
        self._next_id = 1

    def _enter(self, operation, **context):
        self.calls.append(operation)
        if operation in self.fail_on:
            raise StorageError("simulated failure", operation=operation, **context)

    def _add(self, draft):
        row = MeetingRead(id=self._next_id, **draft.model_dump())
        self.rows[row.id] = row
        self._next_id += 1
        return row

    async def insert_occurrence(self, draft):
        self._enter("insert_occurrence")
        return self._add(draft)

    async def update_occurrence_group_id(self, occurrence_id, group_id):
        self._enter("update_occurrence_group_id", occurrence_id=occurrence_id)
        row = self.rows[occurrence_id].model_copy(update={"group_id": group_id})
        self.rows[occurrence_id] = row
        return row

    async def insert_occurrences_batch(self, drafts):
        self._enter("insert_occurrences_batch", group_id=drafts[0].group_id)
        for draft in drafts:
            self._add(draft)

    async def get_occurrence(self, occurrence_id):
        self._enter("get_occurrence")
        return self.rows.get(occurrence_id)

    async def delete_occurrence(self, occurrence_id):
        self._enter("delete_occurrence", occurrence_id=occurrence_id)
        return 1 if self.rows.pop(occurrence_id, None) is not None else 0

    async def delete_occurrences_by_group_id(self, group_id):
        self._enter("delete_occurrences_by_group_id", group_id=group_id)
        doomed = [row_id for row_id, row in self.rows.items() if row.group_id == group_id]
        for row_id in doomed:
            del self.rows[row_id]
        return len(doomed)

    async def list_occurrences_by_group_id(self, group_id):
        return sorted(
            (row for row in self.rows.values() if row.group_id == group_id),
            key=lambda row: row.scheduled_at,
        )

    async def list_occurrences_by_committee(self, committee_id):
        return sorted(
            (row for row in self.rows.values() if row.committee_id == committee_id),
            key=lambda row: row.scheduled_at,
            reverse=True,
        )

    async def update_occurrence(self, occurrence_id, changes):
        row = self.rows.get(occurrence_id)
        if row is None:
            return None
        row = row.model_copy(update=changes.model_dump(exclude_unset=True))
        self.rows[occurrence_id] = row
        return row


def _create(store, **overrides):
    params = dict(
        committee_id=1,
        title="Comitê de Riscos",
        scheduled_at=datetime(2025, 1, 1, 10, 0),
        location="Sala 2",
        recurrence_kind=RecurrenceKind.WEEKLY,
        recurrence_end_date=date(2025, 1, 22),
    )
    params.update(overrides)
    return create_meeting_series(store, **params)


@pytest.mark.asyncio
async def test_non_recurring_meeting_is_its_own_group():
    store = FakeMeetingStore()

    anchor = await _create(
        store,
        recurrence_kind=RecurrenceKind.NONE,
        recurrence_end_date=date(2025, 6, 1),
    )

    assert anchor.group_id == anchor.id
    assert list(store.rows) == [anchor.id]
    assert anchor.recurrence_end_date is None
    assert "insert_occurrences_batch" not in store.calls


@pytest.mark.asyncio
async def test_weekly_series_shares_group_and_fields():
    store = FakeMeetingStore()

    anchor = await _create(store)

    series = await store.list_occurrences_by_group_id(anchor.group_id)
    assert anchor.group_id == anchor.id
    assert [m.scheduled_at.day for m in series] == [1, 8, 15, 22]
    assert {m.title for m in series} == {"Comitê de Riscos"}
    assert {m.location for m in series} == {"Sala 2"}
    assert {m.recurrence_kind for m in series} == {RecurrenceKind.WEEKLY}
    assert {m.recurrence_end_date for m in series} == {date(2025, 1, 22)}
    assert store.calls.count("insert_occurrences_batch") == 1


@pytest.mark.asyncio
async def test_validation_errors_happen_before_any_io():
    store = FakeMeetingStore()

    with pytest.raises(MeetingValidationError):
        await _create(store, recurrence_end_date=None)
    with pytest.raises(MeetingValidationError):
        await _create(store, recurrence_end_date=date(2024, 12, 31))

    assert store.calls == []


@pytest.mark.asyncio
async def test_batch_failure_discards_whole_series():
    store = FakeMeetingStore(fail_on={"insert_occurrences_batch"})

    with pytest.raises(StorageError) as exc_info:
        await _create(store)

    assert exc_info.value.operation == "insert_occurrences_batch"
    assert store.rows == {}
    assert await store.list_occurrences_by_group_id(exc_info.value.group_id) == []


@pytest.mark.asyncio
async def test_relabel_failure_deletes_unlabelled_anchor():
    store = FakeMeetingStore(fail_on={"update_occurrence_group_id"})

    with pytest.raises(StorageError) as exc_info:
        await _create(store)

    assert exc_info.value.operation == "update_occurrence_group_id"
    assert store.rows == {}
    assert "insert_occurrences_batch" not in store.calls


@pytest.mark.asyncio
async def test_anchor_is_removed_even_when_group_delete_fails(caplog):
    store = FakeMeetingStore(
        fail_on={"update_occurrence_group_id", "delete_occurrences_by_group_id"}
    )

    with caplog.at_level(logging.WARNING, logger="okr_committees.services.meeting_series"):
        with pytest.raises(StorageError) as exc_info:
            await _create(store)

    assert exc_info.value.operation == "update_occurrence_group_id"
    assert store.rows == {}
    assert store.calls[-2:] == ["delete_occurrences_by_group_id", "delete_occurrence"]
    assert any(
        "Rollback of meeting series" in record.getMessage() for record in caplog.records
    )


@pytest.mark.asyncio
async def test_failed_rollback_is_logged_and_original_error_surfaced(caplog):
    store = FakeMeetingStore(
        fail_on={"insert_occurrences_batch", "delete_occurrences_by_group_id"}
    )

    with caplog.at_level(logging.WARNING, logger="okr_committees.services.meeting_series"):
        with pytest.raises(StorageError) as exc_info:
            await _create(store)

    assert exc_info.value.operation == "insert_occurrences_batch"
    assert any(
        record.levelno == logging.ERROR and "Rollback of meeting series" in record.getMessage()
        for record in caplog.records
    )
    # No retry loop: exactly one rollback attempt was made.
    assert store.calls.count("delete_occurrences_by_group_id") == 1


@pytest.mark.asyncio
async def test_single_delete_keeps_rest_of_series():
    store = FakeMeetingStore()
    anchor = await _create(store)
    series = await store.list_occurrences_by_group_id(anchor.group_id)

    result = await delete_meeting(store, series[1].id, DeletionScope.SINGLE)

    assert result.deleted_count == 1
    assert result.scope == DeletionScope.SINGLE
    remaining = await store.list_occurrences_by_group_id(anchor.group_id)
    assert len(remaining) == 3


@pytest.mark.asyncio
async def test_series_delete_from_any_occurrence_removes_all():
    store = FakeMeetingStore()
    anchor = await _create(store)
    other = await _create(store, title="Outra reunião", recurrence_kind=RecurrenceKind.NONE)
    last = (await store.list_occurrences_by_group_id(anchor.group_id))[-1]

    result = await delete_meeting(store, last.id, DeletionScope.SERIES)

    assert result.deleted_count == 4
    assert result.group_id == anchor.group_id
    assert list(store.rows) == [other.id]


@pytest.mark.asyncio
async def test_series_scope_on_non_recurring_meeting_deletes_one_row():
    store = FakeMeetingStore()
    meeting = await _create(store, recurrence_kind=RecurrenceKind.NONE)

    result = await delete_meeting(store, meeting.id, "series")

    assert result.scope == DeletionScope.SINGLE
    assert result.deleted_count == 1
    assert "delete_occurrences_by_group_id" not in store.calls


@pytest.mark.asyncio
async def test_delete_unknown_occurrence_raises_not_found():
    store = FakeMeetingStore()

    with pytest.raises(OccurrenceNotFoundError) as exc_info:
        await delete_meeting(store, 999, DeletionScope.SERIES)

    assert exc_info.value.occurrence_id == 999
    assert "occurrence_id=999" in str(exc_info.value)


@pytest.mark.asyncio
async def test_delete_storage_error_is_surfaced_without_retry():
    store = FakeMeetingStore()
    anchor = await _create(store)
    store.fail_on.add("delete_occurrences_by_group_id")

    with pytest.raises(StorageError):
        await delete_meeting(store, anchor.id, DeletionScope.SERIES)

    assert len(store.rows) == 4
    assert store.calls.count("delete_occurrences_by_group_id") == 1


@pytest.mark.asyncio
async def test_update_and_list_series_helpers():
    store = FakeMeetingStore()
    anchor = await _create(store)

    updated = await update_meeting(store, anchor.id, MeetingUpdate(title="Pauta especial"))
    series = await list_series(store, anchor.id)

    assert updated.title == "Pauta especial"
    assert [m.title for m in series].count("Pauta especial") == 1

    with pytest.raises(OccurrenceNotFoundError):
        await update_meeting(store, 12345, MeetingUpdate(title="x"))
