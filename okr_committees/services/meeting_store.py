# okr_committees/services/meeting_store.py
from __future__ import annotations

import logging
from typing import Protocol, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from okr_committees.models.meeting import Meeting
from okr_committees.schemas.meeting import MeetingDraft, MeetingRead, MeetingUpdate
from okr_committees.services.errors import OccurrenceNotFoundError, StorageError

logger = logging.getLogger(__name__)


class MeetingStore(Protocol):
    """
    Data-access contract consumed by the series services.

    Every method is one round-trip to the backing store and either
    succeeds completely or raises `StorageError`.
    """

    async def insert_occurrence(self, draft: MeetingDraft) -> MeetingRead: ...

    async def update_occurrence_group_id(self, occurrence_id: int, group_id: int) -> MeetingRead: ...

    async def insert_occurrences_batch(self, drafts: Sequence[MeetingDraft]) -> None: ...

    async def get_occurrence(self, occurrence_id: int) -> MeetingRead | None: ...

    async def delete_occurrence(self, occurrence_id: int) -> int: ...

    async def delete_occurrences_by_group_id(self, group_id: int) -> int: ...

    async def list_occurrences_by_group_id(self, group_id: int) -> list[MeetingRead]: ...

    async def list_occurrences_by_committee(self, committee_id: int) -> list[MeetingRead]: ...

    async def update_occurrence(
        self, occurrence_id: int, changes: MeetingUpdate
    ) -> MeetingRead | None: ...


def _to_row(draft: MeetingDraft) -> Meeting:
    return Meeting(
        committee_id=draft.committee_id,
        group_id=draft.group_id,
        title=draft.title,
        scheduled_at=draft.scheduled_at,
        location=draft.location,
        recurrence_kind=draft.recurrence_kind.value,
        recurrence_end_date=draft.recurrence_end_date,
        created_by=draft.created_by,
    )


class SqlMeetingStore:
    """
    `MeetingStore` backed by an async SQLAlchemy session.

    Each operation commits on its own, like a call to a hosted REST store
    would. Driver/database failures roll the session back and surface as
    `StorageError`.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _fail(self, exc: SQLAlchemyError, operation: str, **context) -> StorageError:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Session rollback after failed %s also failed", operation)
        logger.warning("Meeting store operation %s failed: %s", operation, exc)
        return StorageError(f"Database error during {operation}", operation=operation, **context)

    async def _load(self, occurrence_id: int) -> Meeting | None:
        stmt = (
            select(Meeting)
            .where(Meeting.id == occurrence_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def insert_occurrence(self, draft: MeetingDraft) -> MeetingRead:
        row = _to_row(draft)
        try:
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "insert_occurrence", group_id=draft.group_id) from exc
        return MeetingRead.model_validate(row)

    async def update_occurrence_group_id(self, occurrence_id: int, group_id: int) -> MeetingRead:
        try:
            row = await self._load(occurrence_id)
            if row is None:
                raise OccurrenceNotFoundError(
                    "Meeting not found",
                    operation="update_occurrence_group_id",
                    occurrence_id=occurrence_id,
                )
            row.group_id = group_id
            await self.session.commit()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise await self._fail(
                exc,
                "update_occurrence_group_id",
                occurrence_id=occurrence_id,
                group_id=group_id,
            ) from exc
        return MeetingRead.model_validate(row)

    async def insert_occurrences_batch(self, drafts: Sequence[MeetingDraft]) -> None:
        if not drafts:
            return
        group_id = drafts[0].group_id
        try:
            self.session.add_all([_to_row(draft) for draft in drafts])
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "insert_occurrences_batch", group_id=group_id) from exc

    async def get_occurrence(self, occurrence_id: int) -> MeetingRead | None:
        try:
            row = await self._load(occurrence_id)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "get_occurrence", occurrence_id=occurrence_id) from exc
        return MeetingRead.model_validate(row) if row is not None else None

    async def delete_occurrence(self, occurrence_id: int) -> int:
        """
        Delete one row by id. Returns the number of rows removed (0 or 1).
        """
        try:
            result = await self.session.execute(
                delete(Meeting).where(Meeting.id == occurrence_id)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "delete_occurrence", occurrence_id=occurrence_id) from exc
        return result.rowcount or 0

    async def delete_occurrences_by_group_id(self, group_id: int) -> int:
        """
        Delete every row of a series in a single statement.
        """
        try:
            result = await self.session.execute(
                delete(Meeting).where(Meeting.group_id == group_id)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "delete_occurrences_by_group_id", group_id=group_id) from exc
        return result.rowcount or 0

    async def list_occurrences_by_group_id(self, group_id: int) -> list[MeetingRead]:
        stmt = (
            select(Meeting)
            .where(Meeting.group_id == group_id)
            .order_by(Meeting.scheduled_at.asc(), Meeting.id.asc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "list_occurrences_by_group_id", group_id=group_id) from exc
        return [MeetingRead.model_validate(row) for row in result.scalars().all()]

    async def list_occurrences_by_committee(self, committee_id: int) -> list[MeetingRead]:
        """
        Newest first, matching how the committee meeting list is displayed.
        """
        stmt = (
            select(Meeting)
            .where(Meeting.committee_id == committee_id)
            .order_by(Meeting.scheduled_at.desc(), Meeting.id.desc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "list_occurrences_by_committee") from exc
        return [MeetingRead.model_validate(row) for row in result.scalars().all()]

    async def update_occurrence(
        self,
        occurrence_id: int,
        changes: MeetingUpdate,
    ) -> MeetingRead | None:
        """
        Apply a partial edit to one occurrence. Returns None if it does not exist.
        """
        update_data = changes.model_dump(exclude_unset=True)
        # Only location may be cleared; title and scheduled_at are required columns.
        update_data = {
            field: value
            for field, value in update_data.items()
            if value is not None or field == "location"
        }
        try:
            row = await self._load(occurrence_id)
            if row is None:
                return None
            for field, value in update_data.items():
                setattr(row, field, value)
            await self.session.commit()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "update_occurrence", occurrence_id=occurrence_id) from exc
        return MeetingRead.model_validate(row)
