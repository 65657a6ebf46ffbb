# okr_committees/models/meeting.py
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Integer,
    String,
)

from okr_committees.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Meeting(Base):
    """
    A single scheduled committee meeting (one occurrence).

    Occurrences generated from the same recurrence rule share a `group_id`,
    which is the id of the first occurrence of the series (the anchor).
    A non-recurring meeting is its own group.
    """

    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)

    committee_id = Column(Integer, nullable=False, index=True)

    # NULL only between the anchor insert and its relabel.
    group_id = Column(Integer, nullable=True, index=True)

    title = Column(String(255), nullable=False)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    location = Column(String(255), nullable=True)

    recurrence_kind = Column(
        String(16),
        nullable=False,
        default="none",
    )
    recurrence_end_date = Column(Date, nullable=True)

    created_by = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Group ids are derived from anchor ids, so ids must never be reused.
    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        return (
            f"<Meeting id={self.id} group_id={self.group_id} "
            f"scheduled_at={self.scheduled_at} kind={self.recurrence_kind}>"
        )
