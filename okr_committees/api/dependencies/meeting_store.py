# okr_committees/api/dependencies/meeting_store.py
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from okr_committees.db.session import get_db
from okr_committees.services.meeting_store import SqlMeetingStore


async def get_meeting_store(db: AsyncSession = Depends(get_db)) -> SqlMeetingStore:
    """
    Request-scoped meeting store bound to the request's DB session.
    """
    return SqlMeetingStore(db)
