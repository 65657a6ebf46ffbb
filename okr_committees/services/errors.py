# okr_committees/services/errors.py
from __future__ import annotations


class MeetingServiceError(Exception):
    """
    Base class for errors raised by the meeting services.

    Carries enough context (operation, occurrence id, group id) for request
    handlers to build a user-facing message.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        occurrence_id: int | None = None,
        group_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.occurrence_id = occurrence_id
        self.group_id = group_id

    def __str__(self) -> str:
        context = [
            f"{name}={value}"
            for name, value in (
                ("operation", self.operation),
                ("occurrence_id", self.occurrence_id),
                ("group_id", self.group_id),
            )
            if value is not None
        ]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class MeetingValidationError(MeetingServiceError):
    """
    The request was rejected before any persistence was attempted.
    """


class StorageError(MeetingServiceError):
    """
    An insert/update/delete against the meeting store failed.
    """


class OccurrenceNotFoundError(MeetingServiceError):
    """
    The requested occurrence does not exist (anymore).
    """
