"""Error taxonomy for timetable processing and reminder scheduling.

Malformed times and entries are never raised; they are recovered with a
default or discarded and show up as counts. Only conditions the caller must
act on are exceptions.
"""

import logging

logger = logging.getLogger(__name__)


# Default error messages
ERROR_MESSAGES = {
    "general": "Sorry, something went wrong. Please try again.",
    "no_data": "I couldn't find any classes in that image. Please try with a clearer photo.",
    "not_found": "No timetable found. Please upload your timetable first.",
    "database": "Could not save your timetable. Please try again.",
    "dispatch": "Could not schedule class reminders right now. Please try again later.",
}


class TimetableError(Exception):
    """Base exception for timetable errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or ERROR_MESSAGES["general"]


class NoDataExtractedError(TimetableError):
    """Model output parsed, but no course survived parsing."""

    def __init__(self, message: str = "No courses extracted", report=None):
        super().__init__(message, ERROR_MESSAGES["no_data"])
        self.report = report


class TimetableNotFoundError(TimetableError):
    """No stored timetable for the owner."""

    def __init__(self, message: str = "Timetable not found"):
        super().__init__(message, ERROR_MESSAGES["not_found"])


class StoreUnavailableError(TimetableError):
    """Timetable store operation error."""

    def __init__(self, message: str = "Timetable store operation failed"):
        super().__init__(message, ERROR_MESSAGES["database"])


class DispatcherUnavailableError(TimetableError):
    """Notification dispatcher cannot accept reminders at all."""

    def __init__(self, message: str = "Notification dispatcher unavailable"):
        super().__init__(message, ERROR_MESSAGES["dispatch"])


def user_message_for(error: Exception) -> str:
    """Pick the message to show a user for any exception."""
    if isinstance(error, TimetableError):
        return error.user_message
    logger.error(f"Unexpected error: {error}")
    return ERROR_MESSAGES["general"]
