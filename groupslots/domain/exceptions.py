"""
Domain-specific exception hierarchy for the groupslots application.
"""


class GroupSlotsError(Exception):
    """Base class for all application-level errors."""


class StoreError(GroupSlotsError):
    """Raised when project data cannot be fetched, parsed or written."""


class AuthenticationError(GroupSlotsError):
    """Raised when an invitee name/password pair does not match."""


class ProjectNotFoundError(GroupSlotsError):
    """Raised when a project id is unknown to the store."""


class InvalidSlotError(GroupSlotsError, ValueError):
    """Raised when a submitted slot is empty, reversed or malformed."""


class SlotOutsideWindowError(InvalidSlotError):
    """Raised when a submitted slot falls outside the project window."""


class InvalidProjectError(GroupSlotsError, ValueError):
    """Raised when a new project's title, window or invitee list is rejected."""


class PermissionDeniedError(GroupSlotsError):
    """Raised when a non-admin invitee asks for organizer-only data."""
