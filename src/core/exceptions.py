"""Custom exception classes for the StudyHub backend.

Every exception carries the HTTP status it maps to. Managers raise them and
the handlers registered in ``app.py`` turn them into ``{"error": ...}``
responses.
"""

from typing import List, Optional


class StudyHubError(Exception):
    """Base exception for all StudyHub errors."""

    status_code = 500

    def __init__(self, message: str):
        """Initialize the exception.

        Args:
            message: Human readable message returned to the client.
        """
        self.message = message
        super().__init__(message)


class ValidationError(StudyHubError):
    """Raised when input is missing or malformed."""

    status_code = 400


class SelfInviteError(ValidationError):
    """Raised when a group admin invites themselves."""

    def __init__(self):
        super().__init__("You cannot invite yourself.")


class NotFoundError(StudyHubError):
    """Raised when a referenced entity is absent or not visible."""

    status_code = 404


class ForbiddenError(StudyHubError):
    """Raised when the caller is authenticated but not authorized."""

    status_code = 403


class AuthenticationError(StudyHubError):
    """Raised when the bearer token is missing, invalid or expired."""

    status_code = 401


class ConflictError(StudyHubError):
    """Raised on a duplicate or uniqueness violation.

    Reported as 400 rather than 409, matching the public API.
    """

    status_code = 400


class AlreadyMemberError(ConflictError):
    """Raised when a student is already a member of the group."""


class DuplicatePendingInvitationError(ConflictError):
    """Raised when a pending invitation already exists for (group, invitee)."""


class DuplicateShareError(ConflictError):
    """Raised when a resource is already shared to the group."""

    def __init__(self):
        super().__init__("Already shared to this group.")


class StorageError(StudyHubError):
    """Raised when the database or blob store fails."""

    status_code = 500


class BlobNotFoundError(StorageError):
    """Raised when a blob id does not exist in the blob store."""

    status_code = 404

    def __init__(self, file_id: str):
        self.file_id = file_id
        super().__init__("File not found.")


class CascadeDeleteError(StorageError):
    """Raised when a group deletion stops part-way through its cascade."""

    def __init__(self, group_id: str, completed: List[str], failed: Optional[str]):
        """Initialize the exception.

        Args:
            group_id: The group being deleted.
            completed: Cascade stages that were committed.
            failed: The stage that raised.
        """
        self.group_id = group_id
        self.completed = completed
        self.failed = failed
        super().__init__(
            f"Group deletion was only partially completed "
            f"(completed: {', '.join(completed) or 'none'}; failed at: {failed})."
        )
