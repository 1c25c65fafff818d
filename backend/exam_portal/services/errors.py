"""
Exam Portal - Domain Errors
Raised by the test-taking services and mapped to HTTP responses in main.py
"""
from fastapi import status


class ExamPortalError(Exception):
    """Base error carrying a user-facing message and the HTTP status to answer with."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ExamPortalError):
    """Test or attempt is missing, inactive, or belongs to someone else."""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(ExamPortalError):
    """Attempt transition requested out of order (e.g. closing a completed attempt)."""
    status_code = status.HTTP_409_CONFLICT


class AlreadyAttemptedError(InvalidStateError):
    """Student already has an attempt for this test."""


class DeadlineExceededError(InvalidStateError):
    """Submission arrived after the attempt's server-side deadline."""


class SubmissionValidationError(ExamPortalError):
    """Submission identifiers are missing or inconsistent."""
    status_code = 422


class StorageError(ExamPortalError):
    """Persistence failed inside an atomic unit; all writes were rolled back and the call may be retried."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
