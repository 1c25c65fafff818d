"""Exam Portal - Services initialization."""
from exam_portal.services.auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    AccountNotActiveError,
    TokenError,
)
from exam_portal.services.errors import (
    ExamPortalError,
    NotFoundError,
    InvalidStateError,
    AlreadyAttemptedError,
    DeadlineExceededError,
    SubmissionValidationError,
    StorageError,
)
from exam_portal.services.question_bank import QuestionBank, AnswerKey
from exam_portal.services.attempts import AttemptLedger, deadline_for
from exam_portal.services.submission import SubmissionCoordinator

__all__ = [
    # Auth
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AccountNotActiveError",
    "TokenError",
    # Domain errors
    "ExamPortalError",
    "NotFoundError",
    "InvalidStateError",
    "AlreadyAttemptedError",
    "DeadlineExceededError",
    "SubmissionValidationError",
    "StorageError",
    # Test taking
    "QuestionBank",
    "AnswerKey",
    "AttemptLedger",
    "deadline_for",
    "SubmissionCoordinator",
]
