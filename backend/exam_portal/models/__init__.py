"""Exam Portal - Models initialization."""
from exam_portal.models.user import User, RefreshToken, UserRole, UserStatus
from exam_portal.models.course import Course, Enrollment
from exam_portal.models.test import Test, Question, OptionLetter, Difficulty
from exam_portal.models.attempt import (
    TestAttempt,
    Answer,
    Result,
    AttemptStatus,
    ResultStatus,
)


__all__ = [
    # User models
    "User",
    "RefreshToken",
    "UserRole",
    "UserStatus",
    # Course models
    "Course",
    "Enrollment",
    # Test & question bank
    "Test",
    "Question",
    "OptionLetter",
    "Difficulty",
    # Attempts, answers & results
    "TestAttempt",
    "Answer",
    "Result",
    "AttemptStatus",
    "ResultStatus",
]
