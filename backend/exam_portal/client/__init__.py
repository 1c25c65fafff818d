"""Exam Portal - test-taking client."""
from exam_portal.client.session import (
    LoadedSession,
    PaletteEntry,
    SessionState,
    TimedSession,
)
from exam_portal.client.api import ApiError, ExamPortalClient, run_session

__all__ = [
    "LoadedSession",
    "PaletteEntry",
    "SessionState",
    "TimedSession",
    "ApiError",
    "ExamPortalClient",
    "run_session",
]
