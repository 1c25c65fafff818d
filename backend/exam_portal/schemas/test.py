"""
Exam Portal - Test Schemas
Pydantic schemas for test taking, submission, results and question import
"""
import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from exam_portal.models.attempt import ResultStatus
from exam_portal.models.test import Difficulty, OptionLetter


def _normalize_option(value):
    """Accept ' b ' or 'b' for B; blank means unanswered."""
    if isinstance(value, str):
        value = value.strip().upper()
        return value or None
    return value


# ============================================================================
# Tests & questions
# ============================================================================

class TestCreate(BaseModel):
    """Admin request to create a test."""
    test_title: Annotated[str, Field(min_length=1, max_length=255)]
    course_id: uuid.UUID
    duration_minutes: Annotated[int, Field(ge=1, le=600)]
    total_marks: Annotated[int, Field(ge=1)]
    test_type: Optional[str] = None
    is_active: bool = True
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.available_from and self.available_until and self.available_until < self.available_from:
            raise ValueError("available_until must not be earlier than available_from")
        return self


class TestResponse(BaseModel):
    """Test metadata as shown to students and admins."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    test_title: str
    course_id: uuid.UUID
    test_type: Optional[str] = None
    duration_minutes: int
    total_marks: int
    is_active: bool
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    created_at: datetime


class QuestionPublic(BaseModel):
    """A question as sent to the student. Carries no answer key."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    marks: int


class TestSession(BaseModel):
    """Payload returned when a student opens a test."""
    test: TestResponse
    questions: list[QuestionPublic]
    attempt_id: uuid.UUID


# ============================================================================
# Submission
# ============================================================================

class SubmittedAnswer(BaseModel):
    """One answered question. ``selected_option`` may be null."""
    question_id: uuid.UUID
    selected_option: Optional[OptionLetter] = None

    @field_validator("selected_option", mode="before")
    @classmethod
    def normalize_option(cls, v):
        return _normalize_option(v)


class TestSubmitRequest(BaseModel):
    """Request to submit an attempt."""
    test_id: uuid.UUID
    attempt_id: uuid.UUID
    answers: list[SubmittedAnswer] = []


# ============================================================================
# Results
# ============================================================================

class ResultItem(BaseModel):
    """A student's graded result."""
    attempt_id: uuid.UUID
    test_id: uuid.UUID
    test_title: str
    marks_obtained: int
    total_marks: int
    percentage: float
    status: ResultStatus
    created_at: datetime


class AdminResultItem(ResultItem):
    student_id: uuid.UUID
    user_name: str


# ============================================================================
# Bulk import
# ============================================================================

class BulkImportQuestion(BaseModel):
    """A question already parsed from the admin's pasted text."""
    question_text: Annotated[str, Field(min_length=1)]
    option_a: Annotated[str, Field(min_length=1, max_length=255)]
    option_b: Annotated[str, Field(min_length=1, max_length=255)]
    option_c: Annotated[str, Field(min_length=1, max_length=255)]
    option_d: Annotated[str, Field(min_length=1, max_length=255)]
    correct_option: OptionLetter
    marks: Annotated[Optional[int], Field(gt=0)] = None
    explanation: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM

    @field_validator("correct_option", mode="before")
    @classmethod
    def normalize_option(cls, v):
        return _normalize_option(v)


class BulkImportRequest(BaseModel):
    test_id: uuid.UUID
    questions: Annotated[list[BulkImportQuestion], Field(min_length=1)]


class BulkImportResponse(BaseModel):
    imported: int
    declared_total_marks: int
    question_marks_sum: int
