"""
Exam Portal - Course & Dashboard Schemas
"""
import uuid
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


class CourseCreate(BaseModel):
    course_name: Annotated[str, Field(min_length=1, max_length=255)]
    description: Optional[str] = None
    duration_months: Annotated[Optional[int], Field(ge=1)] = None


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    course_name: str
    description: Optional[str] = None
    duration_months: Optional[int] = None


class EnrollRequest(BaseModel):
    course_id: uuid.UUID


class StudentDashboard(BaseModel):
    completed_tests: int
    pending_tests: int
    avg_score: float


class AdminDashboard(BaseModel):
    total_students: int
    pending_users: int
    active_tests: int
    total_attempts: int
