"""
Exam Portal - Response Envelope
Every endpoint answers with {success, message, data}.
"""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope."""
    success: bool = True
    message: str = ""
    data: T | None = None


def ok(message: str, data=None) -> ApiResponse:
    """Build a successful envelope."""
    return ApiResponse(success=True, message=message, data=data)
