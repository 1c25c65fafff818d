"""
Exam Portal - Attempt Models
Attempts, their submitted answers, and the graded result.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_portal.core.database import Base, utcnow

if TYPE_CHECKING:
    from exam_portal.models.user import User
    from exam_portal.models.test import Test, Question


class AttemptStatus(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"


class ResultStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class TestAttempt(Base):
    """
    One sitting of a test by a student.

    Moves from STARTED to COMPLETED exactly once, on submission.
    A student gets a single attempt per test.
    """
    __test__ = False
    __tablename__ = "test_attempts"
    __table_args__ = (UniqueConstraint("student_id", "test_id", name="uq_attempt_student_test"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tests.id", ondelete="CASCADE"),
        index=True
    )
    status: Mapped[AttemptStatus] = mapped_column(String(20), default=AttemptStatus.STARTED)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    student: Mapped["User"] = relationship("User", back_populates="attempts")
    test: Mapped["Test"] = relationship("Test")
    answers: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="attempt",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<TestAttempt {self.id} status={self.status}>"


class Answer(Base):
    """A submitted option for one question of an attempt. Unanswered questions have no row."""

    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("test_attempts.id", ondelete="CASCADE"),
        index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE")
    )
    selected_option: Mapped[str | None] = mapped_column(String(1), nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)

    attempt: Mapped["TestAttempt"] = relationship("TestAttempt", back_populates="answers")
    question: Mapped["Question"] = relationship("Question")


class Result(Base):
    """
    Graded outcome of an attempt. Written once, never updated.

    ``total_marks`` is a snapshot of the test's declared total at grading time.
    """

    __tablename__ = "results"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("test_attempts.id", ondelete="CASCADE"),
        unique=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tests.id", ondelete="CASCADE"),
        index=True
    )
    marks_obtained: Mapped[int] = mapped_column(Integer)
    total_marks: Mapped[int] = mapped_column(Integer)
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    status: Mapped[ResultStatus] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    test: Mapped["Test"] = relationship("Test")
    student: Mapped["User"] = relationship("User")

    def __repr__(self):
        return f"<Result attempt={self.attempt_id} {self.percentage}% {self.status}>"
