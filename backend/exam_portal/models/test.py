"""
Exam Portal - Test & Question Models
A test belongs to a course and owns a bank of four-option questions.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_portal.core.database import Base, as_utc, utcnow

if TYPE_CHECKING:
    from exam_portal.models.course import Course


class OptionLetter(str, Enum):
    """The four answer slots of a question."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Test(Base):
    """
    A timed multiple-choice test.

    ``total_marks`` is declared by the admin and used as the scoring
    denominator; it is stored independently of the questions' marks.
    """
    __test__ = False  # keep pytest from treating the model as a test class
    __tablename__ = "tests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        index=True
    )
    test_title: Mapped[str] = mapped_column(String(255))
    test_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer)
    total_marks: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Availability window, either bound may be open
    available_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    available_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    course: Mapped["Course"] = relationship("Course", back_populates="tests")
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan"
    )

    def is_open_at(self, moment: datetime) -> bool:
        """True when the test is active and ``moment`` falls inside its window."""
        if not self.is_active:
            return False
        if self.available_from and as_utc(self.available_from) > moment:
            return False
        if self.available_until and as_utc(self.available_until) < moment:
            return False
        return True

    def __repr__(self):
        return f"<Test {self.test_title!r} marks={self.total_marks}>"


class Question(Base):
    """A single question with four options and one correct letter."""

    __tablename__ = "questions"
    __table_args__ = (CheckConstraint("marks > 0", name="ck_question_marks_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tests.id", ondelete="CASCADE"),
        index=True
    )
    question_text: Mapped[str] = mapped_column(Text)
    option_a: Mapped[str] = mapped_column(String(255))
    option_b: Mapped[str] = mapped_column(String(255))
    option_c: Mapped[str] = mapped_column(String(255))
    option_d: Mapped[str] = mapped_column(String(255))
    correct_option: Mapped[OptionLetter] = mapped_column(String(1))
    marks: Mapped[int] = mapped_column(Integer)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(String(10), default=Difficulty.MEDIUM)
    # Display order within the test
    position: Mapped[int] = mapped_column(Integer, default=0)

    test: Mapped["Test"] = relationship("Test", back_populates="questions")
