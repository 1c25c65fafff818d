"""
Exam Portal - Question Bank
Read-only access to a test's questions and its answer key
"""
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.database import utcnow
from exam_portal.models.test import Question, Test
from exam_portal.schemas.test import QuestionPublic
from exam_portal.services.errors import NotFoundError
from exam_portal.services.grading import AnswerKeyEntry


@dataclass(frozen=True)
class AnswerKey:
    """Answer key for a test plus the declared total used as the scoring denominator."""
    entries: dict[uuid.UUID, AnswerKeyEntry]
    total_marks: int

    @property
    def marks_sum(self) -> int:
        return sum(entry.marks for entry in self.entries.values())


class QuestionBank:
    """Loads tests and questions for the test-taking flow."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_test(
        self,
        test_id: uuid.UUID,
        now: datetime | None = None,
    ) -> tuple[Test, list[QuestionPublic]]:
        """
        Load an open test and its questions without the answer key.

        Raises:
            NotFoundError: If the test does not exist, is inactive, or is
                outside its availability window
        """
        test = await self.db.get(Test, test_id)
        if test is None or not test.is_open_at(now or utcnow()):
            raise NotFoundError("Test not found or is not active.")

        result = await self.db.execute(
            select(Question)
            .where(Question.test_id == test_id)
            .order_by(Question.position, Question.id)
        )
        questions = [QuestionPublic.model_validate(q) for q in result.scalars().all()]
        return test, questions

    async def fetch_answer_key(self, test_id: uuid.UUID) -> AnswerKey:
        """
        Load the correct option and marks of every question in a test.

        Server-side only.

        Raises:
            NotFoundError: If the test does not exist
        """
        test = await self.db.get(Test, test_id)
        if test is None:
            raise NotFoundError("Test not found.")

        result = await self.db.execute(
            select(Question.id, Question.correct_option, Question.marks)
            .where(Question.test_id == test_id)
        )
        entries = {
            row.id: AnswerKeyEntry(correct_option=row.correct_option, marks=row.marks)
            for row in result.all()
        }
        return AnswerKey(entries=entries, total_marks=test.total_marks)
