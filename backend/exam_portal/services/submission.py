"""
Exam Portal - Submission Coordinator
Grades a submission and records answers, result and attempt completion as one unit.
"""
import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.config import settings
from exam_portal.core.database import utcnow
from exam_portal.models.attempt import Answer, AttemptStatus, Result
from exam_portal.models.test import Test
from exam_portal.services.attempts import AttemptLedger, deadline_for
from exam_portal.services.errors import (
    DeadlineExceededError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    SubmissionValidationError,
)
from exam_portal.services.grading import GradeReport, SubmittedPair, round_percentage, score
from exam_portal.services.question_bank import QuestionBank

logger = logging.getLogger(__name__)


class SubmissionCoordinator:
    """
    Runs the submit flow for one attempt.

    Either every write lands (answers, result, attempt completion) or none
    does and the attempt stays ``started`` so the student can retry.
    """

    def __init__(self, db: AsyncSession, grace_seconds: int | None = None):
        self.db = db
        self.ledger = AttemptLedger(db)
        self.bank = QuestionBank(db)
        self.grace_seconds = settings.SUBMISSION_GRACE_SECONDS if grace_seconds is None else grace_seconds

    async def submit(
        self,
        student_id: uuid.UUID,
        attempt_id: uuid.UUID,
        test_id: uuid.UUID,
        answers: Sequence[SubmittedPair],
        now: datetime | None = None,
    ) -> Result:
        """
        Grade and persist a submission.

        Raises:
            SubmissionValidationError: test_id does not belong to the attempt
            NotFoundError: attempt is missing or owned by another student
            InvalidStateError: attempt already completed
            DeadlineExceededError: submitted after the server-side deadline
            StorageError: a write failed; nothing was saved
        """
        now = now or utcnow()

        attempt = await self.ledger.get_attempt_for_student(attempt_id, student_id)
        if attempt.test_id != test_id:
            raise SubmissionValidationError("Attempt does not belong to this test.")
        if attempt.status == AttemptStatus.COMPLETED:
            raise InvalidStateError("This test has already been submitted.")

        test = await self.db.get(Test, test_id)
        if test is None:
            raise NotFoundError("Test not found.")
        if now > deadline_for(attempt, test, self.grace_seconds):
            logger.warning("Late submission for attempt %s", attempt_id,
                           extra={"attempt_id": attempt_id, "test_id": test_id})
            raise DeadlineExceededError("Time is up for this test; the submission was not accepted.")

        answer_key = await self.bank.fetch_answer_key(test_id)
        if answer_key.marks_sum != answer_key.total_marks:
            logger.warning(
                "Test %s declares %d total marks but its questions sum to %d",
                test_id, answer_key.total_marks, answer_key.marks_sum,
                extra={"test_id": test_id},
            )

        report = score(answers, answer_key.entries, answer_key.total_marks)
        if report.ignored_question_ids:
            logger.info("Ignored %d answers for unknown questions on attempt %s",
                        len(report.ignored_question_ids), attempt_id,
                        extra={"attempt_id": attempt_id})

        try:
            # Close first so a concurrent submit for the same attempt loses here
            await self.ledger.close_attempt(attempt_id, now)
            await self._persist_answers(attempt_id, report)
            result = await self._persist_result(attempt_id, student_id, test_id, answer_key.total_marks, report)
            await self.db.commit()
        except InvalidStateError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Submission for attempt %s rolled back: %s", attempt_id, e,
                         extra={"attempt_id": attempt_id})
            raise StorageError("Could not save your submission. Please try again.") from e

        logger.info(
            "Graded attempt %s: %d/%d (%s)",
            attempt_id, report.marks_obtained, answer_key.total_marks, report.status.value,
            extra={"attempt_id": attempt_id, "test_id": test_id, "student_id": student_id},
        )
        return result

    async def _persist_answers(self, attempt_id: uuid.UUID, report: GradeReport) -> list[Answer]:
        rows = [
            Answer(
                attempt_id=attempt_id,
                question_id=question_id,
                selected_option=report.selected_options[question_id],
                is_correct=is_correct,
            )
            for question_id, is_correct in report.per_question_correctness.items()
        ]
        self.db.add_all(rows)
        await self.db.flush()
        return rows

    async def _persist_result(
        self,
        attempt_id: uuid.UUID,
        student_id: uuid.UUID,
        test_id: uuid.UUID,
        total_marks: int,
        report: GradeReport,
    ) -> Result:
        result = Result(
            attempt_id=attempt_id,
            student_id=student_id,
            test_id=test_id,
            marks_obtained=report.marks_obtained,
            total_marks=total_marks,
            percentage=round_percentage(report.percentage),
            status=report.status,
        )
        self.db.add(result)
        await self.db.flush()
        return result
