"""
Exam Portal - Attempt Ledger
Opens and closes test attempts
"""
import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.database import as_utc, utcnow
from exam_portal.models.attempt import AttemptStatus, TestAttempt
from exam_portal.models.test import Test
from exam_portal.services.errors import AlreadyAttemptedError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


class AttemptLedger:
    """Records when a student opens a test and when the attempt is completed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def open_attempt(self, student_id: uuid.UUID, test_id: uuid.UUID) -> TestAttempt:
        """
        Create a STARTED attempt.

        Raises:
            AlreadyAttemptedError: If the student already has an attempt for this test
        """
        existing = await self.db.execute(
            select(TestAttempt.id).where(
                TestAttempt.student_id == student_id,
                TestAttempt.test_id == test_id,
            )
        )
        if existing.first() is not None:
            raise AlreadyAttemptedError("You have already attempted this test.")

        attempt = TestAttempt(
            student_id=student_id,
            test_id=test_id,
            status=AttemptStatus.STARTED,
            start_time=utcnow(),
        )
        self.db.add(attempt)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent open for the same student and test
            raise AlreadyAttemptedError("You have already attempted this test.") from e

        logger.info("Opened attempt %s for test %s", attempt.id, test_id,
                    extra={"attempt_id": attempt.id, "test_id": test_id, "student_id": student_id})
        return attempt

    async def close_attempt(self, attempt_id: uuid.UUID, now: datetime | None = None) -> None:
        """
        Move an attempt from STARTED to COMPLETED and stamp its end time.

        The status check and the write happen in one UPDATE so two concurrent
        submissions cannot both close the same attempt.

        Raises:
            InvalidStateError: If the attempt does not exist or is already completed
        """
        result = await self.db.execute(
            update(TestAttempt)
            .where(
                TestAttempt.id == attempt_id,
                TestAttempt.status == AttemptStatus.STARTED.value,
            )
            .values(status=AttemptStatus.COMPLETED.value, end_time=now or utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise InvalidStateError("Attempt does not exist or has already been submitted.")
        logger.info("Closed attempt %s", attempt_id, extra={"attempt_id": attempt_id})

    async def get_attempt_for_student(
        self,
        attempt_id: uuid.UUID,
        student_id: uuid.UUID,
    ) -> TestAttempt:
        """
        Raises:
            NotFoundError: If the attempt does not exist or belongs to another student
        """
        attempt = await self.db.get(TestAttempt, attempt_id)
        if attempt is None or attempt.student_id != student_id:
            raise NotFoundError("Attempt not found.")
        return attempt


def deadline_for(attempt: TestAttempt, test: Test, grace_seconds: int = 0) -> datetime:
    """Server-side deadline: start time plus the test duration plus a grace period."""
    return as_utc(attempt.start_time) + timedelta(
        minutes=test.duration_minutes,
        seconds=grace_seconds,
    )
