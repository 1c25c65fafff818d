"""
Exam Portal - Student API
Dashboard, course enrollment and the list of tests a student can take
"""
import logging
import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from exam_portal.api.deps import CurrentStudent, DbSession
from exam_portal.core.database import utcnow
from exam_portal.models.attempt import AttemptStatus, Result, TestAttempt
from exam_portal.models.course import Course, Enrollment
from exam_portal.models.test import Test
from exam_portal.schemas.common import ApiResponse, ok
from exam_portal.schemas.course import CourseResponse, EnrollRequest, StudentDashboard
from exam_portal.schemas.test import TestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


async def _available_tests(db, student_id: uuid.UUID) -> list[Test]:
    """Active tests of the student's courses, inside their window, not yet attempted."""
    attempted = select(TestAttempt.test_id).where(TestAttempt.student_id == student_id)
    result = await db.execute(
        select(Test)
        .join(Enrollment, Enrollment.course_id == Test.course_id)
        .where(
            Enrollment.user_id == student_id,
            Test.is_active.is_(True),
            Test.id.not_in(attempted),
        )
        .order_by(Test.created_at.desc())
    )
    now = utcnow()
    return [test for test in result.scalars().all() if test.is_open_at(now)]


@router.get("/dashboard", response_model=ApiResponse[StudentDashboard])
async def get_dashboard(
    current_user: CurrentStudent,
    db: DbSession,
):
    completed = (await db.execute(
        select(func.count(TestAttempt.id)).where(
            TestAttempt.student_id == current_user.id,
            TestAttempt.status == AttemptStatus.COMPLETED.value,
        )
    )).scalar_one()
    avg_score = (await db.execute(
        select(func.avg(Result.percentage)).where(Result.student_id == current_user.id)
    )).scalar_one()
    pending = len(await _available_tests(db, current_user.id))

    return ok("Dashboard data loaded", StudentDashboard(
        completed_tests=completed,
        pending_tests=pending,
        avg_score=round(float(avg_score or 0), 2),
    ))


@router.get("/courses", response_model=ApiResponse[list[CourseResponse]])
async def list_courses(
    current_user: CurrentStudent,
    db: DbSession,
):
    result = await db.execute(select(Course).order_by(Course.course_name))
    return ok("Courses loaded", [CourseResponse.model_validate(c) for c in result.scalars().all()])


@router.post("/enroll", response_model=ApiResponse[None], status_code=status.HTTP_201_CREATED)
async def enroll(
    request: EnrollRequest,
    current_user: CurrentStudent,
    db: DbSession,
):
    if await db.get(Course, request.course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    db.add(Enrollment(user_id=current_user.id, course_id=request.course_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You are already enrolled in this course.",
        )

    logger.info("Student %s enrolled in course %s", current_user.id, request.course_id,
                extra={"student_id": current_user.id})
    return ok("Enrolled successfully")


@router.get("/tests", response_model=ApiResponse[list[TestResponse]])
async def list_available_tests(
    current_user: CurrentStudent,
    db: DbSession,
):
    tests = await _available_tests(db, current_user.id)
    return ok("Available tests loaded", [TestResponse.model_validate(t) for t in tests])
