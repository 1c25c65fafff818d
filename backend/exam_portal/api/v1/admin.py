"""
Exam Portal - Admin API
Account approval, test and course management, and results across all students
"""
import logging
import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select

from exam_portal.api.deps import CurrentAdmin, DbSession
from exam_portal.models.attempt import Result, TestAttempt
from exam_portal.models.course import Course
from exam_portal.models.test import Test
from exam_portal.models.user import User, UserRole, UserStatus
from exam_portal.schemas.common import ApiResponse, ok
from exam_portal.schemas.course import AdminDashboard, CourseCreate, CourseResponse
from exam_portal.schemas.test import AdminResultItem, TestCreate, TestResponse
from exam_portal.schemas.user import PasswordChange, UserResponse, UserStatusUpdate
from exam_portal.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", response_model=ApiResponse[AdminDashboard])
async def get_dashboard(
    current_user: CurrentAdmin,
    db: DbSession,
):
    async def count(stmt) -> int:
        return (await db.execute(stmt)).scalar_one()

    stats = AdminDashboard(
        total_students=await count(
            select(func.count(User.id)).where(User.role == UserRole.STUDENT.value)
        ),
        pending_users=await count(
            select(func.count(User.id)).where(User.status == UserStatus.PENDING.value)
        ),
        active_tests=await count(
            select(func.count(Test.id)).where(Test.is_active.is_(True))
        ),
        total_attempts=await count(select(func.count(TestAttempt.id))),
    )
    return ok("Dashboard data loaded", stats)


# ============================================================================
# Accounts
# ============================================================================

@router.get("/users", response_model=ApiResponse[list[UserResponse]])
async def list_users(
    current_user: CurrentAdmin,
    db: DbSession,
    user_status: UserStatus = Query(UserStatus.PENDING, alias="status"),
):
    """Student accounts in the given status (pending by default)."""
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.STUDENT.value, User.status == user_status.value)
        .order_by(User.created_at.desc())
    )
    return ok("Users loaded", [UserResponse.model_validate(u) for u in result.scalars().all()])


@router.patch("/users/{user_id}/status", response_model=ApiResponse[UserResponse])
async def update_user_status(
    user_id: uuid.UUID,
    update: UserStatusUpdate,
    current_user: CurrentAdmin,
    db: DbSession,
):
    """Approve, reject or deactivate an account."""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.status = update.status
    await db.commit()
    logger.info("User %s set to %s by admin %s", user.id, update.status.value, current_user.id)
    return ok("User status updated successfully", UserResponse.model_validate(user))


@router.post("/change-password", response_model=ApiResponse[None])
async def change_password(
    request: PasswordChange,
    current_user: CurrentAdmin,
    db: DbSession,
):
    await AuthService(db).change_password(current_user, request.new_password)
    await db.commit()
    return ok("Password updated successfully")


# ============================================================================
# Courses & tests
# ============================================================================

@router.post("/courses", response_model=ApiResponse[CourseResponse], status_code=status.HTTP_201_CREATED)
async def create_course(
    request: CourseCreate,
    current_user: CurrentAdmin,
    db: DbSession,
):
    course = Course(**request.model_dump())
    db.add(course)
    await db.commit()
    return ok("Course created successfully", CourseResponse.model_validate(course))


@router.get("/tests", response_model=ApiResponse[list[TestResponse]])
async def list_tests(
    current_user: CurrentAdmin,
    db: DbSession,
):
    result = await db.execute(select(Test).order_by(Test.created_at.desc()))
    return ok("Tests loaded", [TestResponse.model_validate(t) for t in result.scalars().all()])


@router.post("/tests", response_model=ApiResponse[TestResponse], status_code=status.HTTP_201_CREATED)
async def create_test(
    request: TestCreate,
    current_user: CurrentAdmin,
    db: DbSession,
):
    if await db.get(Course, request.course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    test = Test(**request.model_dump())
    db.add(test)
    await db.commit()
    logger.info("Created test %s", test.id, extra={"test_id": test.id})
    return ok("Test created successfully", TestResponse.model_validate(test))


@router.delete("/tests/{test_id}", response_model=ApiResponse[None])
async def delete_test(
    test_id: uuid.UUID,
    current_user: CurrentAdmin,
    db: DbSession,
):
    """Delete a test together with its questions."""
    test = await db.get(Test, test_id)
    if test is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")

    await db.delete(test)
    await db.commit()
    logger.info("Deleted test %s", test_id, extra={"test_id": test_id})
    return ok("Test deleted successfully")


# ============================================================================
# Results
# ============================================================================

@router.get("/results", response_model=ApiResponse[list[AdminResultItem]])
async def list_results(
    current_user: CurrentAdmin,
    db: DbSession,
):
    rows = await db.execute(
        select(Result, Test.test_title, User.full_name)
        .join(Test, Test.id == Result.test_id)
        .join(User, User.id == Result.student_id)
        .order_by(Result.created_at.desc())
    )
    items = [
        AdminResultItem(
            attempt_id=result.attempt_id,
            test_id=result.test_id,
            student_id=result.student_id,
            user_name=full_name,
            test_title=title,
            marks_obtained=result.marks_obtained,
            total_marks=result.total_marks,
            percentage=float(result.percentage),
            status=result.status,
            created_at=result.created_at,
        )
        for result, title, full_name in rows.all()
    ]
    return ok("All results loaded", items)
