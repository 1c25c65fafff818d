"""
Exam Portal - Test Configuration
Pytest fixtures and configuration for testing
"""
import os

# Must be set before the app (and its engine) is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///./test.db")

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from exam_portal.core.database import Base, get_db
from exam_portal.core.security import create_access_token, get_password_hash
from exam_portal.main import app
from exam_portal.models import Course, Enrollment, Question, Test, User, UserRole, UserStatus


# Test database URL (use SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)

test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

PASSWORD = "TestPass123!"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, email: str, role: UserRole, status: UserStatus) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        full_name=email.split("@")[0].title(),
        role=role,
        status=status,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "student@example.com", UserRole.STUDENT, UserStatus.ACTIVE)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", UserRole.ADMIN, UserStatus.ACTIVE)


@pytest.fixture
def student_headers(student: User) -> dict[str, str]:
    token = create_access_token(subject=str(student.id), role=UserRole.STUDENT.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    token = create_access_token(subject=str(admin.id), role=UserRole.ADMIN.value)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def course(db_session: AsyncSession) -> Course:
    course = Course(course_name="Pharmacology", description="Drug actions", duration_months=6)
    db_session.add(course)
    await db_session.commit()
    return course


@pytest_asyncio.fixture
async def exam(db_session: AsyncSession, course: Course) -> Test:
    """Five questions worth 4 marks each, declared total 20. Correct answers: A, B, C, D, A."""
    exam = Test(
        course_id=course.id,
        test_title="Pharmacology Basics",
        duration_minutes=30,
        total_marks=20,
        is_active=True,
    )
    db_session.add(exam)
    await db_session.flush()
    for position, letter in enumerate("ABCDA"):
        db_session.add(Question(
            test_id=exam.id,
            question_text=f"Question {position + 1}",
            option_a="Alpha",
            option_b="Beta",
            option_c="Gamma",
            option_d="Delta",
            correct_option=letter,
            marks=4,
            position=position,
        ))
    await db_session.commit()
    return exam


@pytest_asyncio.fixture
async def enrolled_student(db_session: AsyncSession, student: User, course: Course) -> User:
    db_session.add(Enrollment(user_id=student.id, course_id=course.id))
    await db_session.commit()
    return student


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample student registration data."""
    return {
        "email": "new.student@example.com",
        "password": PASSWORD,
        "full_name": "New Student",
        "phone": "5550100",
    }
