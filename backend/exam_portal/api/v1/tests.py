"""
Exam Portal - Test API
Endpoints for taking a test, submitting it, viewing results and importing questions
"""
import logging
import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select

from exam_portal.api.deps import CurrentAdmin, CurrentStudent, DbSession
from exam_portal.core.config import settings
from exam_portal.models.attempt import Result
from exam_portal.models.test import Question, Test
from exam_portal.schemas.common import ApiResponse, ok
from exam_portal.schemas.test import (
    BulkImportRequest,
    BulkImportResponse,
    ResultItem,
    TestResponse,
    TestSession,
    TestSubmitRequest,
)
from exam_portal.services.attempts import AttemptLedger
from exam_portal.services.errors import NotFoundError
from exam_portal.services.grading import percentage_is_storable
from exam_portal.services.question_bank import QuestionBank
from exam_portal.services.submission import SubmissionCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tests", tags=["Tests"])


async def _open_session(test_id: uuid.UUID, student_id: uuid.UUID, db) -> TestSession:
    test, questions = await QuestionBank(db).fetch_test(test_id)
    attempt = await AttemptLedger(db).open_attempt(student_id, test_id)
    await db.commit()
    return TestSession(
        test=TestResponse.model_validate(test),
        questions=questions,
        attempt_id=attempt.id,
    )


@router.get("", response_model=ApiResponse[TestSession])
async def get_test_by_query(
    current_user: CurrentStudent,
    db: DbSession,
    test_id: uuid.UUID = Query(...),
):
    """Same as ``GET /tests/{test_id}``, with the id passed as a query parameter."""
    return ok("Test loaded", await _open_session(test_id, current_user.id, db))


@router.post("/submit", response_model=ApiResponse[None])
async def submit_test(
    request: TestSubmitRequest,
    current_user: CurrentStudent,
    db: DbSession,
):
    """
    Submit answers for an open attempt.

    Answers, the graded result and the attempt's completion are saved
    together; on failure nothing is saved and the attempt can be retried.
    """
    await SubmissionCoordinator(db).submit(
        student_id=current_user.id,
        attempt_id=request.attempt_id,
        test_id=request.test_id,
        answers=request.answers,
    )
    return ok("Test submitted successfully")


@router.get("/results", response_model=ApiResponse[list[ResultItem]])
async def get_results(
    current_user: CurrentStudent,
    db: DbSession,
):
    """The student's graded results, newest first."""
    rows = await db.execute(
        select(Result, Test.test_title)
        .join(Test, Test.id == Result.test_id)
        .where(Result.student_id == current_user.id)
        .order_by(Result.created_at.desc())
    )
    items = [
        ResultItem(
            attempt_id=result.attempt_id,
            test_id=result.test_id,
            test_title=title,
            marks_obtained=result.marks_obtained,
            total_marks=result.total_marks,
            percentage=float(result.percentage),
            status=result.status,
            created_at=result.created_at,
        )
        for result, title in rows.all()
    ]
    return ok("Results loaded", items)


@router.post(
    "/bulk-import",
    response_model=ApiResponse[BulkImportResponse],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_import(
    request: BulkImportRequest,
    current_user: CurrentAdmin,
    db: DbSession,
):
    """Append parsed questions to a test. Questions without marks get the default."""
    test = await db.get(Test, request.test_id)
    if test is None:
        raise NotFoundError("Test not found.")

    last_position, existing_marks = (await db.execute(
        select(
            func.coalesce(func.max(Question.position), -1),
            func.coalesce(func.sum(Question.marks), 0),
        ).where(Question.test_id == test.id)
    )).one()

    marks = [item.marks or settings.DEFAULT_QUESTION_MARKS for item in request.questions]
    marks_sum = existing_marks + sum(marks)
    if not percentage_is_storable(marks_sum, test.total_marks):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=(
                f"Question marks ({marks_sum}) are too large for a test "
                f"worth {test.total_marks} marks. Raise the test's total marks first."
            ),
        )

    questions = [
        Question(
            test_id=test.id,
            question_text=item.question_text,
            option_a=item.option_a,
            option_b=item.option_b,
            option_c=item.option_c,
            option_d=item.option_d,
            correct_option=item.correct_option.value,
            marks=item_marks,
            explanation=item.explanation,
            difficulty=item.difficulty.value,
            position=last_position + 1 + offset,
        )
        for offset, (item, item_marks) in enumerate(zip(request.questions, marks))
    ]
    db.add_all(questions)
    await db.flush()

    if marks_sum != test.total_marks:
        logger.warning(
            "Test %s declares %d total marks but its questions now sum to %d",
            test.id, test.total_marks, marks_sum,
            extra={"test_id": test.id},
        )

    await db.commit()
    logger.info("Imported %d questions into test %s", len(questions), test.id,
                extra={"test_id": test.id})
    return ok(
        f"{len(questions)} questions imported",
        BulkImportResponse(
            imported=len(questions),
            declared_total_marks=test.total_marks,
            question_marks_sum=marks_sum,
        ),
    )


@router.get("/{test_id}", response_model=ApiResponse[TestSession])
async def get_test(
    test_id: uuid.UUID,
    current_user: CurrentStudent,
    db: DbSession,
):
    """
    Open a test: returns its questions (without answers) and starts the
    student's attempt. A student gets one attempt per test.
    """
    return ok("Test loaded", await _open_session(test_id, current_user.id, db))
