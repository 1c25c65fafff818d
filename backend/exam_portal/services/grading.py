"""
Exam Portal - Grading Engine
Scores submitted answers against a test's answer key. Pure functions, no I/O.
"""
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Protocol

from exam_portal.models.attempt import ResultStatus

# Fixed for every test
PASS_PERCENTAGE = 50

# Largest value results.percentage (Numeric(5, 2)) can hold
MAX_STORED_PERCENTAGE = Decimal("999.99")


class SubmittedPair(Protocol):
    question_id: uuid.UUID
    selected_option: Optional[str]


@dataclass(frozen=True)
class AnswerKeyEntry:
    """Authoritative answer for one question. Never sent to the client."""
    correct_option: str
    marks: int


@dataclass(frozen=True)
class GradeReport:
    """Outcome of grading one submission."""
    per_question_correctness: dict[uuid.UUID, bool]
    selected_options: dict[uuid.UUID, Optional[str]]
    marks_obtained: int
    percentage: float
    status: ResultStatus
    ignored_question_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == ResultStatus.PASS


def _plain(option) -> Optional[str]:
    if isinstance(option, Enum):
        return option.value
    return option


def score(
    submitted_answers: Iterable[SubmittedPair],
    answer_key: Mapping[uuid.UUID, AnswerKeyEntry],
    test_total_marks: int,
) -> GradeReport:
    """
    Grade a submission.

    Answers for question ids missing from ``answer_key`` are ignored rather
    than rejected. When the same question appears more than once the last
    answer counts. A null selection is graded as incorrect.

    The percentage is computed against ``test_total_marks`` (the test's
    declared total), not against the sum of the key's marks.
    """
    latest: dict[uuid.UUID, Optional[str]] = {}
    ignored: list[uuid.UUID] = []
    for pair in submitted_answers:
        if pair.question_id not in answer_key:
            ignored.append(pair.question_id)
            continue
        # Re-insert so iteration order follows the last occurrence
        latest.pop(pair.question_id, None)
        latest[pair.question_id] = _plain(pair.selected_option)

    correctness: dict[uuid.UUID, bool] = {}
    obtained = 0
    for question_id, selected in latest.items():
        entry = answer_key[question_id]
        is_correct = selected is not None and selected == _plain(entry.correct_option)
        correctness[question_id] = is_correct
        if is_correct:
            obtained += entry.marks

    percentage = (obtained / test_total_marks) * 100 if test_total_marks > 0 else 0.0
    status = ResultStatus.PASS if percentage >= PASS_PERCENTAGE else ResultStatus.FAIL

    return GradeReport(
        per_question_correctness=correctness,
        selected_options=latest,
        marks_obtained=obtained,
        percentage=float(percentage),
        status=status,
        ignored_question_ids=ignored,
    )


def round_percentage(value: float) -> Decimal:
    """Two-decimal representation stored in ``results.percentage``."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def percentage_is_storable(marks_sum: int, total_marks: int) -> bool:
    """Whether full marks on ``marks_sum`` still fits ``results.percentage``."""
    if total_marks <= 0:
        return True
    return round_percentage(marks_sum / total_marks * 100) <= MAX_STORED_PERCENTAGE
