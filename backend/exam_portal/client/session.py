"""
Exam Portal - Timed Session Controller
Client-side state for one test sitting: countdown, question pointer and answer sheet.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

OPTION_LETTERS = ("A", "B", "C", "D")
LOW_TIME_SECONDS = 300


class SessionState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    FINISHED = "finished"


class SessionQuestion(BaseModel):
    id: str
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    marks: int


class SessionTest(BaseModel):
    id: str
    test_title: str
    duration_minutes: int
    total_marks: int


class LoadedSession(BaseModel):
    """The ``data`` of a successful get-test response."""
    test: SessionTest
    questions: list[SessionQuestion]
    attempt_id: str


@dataclass(frozen=True)
class PaletteEntry:
    index: int
    question_id: str
    answered: bool
    current: bool


class TimedSession:
    """
    State machine for a single test session.

    loading -> in_progress -> submitting -> finished, or loading -> finished
    when the test cannot be opened. ``on_submit`` is called with the request
    body exactly once, when the session enters ``submitting``.
    """

    def __init__(self, on_submit: Optional[Callable[[dict[str, Any]], None]] = None):
        self.on_submit = on_submit
        self.state = SessionState.LOADING
        self.test: Optional[SessionTest] = None
        self.questions: list[SessionQuestion] = []
        self.attempt_id: Optional[str] = None
        self.remaining_seconds = 0
        self.current_index = 0
        self.answers: dict[str, str] = {}
        self.error: Optional[str] = None
        self.auto_submitted = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, payload: LoadedSession | dict[str, Any]) -> None:
        if self.state != SessionState.LOADING:
            raise RuntimeError(f"Cannot start a session in state {self.state.value}")
        if not isinstance(payload, LoadedSession):
            payload = LoadedSession.model_validate(payload)

        self.test = payload.test
        self.questions = list(payload.questions)
        self.attempt_id = payload.attempt_id
        self.remaining_seconds = payload.test.duration_minutes * 60
        self.current_index = 0
        self.answers = {}
        self.state = SessionState.IN_PROGRESS
        logger.debug("Session started for test %s with %d questions", self.test.id, len(self.questions))

    def load_failed(self, message: str) -> None:
        """The test could not be opened (already attempted, inactive, ...)."""
        if self.state != SessionState.LOADING:
            raise RuntimeError(f"Cannot fail loading in state {self.state.value}")
        self.error = message
        self.state = SessionState.FINISHED

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns True on the tick that ran the clock out and started submission.
        """
        if self.state != SessionState.IN_PROGRESS:
            return False
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            self.auto_submitted = True
            return self._begin_submit()
        return False

    def confirm_submit(self) -> bool:
        """Explicit submission by the student."""
        if self.state != SessionState.IN_PROGRESS:
            return False
        return self._begin_submit()

    def finish(self, error: Optional[str] = None) -> None:
        if self.state != SessionState.SUBMITTING:
            raise RuntimeError(f"Cannot finish a session in state {self.state.value}")
        self.error = error
        self.state = SessionState.FINISHED

    def _begin_submit(self) -> bool:
        self.state = SessionState.SUBMITTING
        if self.on_submit is not None:
            self.on_submit(self.submission_payload())
        return True

    # ------------------------------------------------------------------
    # Navigation & answers
    # ------------------------------------------------------------------

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[SessionQuestion]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def go_to(self, index: int) -> int:
        """Move the pointer, clamped to ``[0, question_count)``."""
        upper = max(self.question_count - 1, 0)
        self.current_index = min(max(index, 0), upper)
        return self.current_index

    def next(self) -> int:
        return self.go_to(self.current_index + 1)

    def previous(self) -> int:
        return self.go_to(self.current_index - 1)

    def select_option(self, option: str) -> bool:
        """
        Record ``option`` for the current question.

        Ignored (returns False) unless the session is in progress.
        """
        if self.state != SessionState.IN_PROGRESS or self.current_question is None:
            return False
        letter = option.strip().upper()
        if letter not in OPTION_LETTERS:
            raise ValueError(f"Option must be one of {', '.join(OPTION_LETTERS)}")
        self.answers[self.current_question.id] = letter
        return True

    def palette(self) -> list[PaletteEntry]:
        return [
            PaletteEntry(
                index=i,
                question_id=q.id,
                answered=q.id in self.answers,
                current=i == self.current_index,
            )
            for i, q in enumerate(self.questions)
        ]

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    @property
    def time_display(self) -> str:
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def is_low_time(self) -> bool:
        return self.state == SessionState.IN_PROGRESS and self.remaining_seconds < LOW_TIME_SECONDS

    def submission_payload(self) -> dict[str, Any]:
        """Request body for ``POST /tests/submit``, answers in question order."""
        return {
            "test_id": self.test.id if self.test else None,
            "attempt_id": self.attempt_id,
            "answers": [
                {"question_id": q.id, "selected_option": self.answers[q.id]}
                for q in self.questions
                if q.id in self.answers
            ],
        }
