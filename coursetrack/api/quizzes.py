"""Quiz endpoints: authoring, student view, attempts, analytics."""

from __future__ import annotations

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from coursetrack.api.dependencies import get_outbox, require_user
from coursetrack.models.enrollment import QuizAttemptRecord
from coursetrack.models.principal import Principal
from coursetrack.models.quiz import Option, Question, Quiz, QuizSettings
from coursetrack.repos.stores import open_stores
from coursetrack.services import quizzes
from coursetrack.services.events import Outbox
from coursetrack.services.grading import visible_answers

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class OptionIn(BaseModel):
    id: str = Field(min_length=1)
    text: str
    is_correct: bool = False


class QuestionIn(BaseModel):
    id: str = Field(min_length=1)
    type: Literal["multiple-choice", "true-false", "short-answer", "essay"]
    prompt: str = Field(min_length=1)
    points: int = Field(default=1, ge=1)
    options: list[OptionIn] = []
    correct_answer: str | None = None
    explanation: str | None = None


class QuizSettingsIn(BaseModel):
    attempts: int = Field(default=1, ge=0)
    passing_score: int = Field(default=70, ge=0, le=100)
    show_results: Literal["immediately", "after-submission", "never"] = "after-submission"
    show_correct_answers: bool = True
    shuffle_questions: bool = False
    shuffle_options: bool = False
    time_limit: int = Field(default=0, ge=0)


class QuizIn(BaseModel):
    course_id: UUID
    lesson_id: UUID | None = None
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    status: Literal["draft", "published"] = "draft"
    questions: list[QuestionIn] = []
    settings: QuizSettingsIn = QuizSettingsIn()


class AnalyticsOut(BaseModel):
    total_attempts: int
    passed_attempts: int
    pass_rate: float
    average_score: float


class QuizOut(BaseModel):
    id: UUID
    course_id: UUID
    lesson_id: UUID | None
    title: str
    description: str | None
    status: str
    total_points: int
    questions: list[QuestionIn]
    settings: QuizSettingsIn
    analytics: AnalyticsOut


class StudentOptionOut(BaseModel):
    id: str
    text: str


class StudentQuestionOut(BaseModel):
    id: str
    type: str
    prompt: str
    points: int
    options: list[StudentOptionOut]


class StudentQuizOut(BaseModel):
    id: UUID
    course_id: UUID
    lesson_id: UUID | None
    title: str
    description: str | None
    total_points: int
    time_limit: int
    attempts_allowed: int
    questions: list[StudentQuestionOut]


class AttemptIn(BaseModel):
    answers: dict[str, Any] = {}
    time_spent: int = 0


class AttemptOut(BaseModel):
    score: int
    total_points: int
    percentage: int
    passed: bool
    has_essay: bool
    attempt_number: int
    best_score: int
    attempts_remaining: int | None = None  # None = unlimited
    lesson_completed: bool = False
    answers: list[dict[str, Any]] | None = None  # omitted when show_results=never


class AttemptSummaryOut(BaseModel):
    score: int
    total_points: int
    percentage: int
    passed: bool
    time_spent: int
    attempted_at: int
    answers: list[dict[str, Any]] | None = None


class HistoryOut(BaseModel):
    quiz_id: UUID
    attempts: list[AttemptSummaryOut]
    best_score: int
    passed: bool


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


def _to_domain(body: QuizIn) -> Quiz:
    return Quiz.new(
        course_id=body.course_id,
        lesson_id=body.lesson_id,
        title=body.title,
        description=body.description,
        status=body.status,
        questions=tuple(
            Question(
                id=q.id,
                type=q.type,
                prompt=q.prompt,
                points=q.points,
                options=tuple(
                    Option(id=o.id, text=o.text, is_correct=o.is_correct)
                    for o in q.options
                ),
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in body.questions
        ),
        settings=QuizSettings(**body.settings.model_dump()),
    )


def _to_out(quiz: Quiz) -> QuizOut:
    s = quiz.settings
    return QuizOut(
        id=quiz.id,
        course_id=quiz.course_id,
        lesson_id=quiz.lesson_id,
        title=quiz.title,
        description=quiz.description,
        status=quiz.status,
        total_points=quiz.total_points,
        questions=[
            QuestionIn(
                id=q.id,
                type=q.type,
                prompt=q.prompt,
                points=q.points,
                options=[
                    OptionIn(id=o.id, text=o.text, is_correct=o.is_correct)
                    for o in q.options
                ],
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in quiz.questions
        ],
        settings=QuizSettingsIn(
            attempts=s.attempts,
            passing_score=s.passing_score,
            show_results=s.show_results,
            show_correct_answers=s.show_correct_answers,
            shuffle_questions=s.shuffle_questions,
            shuffle_options=s.shuffle_options,
            time_limit=s.time_limit,
        ),
        analytics=_analytics_out(quiz),
    )


def _analytics_out(quiz: Quiz) -> AnalyticsOut:
    a = quiz.analytics
    return AnalyticsOut(
        total_attempts=a.total_attempts,
        passed_attempts=a.passed_attempts,
        pass_rate=a.pass_rate,
        average_score=a.average_score,
    )


def _to_student_out(quiz: Quiz) -> StudentQuizOut:
    return StudentQuizOut(
        id=quiz.id,
        course_id=quiz.course_id,
        lesson_id=quiz.lesson_id,
        title=quiz.title,
        description=quiz.description,
        total_points=quiz.total_points,
        time_limit=quiz.settings.time_limit,
        attempts_allowed=quiz.settings.attempts,
        questions=[
            StudentQuestionOut(
                id=q.id,
                type=q.type,
                prompt=q.prompt,
                points=q.points,
                options=[StudentOptionOut(id=o.id, text=o.text) for o in q.options],
            )
            for q in quiz.questions
        ],
    )


def _remaining(quiz: Quiz, record: QuizAttemptRecord) -> int | None:
    if quiz.settings.unlimited_attempts:
        return None
    return max(0, quiz.settings.attempts - record.attempt_count)


# ---------------------------------------------------------------------------
# Authoring
# ---------------------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED, response_model=QuizOut)
async def create_quiz(
    body: QuizIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> QuizOut:
    async with open_stores() as stores:
        quiz, _ = await quizzes.save_quiz(stores, caller=principal, draft=_to_domain(body))
    return _to_out(quiz)


@router.put("/{quiz_id}", response_model=QuizOut)
async def update_quiz(
    quiz_id: UUID,
    body: QuizIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> QuizOut:
    async with open_stores() as stores:
        quiz, _ = await quizzes.save_quiz(
            stores, caller=principal, draft=_to_domain(body), quiz_id=quiz_id
        )
    return _to_out(quiz)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    async with open_stores() as stores:
        await quizzes.delete_quiz(stores, caller=principal, quiz_id=quiz_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{quiz_id}", response_model=QuizOut | StudentQuizOut)
async def get_quiz(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> QuizOut | StudentQuizOut:
    async with open_stores() as stores:
        view = await quizzes.get_quiz(stores, caller=principal, quiz_id=quiz_id)
    if view.redacted:
        return _to_student_out(view.quiz)
    return _to_out(view.quiz)


@router.get("/{quiz_id}/analytics", response_model=AnalyticsOut)
async def get_analytics(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> AnalyticsOut:
    async with open_stores() as stores:
        quiz = await quizzes.get_quiz_analytics(stores, caller=principal, quiz_id=quiz_id)
    return _analytics_out(quiz)


# ---------------------------------------------------------------------------
# Attempts
# ---------------------------------------------------------------------------


@router.post(
    "/{quiz_id}/attempts",
    status_code=status.HTTP_201_CREATED,
    response_model=AttemptOut,
    response_model_exclude_none=True,
)
async def submit_attempt(
    quiz_id: UUID,
    body: AttemptIn,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> AttemptOut:
    async with open_stores() as stores:
        outcome = await quizzes.submit_quiz_attempt(
            stores,
            outbox,
            quiz_id=quiz_id,
            student_id=principal.id,
            answers=body.answers,
            time_spent=body.time_spent,
        )
    result = outcome.result
    return AttemptOut(
        score=result.score,
        total_points=result.total_points,
        percentage=result.percentage,
        passed=result.passed,
        has_essay=result.has_essay,
        attempt_number=outcome.attempt_number,
        best_score=outcome.record.best_score,
        attempts_remaining=_remaining(outcome.quiz, outcome.record),
        lesson_completed=outcome.lesson_completion is not None,
        answers=visible_answers(outcome.quiz, result.answers),
    )


@router.get("/{quiz_id}/attempts", response_model=HistoryOut)
async def attempt_history(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> HistoryOut:
    async with open_stores() as stores:
        quiz, record = await quizzes.get_attempt_history(
            stores, quiz_id=quiz_id, student_id=principal.id
        )
    return HistoryOut(
        quiz_id=quiz_id,
        attempts=[
            AttemptSummaryOut(
                score=a.score,
                total_points=a.total_points,
                percentage=a.percentage,
                passed=a.passed,
                time_spent=a.time_spent,
                attempted_at=a.attempted_at,
                answers=visible_answers(quiz, a.answers),
            )
            for a in record.attempts
        ],
        best_score=record.best_score,
        passed=record.passed,
    )
