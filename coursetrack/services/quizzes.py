"""Quiz authoring, student views, attempts and analytics."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Any
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailure,
)
from coursetrack.core.metrics import QUIZ_ATTEMPTS
from coursetrack.models.course import Course, QuizContent
from coursetrack.models.enrollment import QuizAttempt, QuizAttemptRecord
from coursetrack.models.principal import Principal
from coursetrack.models.quiz import CHOICE_TYPES, Option, Question, Quiz
from coursetrack.repos.stores import Stores
from coursetrack.services.events import Outbox, QuizAttempted
from coursetrack.services.grading import GradeResult, grade_attempt
from coursetrack.services.progress import LessonCompletion, complete_lesson

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttemptOutcome:
    quiz: Quiz
    result: GradeResult
    record: QuizAttemptRecord
    lesson_completion: LessonCompletion | None = None

    @property
    def attempt_number(self) -> int:
        return self.record.attempt_count


@dataclass(frozen=True, slots=True)
class QuizView:
    quiz: Quiz
    redacted: bool


async def _require_quiz(stores: Stores, quiz_id: UUID) -> Quiz:
    quiz = await stores.quizzes.get(quiz_id)
    if quiz is None:
        raise NotFoundError("quiz not found")
    return quiz


async def _require_course_editor(
    stores: Stores, course_id: UUID, caller: Principal
) -> Course:
    course = await stores.courses.get(course_id)
    if course is None:
        raise NotFoundError("course not found")
    if not (caller.is_user(course.instructor_id) or caller.is_admin()):
        raise ForbiddenError("only the course instructor can manage its quizzes")
    return course


# ---------------------------------------------------------------------------
# Attempts
# ---------------------------------------------------------------------------


async def submit_quiz_attempt(
    stores: Stores,
    outbox: Outbox,
    *,
    quiz_id: UUID,
    student_id: UUID,
    answers: dict[str, Any],
    time_spent: int = 0,
) -> AttemptOutcome:
    quiz = await _require_quiz(stores, quiz_id)
    enrollment = await stores.enrollments.get_for(student_id, quiz.course_id)
    if enrollment is None:
        raise ForbiddenError("not enrolled in this course")

    limit = quiz.settings.attempts
    previous = enrollment.attempt_record(quiz_id)
    if limit > 0 and previous is not None and previous.attempt_count >= limit:
        QUIZ_ATTEMPTS.labels(result="rejected").inc()
        raise InvalidStateError("attempt limit reached")

    result = grade_attempt(quiz, answers)
    attempt = QuizAttempt(
        score=result.score,
        total_points=result.total_points,
        percentage=result.percentage,
        passed=result.passed,
        answers=result.answers,
        time_spent=max(0, int(time_spent or 0)),
        attempted_at=now_ts(),
    )

    # re-checks the limit atomically; a concurrent double-submit loses here
    record = await stores.enrollments.append_quiz_attempt(
        enrollment.id, quiz_id, attempt, limit
    )
    if record is None:
        QUIZ_ATTEMPTS.labels(result="rejected").inc()
        raise InvalidStateError("attempt limit reached")

    await stores.quizzes.record_attempt(
        quiz_id, passed=result.passed, percentage=result.percentage
    )
    QUIZ_ATTEMPTS.labels(result="passed" if result.passed else "failed").inc()
    outbox.publish(
        QuizAttempted(
            user_id=student_id,
            course_id=quiz.course_id,
            quiz_id=quiz_id,
            quiz_title=quiz.title,
            percentage=result.percentage,
            passed=result.passed,
            occurred_at=attempt.attempted_at,
        )
    )
    logger.info(
        "Quiz %s attempt %d by %s: %d/%d (%d%%) %s",
        quiz_id,
        record.attempt_count,
        student_id,
        result.score,
        result.total_points,
        result.percentage,
        "passed" if result.passed else "not passed",
        extra={"quiz_id": str(quiz_id), "user_id": str(student_id)},
    )

    completion = None
    newly_passed = record.passed and not (previous is not None and previous.passed)
    if newly_passed and quiz.lesson_id is not None:
        lesson = await stores.lessons.get_in_course(quiz.lesson_id, quiz.course_id)
        if lesson is None:
            logger.warning("Quiz %s points at missing lesson %s", quiz_id, quiz.lesson_id)
        else:
            completion = await complete_lesson(
                stores,
                outbox,
                enrollment_id=enrollment.id,
                lesson_id=lesson.id,
                caller_id=student_id,
                time_spent=attempt.time_spent,
            )

    return AttemptOutcome(
        quiz=quiz, result=result, record=record, lesson_completion=completion
    )


async def get_attempt_history(
    stores: Stores, *, quiz_id: UUID, student_id: UUID
) -> tuple[Quiz, QuizAttemptRecord]:
    quiz = await _require_quiz(stores, quiz_id)
    enrollment = await stores.enrollments.get_for(student_id, quiz.course_id)
    record = enrollment.attempt_record(quiz_id) if enrollment else None
    return quiz, record or QuizAttemptRecord(quiz_id=quiz_id)


# ---------------------------------------------------------------------------
# Authoring
# ---------------------------------------------------------------------------


def _validate_questions(questions: tuple[Question, ...]) -> None:
    fields: dict[str, str] = {}
    seen: set[str] = set()
    for i, q in enumerate(questions):
        key = f"questions[{i}]"
        if q.id in seen:
            fields[f"{key}.id"] = "duplicate question id"
        seen.add(q.id)
        if q.type in CHOICE_TYPES:
            correct = [o for o in q.options if o.is_correct]
            if len(correct) != 1:
                fields[f"{key}.options"] = "exactly one option must be correct"
        elif q.type == "short-answer" and not (q.correct_answer or "").strip():
            fields[f"{key}.correct_answer"] = "short-answer questions need a key"
    if fields:
        raise ValidationFailure("invalid quiz questions", fields=fields)


async def save_quiz(
    stores: Stores,
    *,
    caller: Principal,
    draft: Quiz,
    quiz_id: UUID | None = None,
) -> tuple[Quiz, bool]:
    """Create or update a quiz.  Returns (quiz, created).

    With quiz_id the existing quiz keeps its id, course and analytics.
    Binding a lesson turns that lesson's content into a quiz reference.
    """
    if quiz_id is not None:
        existing = await _require_quiz(stores, quiz_id)
        draft = replace(draft, id=existing.id, course_id=existing.course_id)

    await _require_course_editor(stores, draft.course_id, caller)
    _validate_questions(draft.questions)

    if draft.lesson_id is not None:
        lesson = await stores.lessons.get_in_course(draft.lesson_id, draft.course_id)
        if lesson is None:
            raise NotFoundError("lesson not found in this course")

    if quiz_id is None:
        await stores.quizzes.add(draft)
        created = True
    else:
        await stores.quizzes.update(draft)
        created = False

    if draft.lesson_id is not None:
        await stores.lessons.set_content(draft.lesson_id, QuizContent(quiz_id=draft.id))

    saved = await stores.quizzes.get(draft.id)
    if saved is None:
        raise NotFoundError("quiz not found")
    logger.info(
        "Quiz %s %s by %s",
        saved.id,
        "created" if created else "updated",
        caller.user_id,
        extra={"quiz_id": str(saved.id), "course_id": str(saved.course_id)},
    )
    return saved, created


async def delete_quiz(stores: Stores, *, caller: Principal, quiz_id: UUID) -> None:
    quiz = await _require_quiz(stores, quiz_id)
    await _require_course_editor(stores, quiz.course_id, caller)
    if await stores.enrollments.has_attempts_for_quiz(quiz_id):
        raise InvalidStateError("quiz has attempts and cannot be deleted")

    await stores.quizzes.delete(quiz_id)
    if quiz.lesson_id is not None:
        lesson = await stores.lessons.get(quiz.lesson_id)
        if lesson is not None and isinstance(lesson.content, QuizContent):
            await stores.lessons.set_content(lesson.id, QuizContent(quiz_id=None))
    logger.info("Quiz %s deleted", quiz_id, extra={"quiz_id": str(quiz_id)})


def redact_quiz(quiz: Quiz, rng: random.Random | None = None) -> Quiz:
    """Student copy: no correct flags, keys or explanations; optionally shuffled."""
    rng = rng or random.Random()
    questions = []
    for q in quiz.questions:
        options = tuple(Option(id=o.id, text=o.text) for o in q.options)
        if quiz.settings.shuffle_options:
            options = tuple(rng.sample(options, len(options)))
        questions.append(
            replace(q, options=options, correct_answer=None, explanation=None)
        )
    if quiz.settings.shuffle_questions:
        questions = rng.sample(questions, len(questions))
    return replace(quiz, questions=tuple(questions))


async def get_quiz(stores: Stores, *, caller: Principal, quiz_id: UUID) -> QuizView:
    quiz = await _require_quiz(stores, quiz_id)
    course = await stores.courses.get(quiz.course_id)
    if course is not None and (caller.is_user(course.instructor_id) or caller.is_admin()):
        return QuizView(quiz=quiz, redacted=False)
    if await stores.enrollments.get_for(caller.id, quiz.course_id) is None:
        raise ForbiddenError("not enrolled in this course")
    return QuizView(quiz=redact_quiz(quiz), redacted=True)


async def get_quiz_analytics(stores: Stores, *, caller: Principal, quiz_id: UUID) -> Quiz:
    quiz = await _require_quiz(stores, quiz_id)
    await _require_course_editor(stores, quiz.course_id, caller)
    return quiz
