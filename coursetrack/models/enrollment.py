from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class CompletedLesson:
    lesson_id: UUID
    completed_at: int
    time_spent: int = 0  # seconds


@dataclass(frozen=True, slots=True)
class GradedAnswer:
    question_id: str
    answer: Any
    is_correct: bool
    points: int


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    score: int
    total_points: int
    percentage: int
    passed: bool
    answers: tuple[GradedAnswer, ...]
    time_spent: int
    attempted_at: int


@dataclass(frozen=True, slots=True)
class QuizAttemptRecord:
    """All attempts one student made at one quiz."""

    quiz_id: UUID
    attempts: tuple[QuizAttempt, ...] = ()
    best_score: int = 0
    passed: bool = False

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def with_attempt(self, attempt: QuizAttempt) -> QuizAttemptRecord:
        # a later attempt never un-passes the quiz
        return QuizAttemptRecord(
            quiz_id=self.quiz_id,
            attempts=self.attempts + (attempt,),
            best_score=max(self.best_score, attempt.score),
            passed=self.passed or attempt.passed,
        )


@dataclass(frozen=True, slots=True)
class CertificateState:
    issued: bool = False
    certificate_id: str | None = None
    issued_at: int | None = None


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: UUID
    student_id: UUID
    course_id: UUID
    enrolled_at: int
    enrollment_type: str = "free"  # free|paid
    status: str = "active"  # active|completed
    completed_lessons: tuple[CompletedLesson, ...] = ()
    percentage_complete: float = 0.0
    total_time_spent: int = 0  # seconds
    quiz_attempts: tuple[QuizAttemptRecord, ...] = ()
    certificate: CertificateState = field(default_factory=CertificateState)
    completed_at: int | None = None
    payment_ref: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def has_completed(self, lesson_id: UUID) -> bool:
        return any(c.lesson_id == lesson_id for c in self.completed_lessons)

    def completed_lesson_ids(self) -> frozenset[UUID]:
        return frozenset(c.lesson_id for c in self.completed_lessons)

    def attempt_record(self, quiz_id: UUID) -> QuizAttemptRecord | None:
        return next((r for r in self.quiz_attempts if r.quiz_id == quiz_id), None)

    @staticmethod
    def new(
        *,
        student_id: UUID,
        course_id: UUID,
        enrolled_at: int,
        enrollment_type: str = "free",
        payment_ref: str | None = None,
    ) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            student_id=student_id,
            course_id=course_id,
            enrolled_at=enrolled_at,
            enrollment_type=enrollment_type,
            payment_ref=payment_ref,
        )
