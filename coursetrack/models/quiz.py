from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID, uuid4

QuestionType = Literal["multiple-choice", "true-false", "short-answer", "essay"]
ShowResults = Literal["immediately", "after-submission", "never"]

CHOICE_TYPES = frozenset({"multiple-choice", "true-false"})
AUTO_GRADED_TYPES = frozenset({"multiple-choice", "true-false", "short-answer"})


@dataclass(frozen=True, slots=True)
class Option:
    id: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    type: QuestionType
    prompt: str
    points: int = 1
    options: tuple[Option, ...] = ()
    correct_answer: str | None = None  # short-answer key; essays have none
    explanation: str | None = None

    @property
    def is_auto_graded(self) -> bool:
        return self.type in AUTO_GRADED_TYPES

    @property
    def correct_option(self) -> Option | None:
        return next((o for o in self.options if o.is_correct), None)


@dataclass(frozen=True, slots=True)
class QuizSettings:
    attempts: int = 1  # 0 = unlimited
    passing_score: int = 70  # percentage threshold
    show_results: ShowResults = "after-submission"
    show_correct_answers: bool = True
    shuffle_questions: bool = False
    shuffle_options: bool = False
    time_limit: int = 0  # minutes; 0 = no limit

    @property
    def unlimited_attempts(self) -> bool:
        return self.attempts <= 0


@dataclass(frozen=True, slots=True)
class QuizAnalytics:
    total_attempts: int = 0
    passed_attempts: int = 0
    percentage_sum: int = 0

    @property
    def pass_rate(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.passed_attempts / self.total_attempts

    @property
    def average_score(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.percentage_sum / self.total_attempts


@dataclass(frozen=True, slots=True)
class Quiz:
    id: UUID
    course_id: UUID
    lesson_id: UUID | None
    title: str
    questions: tuple[Question, ...] = ()
    settings: QuizSettings = field(default_factory=QuizSettings)
    description: str | None = None
    status: str = "draft"  # draft|published
    analytics: QuizAnalytics = field(default_factory=QuizAnalytics)

    @property
    def total_points(self) -> int:
        """Points reachable by auto-grading; essays are excluded."""
        return sum(q.points for q in self.questions if q.is_auto_graded)

    @property
    def has_essay(self) -> bool:
        return any(q.type == "essay" for q in self.questions)

    def question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    @staticmethod
    def new(
        *,
        course_id: UUID,
        lesson_id: UUID | None,
        title: str,
        questions: tuple[Question, ...] = (),
        settings: QuizSettings | None = None,
        description: str | None = None,
        status: str = "draft",
    ) -> Quiz:
        return Quiz(
            id=uuid4(),
            course_id=course_id,
            lesson_id=lesson_id,
            title=title,
            questions=questions,
            settings=settings or QuizSettings(),
            description=description,
            status=status,
        )
