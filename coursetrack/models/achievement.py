from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

AchievementFamily = Literal[
    "enrollment",
    "lesson",
    "course_completion",
    "quiz_score",
    "quiz_pass",
    "review",
    "certificate",
]


@dataclass(frozen=True, slots=True)
class Achievement:
    """Badge definition: earned once the family's counter reaches threshold."""

    code: str
    title: str
    description: str
    icon: str
    family: AchievementFamily
    threshold: int
    points: int = 10


DEFAULT_ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement(
        code="FIRST_ENROLLMENT",
        title="First Steps",
        description="Enroll in your first course",
        icon="rocket",
        family="enrollment",
        threshold=1,
    ),
    Achievement(
        code="FIRST_LESSON_COMPLETE",
        title="Lesson Learned",
        description="Complete your first lesson",
        icon="book-open",
        family="lesson",
        threshold=1,
    ),
    Achievement(
        code="TEN_LESSONS",
        title="On a Roll",
        description="Complete ten lessons",
        icon="flame",
        family="lesson",
        threshold=10,
        points=25,
    ),
    Achievement(
        code="COURSE_COMPLETED",
        title="Finisher",
        description="Complete every lesson of a course",
        icon="flag",
        family="course_completion",
        threshold=1,
        points=50,
    ),
    Achievement(
        code="PERFECT_QUIZ",
        title="Perfectionist",
        description="Score 100% on a quiz",
        icon="star",
        family="quiz_score",
        threshold=100,
        points=25,
    ),
    Achievement(
        code="FIRST_QUIZ_PASS",
        title="Quiz Whiz",
        description="Pass your first quiz",
        icon="check-circle",
        family="quiz_pass",
        threshold=1,
    ),
    Achievement(
        code="FIRST_REVIEW",
        title="Critic",
        description="Review a course",
        icon="message-square",
        family="review",
        threshold=1,
    ),
    Achievement(
        code="FIRST_CERTIFICATE",
        title="Certified",
        description="Earn your first certificate",
        icon="award",
        family="certificate",
        threshold=1,
        points=50,
    ),
)
