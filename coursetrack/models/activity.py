from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

ActivityType = Literal[
    "ENROLLMENT",
    "LESSON_COMPLETE",
    "COURSE_COMPLETE",
    "QUIZ_ATTEMPT",
    "ASSIGNMENT_SUBMITTED",
    "REVIEW_SUBMITTED",
    "CERTIFICATE_EARNED",
    "ACHIEVEMENT_EARNED",
]


@dataclass(frozen=True, slots=True)
class Activity:
    """Append-only timeline entry.  Never updated or deleted."""

    id: UUID
    user_id: UUID
    type: ActivityType
    message: str
    created_at: int
    course_id: UUID | None = None
    lesson_id: UUID | None = None
    quiz_id: UUID | None = None

    @staticmethod
    def new(
        *,
        user_id: UUID,
        type: ActivityType,
        message: str,
        created_at: int,
        course_id: UUID | None = None,
        lesson_id: UUID | None = None,
        quiz_id: UUID | None = None,
    ) -> Activity:
        return Activity(
            id=uuid4(),
            user_id=user_id,
            type=type,
            message=message,
            created_at=created_at,
            course_id=course_id,
            lesson_id=lesson_id,
            quiz_id=quiz_id,
        )
