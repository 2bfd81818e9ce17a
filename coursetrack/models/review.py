from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Review:
    id: UUID
    student_id: UUID
    course_id: UUID
    rating: int  # 1..5
    created_at: int
    comment: str | None = None

    @staticmethod
    def new(
        *,
        student_id: UUID,
        course_id: UUID,
        rating: int,
        created_at: int,
        comment: str | None = None,
    ) -> Review:
        return Review(
            id=uuid4(),
            student_id=student_id,
            course_id=course_id,
            rating=rating,
            created_at=created_at,
            comment=comment,
        )
