from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class AssignmentSubmission:
    """One student's work for one assignment lesson, keyed by (lesson, student)."""

    id: UUID
    lesson_id: UUID
    course_id: UUID
    student_id: UUID
    content: str
    submitted_at: int
    status: str = "submitted"  # submitted|graded
    grade: int | None = None  # 0 = fail, 1 = pass
    feedback: str | None = None
    graded_at: int | None = None

    @property
    def is_pending(self) -> bool:
        # a stale grade on a fresh resubmission does not count
        return self.status == "submitted"

    @property
    def passed(self) -> bool:
        return self.status == "graded" and self.grade == 1

    @staticmethod
    def new(
        *,
        lesson_id: UUID,
        course_id: UUID,
        student_id: UUID,
        content: str,
        submitted_at: int,
    ) -> AssignmentSubmission:
        return AssignmentSubmission(
            id=uuid4(),
            lesson_id=lesson_id,
            course_id=course_id,
            student_id=student_id,
            content=content,
            submitted_at=submitted_at,
        )
