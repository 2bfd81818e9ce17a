from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.submission import AssignmentSubmission


class SubmissionRepo(Protocol):
    async def get(self, submission_id: UUID) -> AssignmentSubmission | None: ...
    async def get_for(
        self, lesson_id: UUID, student_id: UUID
    ) -> AssignmentSubmission | None: ...
    async def upsert(
        self,
        *,
        lesson_id: UUID,
        course_id: UUID,
        student_id: UUID,
        content: str,
        submitted_at: int,
    ) -> tuple[AssignmentSubmission, bool]: ...
    async def set_grade(
        self,
        submission_id: UUID,
        *,
        grade: int,
        feedback: str | None,
        graded_at: int,
    ) -> AssignmentSubmission | None: ...
    async def list_pending(self, course_id: UUID) -> list[AssignmentSubmission]: ...


class InMemorySubmissionRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, AssignmentSubmission] = {}
        self._by_key: dict[tuple[UUID, UUID], UUID] = {}

    async def get(self, submission_id: UUID) -> AssignmentSubmission | None:
        return self._by_id.get(submission_id)

    async def get_for(
        self, lesson_id: UUID, student_id: UUID
    ) -> AssignmentSubmission | None:
        sid = self._by_key.get((lesson_id, student_id))
        return self._by_id.get(sid) if sid else None

    async def upsert(
        self,
        *,
        lesson_id: UUID,
        course_id: UUID,
        student_id: UUID,
        content: str,
        submitted_at: int,
    ) -> tuple[AssignmentSubmission, bool]:
        """Insert or overwrite the (lesson, student) submission.

        A resubmission goes back to "submitted"; the previous grade and
        feedback stay visible until the next grading.
        """
        sid = self._by_key.get((lesson_id, student_id))
        if sid is not None:
            sub = replace(
                self._by_id[sid],
                content=content,
                submitted_at=submitted_at,
                status="submitted",
            )
            self._by_id[sid] = sub
            return sub, False

        sub = AssignmentSubmission.new(
            lesson_id=lesson_id,
            course_id=course_id,
            student_id=student_id,
            content=content,
            submitted_at=submitted_at,
        )
        self._by_id[sub.id] = sub
        self._by_key[(lesson_id, student_id)] = sub.id
        return sub, True

    async def set_grade(
        self,
        submission_id: UUID,
        *,
        grade: int,
        feedback: str | None,
        graded_at: int,
    ) -> AssignmentSubmission | None:
        sub = self._by_id.get(submission_id)
        if sub is None:
            return None
        sub = replace(
            sub, status="graded", grade=grade, feedback=feedback, graded_at=graded_at
        )
        self._by_id[submission_id] = sub
        return sub

    async def list_pending(self, course_id: UUID) -> list[AssignmentSubmission]:
        items = [
            s for s in self._by_id.values() if s.course_id == course_id and s.is_pending
        ]
        return sorted(items, key=lambda s: s.submitted_at)
