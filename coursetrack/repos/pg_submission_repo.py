"""PostgreSQL implementation of SubmissionRepo."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import AssignmentSubmissionRow
from coursetrack.models.submission import AssignmentSubmission


class PgSubmissionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, submission_id: UUID) -> AssignmentSubmission | None:
        stmt = select(AssignmentSubmissionRow).where(
            AssignmentSubmissionRow.id == submission_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)

    async def get_for(
        self, lesson_id: UUID, student_id: UUID
    ) -> AssignmentSubmission | None:
        stmt = select(AssignmentSubmissionRow).where(
            AssignmentSubmissionRow.lesson_id == lesson_id,
            AssignmentSubmissionRow.student_id == student_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)

    async def upsert(
        self,
        *,
        lesson_id: UUID,
        course_id: UUID,
        student_id: UUID,
        content: str,
        submitted_at: int,
    ) -> tuple[AssignmentSubmission, bool]:
        new_id = uuid4()
        ins = pg_insert(AssignmentSubmissionRow).values(
            id=new_id,
            lesson_id=lesson_id,
            course_id=course_id,
            student_id=student_id,
            content=content,
            submitted_at=submitted_at,
            status="submitted",
        )
        stmt = ins.on_conflict_do_update(
            index_elements=["lesson_id", "student_id"],
            set_={
                "content": ins.excluded.content,
                "submitted_at": ins.excluded.submitted_at,
                "status": "submitted",
            },
        ).returning(AssignmentSubmissionRow)
        row = (await self._session.execute(stmt)).scalar_one()
        return _row_to_submission(row), row.id == new_id

    async def set_grade(
        self,
        submission_id: UUID,
        *,
        grade: int,
        feedback: str | None,
        graded_at: int,
    ) -> AssignmentSubmission | None:
        stmt = (
            update(AssignmentSubmissionRow)
            .where(AssignmentSubmissionRow.id == submission_id)
            .values(status="graded", grade=grade, feedback=feedback, graded_at=graded_at)
            .returning(AssignmentSubmissionRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)

    async def list_pending(self, course_id: UUID) -> list[AssignmentSubmission]:
        stmt = (
            select(AssignmentSubmissionRow)
            .where(
                AssignmentSubmissionRow.course_id == course_id,
                AssignmentSubmissionRow.status == "submitted",
            )
            .order_by(AssignmentSubmissionRow.submitted_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_submission(r) for r in rows]


def _row_to_submission(row: AssignmentSubmissionRow) -> AssignmentSubmission:
    return AssignmentSubmission(
        id=row.id,
        lesson_id=row.lesson_id,
        course_id=row.course_id,
        student_id=row.student_id,
        content=row.content,
        submitted_at=row.submitted_at,
        status=row.status,
        grade=row.grade,
        feedback=row.feedback,
        graded_at=row.graded_at,
    )
