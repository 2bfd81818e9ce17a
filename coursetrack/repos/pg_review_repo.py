"""PostgreSQL implementation of ReviewRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import ReviewRow
from coursetrack.models.review import Review


class PgReviewRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for(self, student_id: UUID, course_id: UUID) -> Review | None:
        stmt = select(ReviewRow).where(
            ReviewRow.student_id == student_id, ReviewRow.course_id == course_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_review(row)

    async def add(self, review: Review) -> None:
        stmt = (
            pg_insert(ReviewRow)
            .values(
                id=review.id,
                student_id=review.student_id,
                course_id=review.course_id,
                rating=review.rating,
                comment=review.comment,
                created_at=review.created_at,
            )
            .on_conflict_do_nothing(index_elements=["student_id", "course_id"])
        )
        if (await self._session.execute(stmt)).rowcount == 0:
            raise ValueError("review already exists")

    async def list_by_course(self, course_id: UUID) -> list[Review]:
        stmt = (
            select(ReviewRow)
            .where(ReviewRow.course_id == course_id)
            .order_by(ReviewRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_review(r) for r in rows]

    async def count_by_student(self, student_id: UUID) -> int:
        stmt = select(func.count()).where(ReviewRow.student_id == student_id)
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_review(row: ReviewRow) -> Review:
    return Review(
        id=row.id,
        student_id=row.student_id,
        course_id=row.course_id,
        rating=row.rating,
        created_at=row.created_at,
        comment=row.comment,
    )
