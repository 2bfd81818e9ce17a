"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import CourseRow
from coursetrack.models.course import Course


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_course(row)

    async def add(self, course: Course) -> None:
        row = CourseRow(
            id=course.id,
            slug=course.slug,
            title=course.title,
            instructor_id=course.instructor_id,
            status=course.status,
            price=course.price,
            certificate_enabled=course.certificate_enabled,
            total_lessons=course.total_lessons,
            enrollment_count=course.enrollment_count,
        )
        self._session.add(row)
        await self._session.flush()

    async def set_total_lessons(self, course_id: UUID, total: int) -> None:
        stmt = update(CourseRow).where(CourseRow.id == course_id).values(total_lessons=total)
        await self._session.execute(stmt)

    async def adjust_enrollment_count(self, course_id: UUID, delta: int) -> None:
        # single UPDATE so concurrent enrollments never lose an increment
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(
                enrollment_count=func.greatest(CourseRow.enrollment_count + delta, 0)
            )
        )
        await self._session.execute(stmt)


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        slug=row.slug,
        title=row.title,
        instructor_id=row.instructor_id,
        status=row.status,
        price=row.price,
        certificate_enabled=row.certificate_enabled,
        total_lessons=row.total_lessons,
        enrollment_count=row.enrollment_count,
    )
