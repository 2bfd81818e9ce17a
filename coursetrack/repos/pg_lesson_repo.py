"""PostgreSQL implementation of LessonRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import LessonRow
from coursetrack.models.course import (
    Lesson,
    LessonContent,
    content_from_dict,
    content_to_dict,
)


class PgLessonRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, lesson_id: UUID) -> Lesson | None:
        stmt = select(LessonRow).where(LessonRow.id == lesson_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson(row)

    async def get_in_course(self, lesson_id: UUID, course_id: UUID) -> Lesson | None:
        stmt = select(LessonRow).where(
            LessonRow.id == lesson_id, LessonRow.course_id == course_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson(row)

    async def add(self, lesson: Lesson) -> None:
        row = LessonRow(
            id=lesson.id,
            course_id=lesson.course_id,
            title=lesson.title,
            position=lesson.position,
            type=lesson.type,
            content=content_to_dict(lesson.content),
        )
        self._session.add(row)
        await self._session.flush()

    async def remove(self, lesson_id: UUID) -> bool:
        result = await self._session.execute(
            delete(LessonRow).where(LessonRow.id == lesson_id)
        )
        return result.rowcount == 1

    async def list_ids(self, course_id: UUID) -> list[UUID]:
        stmt = (
            select(LessonRow.id)
            .where(LessonRow.course_id == course_id)
            .order_by(LessonRow.position)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_content(self, lesson_id: UUID, content: LessonContent) -> None:
        stmt = (
            update(LessonRow)
            .where(LessonRow.id == lesson_id)
            .values(type=content.kind, content=content_to_dict(content))
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("lesson not found")


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        position=row.position,
        content=content_from_dict(row.content),
    )
