"""PostgreSQL implementation of ActivityRepo (append-only)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import ActivityRow
from coursetrack.models.activity import Activity


class PgActivityRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, activity: Activity) -> None:
        self._session.add(
            ActivityRow(
                id=activity.id,
                user_id=activity.user_id,
                type=activity.type,
                message=activity.message,
                created_at=activity.created_at,
                course_id=activity.course_id,
                lesson_id=activity.lesson_id,
                quiz_id=activity.quiz_id,
            )
        )
        await self._session.flush()

    async def list_by_user(
        self, user_id: UUID, *, limit: int = 20, offset: int = 0
    ) -> list[Activity]:
        stmt = (
            select(ActivityRow)
            .where(ActivityRow.user_id == user_id)
            .order_by(ActivityRow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            Activity(
                id=r.id,
                user_id=r.user_id,
                type=r.type,  # type: ignore[arg-type]
                message=r.message,
                created_at=r.created_at,
                course_id=r.course_id,
                lesson_id=r.lesson_id,
                quiz_id=r.quiz_id,
            )
            for r in rows
        ]

    async def count_by_user(self, user_id: UUID) -> int:
        stmt = select(func.count()).where(ActivityRow.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one()
