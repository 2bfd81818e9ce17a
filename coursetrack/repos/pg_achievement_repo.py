"""PostgreSQL implementation of AchievementRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import AchievementRow, UserAchievementRow
from coursetrack.models.achievement import Achievement


class PgAchievementRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_definitions(self) -> list[Achievement]:
        rows = (await self._session.execute(select(AchievementRow))).scalars().all()
        return [
            Achievement(
                code=r.code,
                title=r.title,
                description=r.description,
                icon=r.icon,
                family=r.family,  # type: ignore[arg-type]
                threshold=r.threshold,
                points=r.points,
            )
            for r in rows
        ]

    async def get_earned(self, user_id: UUID) -> dict[str, int]:
        stmt = select(UserAchievementRow.code, UserAchievementRow.earned_at).where(
            UserAchievementRow.user_id == user_id
        )
        return {code: at for code, at in (await self._session.execute(stmt)).all()}

    async def add_earned(
        self, user_id: UUID, codes: list[str], earned_at: int
    ) -> list[str]:
        granted = []
        for code in codes:
            stmt = (
                pg_insert(UserAchievementRow)
                .values(user_id=user_id, code=code, earned_at=earned_at)
                .on_conflict_do_nothing(index_elements=["user_id", "code"])
            )
            if (await self._session.execute(stmt)).rowcount == 1:
                granted.append(code)
        return granted
