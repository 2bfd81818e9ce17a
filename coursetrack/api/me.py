"""The caller's own timeline and badges."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from coursetrack.api.dependencies import require_user
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import open_stores
from coursetrack.services import achievements, notifier

router = APIRouter(prefix="/v1/me", tags=["me"])


class ActivityOut(BaseModel):
    id: UUID
    type: str
    message: str
    created_at: int
    course_id: UUID | None = None
    lesson_id: UUID | None = None
    quiz_id: UUID | None = None


class ActivityPage(BaseModel):
    items: list[ActivityOut]
    total: int
    limit: int
    offset: int


class AchievementOut(BaseModel):
    code: str
    title: str
    description: str
    icon: str
    points: int
    earned_at: int


@router.get("/activities", response_model=ActivityPage)
async def my_activities(
    principal: Annotated[Principal, Depends(require_user)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ActivityPage:
    async with open_stores() as stores:
        items, total = await notifier.list_activities(
            stores, principal.id, limit=limit, offset=offset
        )
    return ActivityPage(
        items=[
            ActivityOut(
                id=a.id,
                type=a.type,
                message=a.message,
                created_at=a.created_at,
                course_id=a.course_id,
                lesson_id=a.lesson_id,
                quiz_id=a.quiz_id,
            )
            for a in items
        ],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/achievements", response_model=list[AchievementOut])
async def my_achievements(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[AchievementOut]:
    async with open_stores() as stores:
        earned = await achievements.list_earned_achievements(stores, principal.id)
    return [
        AchievementOut(
            code=e.achievement.code,
            title=e.achievement.title,
            description=e.achievement.description,
            icon=e.achievement.icon,
            points=e.achievement.points,
            earned_at=e.earned_at,
        )
        for e in earned
    ]
