from __future__ import annotations

from typing import Protocol
from uuid import UUID

from coursetrack.models.activity import Activity


class ActivityRepo(Protocol):
    async def add(self, activity: Activity) -> None: ...
    async def list_by_user(
        self, user_id: UUID, *, limit: int = 20, offset: int = 0
    ) -> list[Activity]: ...
    async def count_by_user(self, user_id: UUID) -> int: ...


class InMemoryActivityRepo:
    def __init__(self) -> None:
        self._items: list[Activity] = []

    async def add(self, activity: Activity) -> None:
        self._items.append(activity)

    async def list_by_user(
        self, user_id: UUID, *, limit: int = 20, offset: int = 0
    ) -> list[Activity]:
        # newest first; insertion order breaks ties within the same second
        mine = [
            (i, a) for i, a in enumerate(self._items) if a.user_id == user_id
        ]
        mine.sort(key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [a for _, a in mine[offset : offset + limit]]

    async def count_by_user(self, user_id: UUID) -> int:
        return sum(1 for a in self._items if a.user_id == user_id)
