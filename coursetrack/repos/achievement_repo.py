from __future__ import annotations

from typing import Protocol
from uuid import UUID

from coursetrack.models.achievement import DEFAULT_ACHIEVEMENTS, Achievement


class AchievementRepo(Protocol):
    async def list_definitions(self) -> list[Achievement]: ...
    async def get_earned(self, user_id: UUID) -> dict[str, int]: ...
    async def add_earned(
        self, user_id: UUID, codes: list[str], earned_at: int
    ) -> list[str]: ...


class InMemoryAchievementRepo:
    def __init__(self, definitions: tuple[Achievement, ...] = DEFAULT_ACHIEVEMENTS) -> None:
        self._definitions = definitions
        self._earned: dict[UUID, dict[str, int]] = {}

    async def list_definitions(self) -> list[Achievement]:
        return list(self._definitions)

    async def get_earned(self, user_id: UUID) -> dict[str, int]:
        """code -> earned_at for everything the user holds."""
        return dict(self._earned.get(user_id, {}))

    async def add_earned(
        self, user_id: UUID, codes: list[str], earned_at: int
    ) -> list[str]:
        """Add-if-absent; returns only the codes that were actually granted."""
        held = self._earned.setdefault(user_id, {})
        granted = []
        for code in codes:
            if code not in held:
                held[code] = earned_at
                granted.append(code)
        return granted
