from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.quiz import Quiz, QuizAnalytics


class QuizRepo(Protocol):
    async def get(self, quiz_id: UUID) -> Quiz | None: ...
    async def add(self, quiz: Quiz) -> None: ...
    async def update(self, quiz: Quiz) -> bool: ...
    async def delete(self, quiz_id: UUID) -> bool: ...
    async def record_attempt(
        self, quiz_id: UUID, *, passed: bool, percentage: int
    ) -> None: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Quiz] = {}

    async def get(self, quiz_id: UUID) -> Quiz | None:
        return self._by_id.get(quiz_id)

    async def add(self, quiz: Quiz) -> None:
        if quiz.id in self._by_id:
            raise ValueError("quiz already exists")
        self._by_id[quiz.id] = quiz

    async def update(self, quiz: Quiz) -> bool:
        """Replace the authored fields; analytics are owned by record_attempt."""
        current = self._by_id.get(quiz.id)
        if current is None:
            return False
        self._by_id[quiz.id] = replace(quiz, analytics=current.analytics)
        return True

    async def delete(self, quiz_id: UUID) -> bool:
        return self._by_id.pop(quiz_id, None) is not None

    async def record_attempt(
        self, quiz_id: UUID, *, passed: bool, percentage: int
    ) -> None:
        q = self._by_id.get(quiz_id)
        if q is None:
            return
        a = q.analytics
        self._by_id[quiz_id] = replace(
            q,
            analytics=QuizAnalytics(
                total_attempts=a.total_attempts + 1,
                passed_attempts=a.passed_attempts + (1 if passed else 0),
                percentage_sum=a.percentage_sum + percentage,
            ),
        )
