from __future__ import annotations

from typing import Protocol
from uuid import UUID

from coursetrack.models.review import Review


class ReviewRepo(Protocol):
    async def get_for(self, student_id: UUID, course_id: UUID) -> Review | None: ...
    async def add(self, review: Review) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[Review]: ...
    async def count_by_student(self, student_id: UUID) -> int: ...


class InMemoryReviewRepo:
    def __init__(self) -> None:
        self._by_pair: dict[tuple[UUID, UUID], Review] = {}

    async def get_for(self, student_id: UUID, course_id: UUID) -> Review | None:
        return self._by_pair.get((student_id, course_id))

    async def add(self, review: Review) -> None:
        pair = (review.student_id, review.course_id)
        if pair in self._by_pair:
            raise ValueError("review already exists")
        self._by_pair[pair] = review

    async def list_by_course(self, course_id: UUID) -> list[Review]:
        items = [r for r in self._by_pair.values() if r.course_id == course_id]
        return sorted(items, key=lambda r: r.created_at, reverse=True)

    async def count_by_student(self, student_id: UUID) -> int:
        return sum(1 for r in self._by_pair.values() if r.student_id == student_id)
