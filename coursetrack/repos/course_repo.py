from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.course import Course


class CourseRepo(Protocol):
    async def get(self, course_id: UUID) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def set_total_lessons(self, course_id: UUID, total: int) -> None: ...
    async def adjust_enrollment_count(self, course_id: UUID, delta: int) -> None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}

    async def get(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    async def set_total_lessons(self, course_id: UUID, total: int) -> None:
        c = self._by_id.get(course_id)
        if c is not None:
            self._by_id[course_id] = replace(c, total_lessons=total)

    async def adjust_enrollment_count(self, course_id: UUID, delta: int) -> None:
        c = self._by_id.get(course_id)
        if c is not None:
            count = max(0, c.enrollment_count + delta)
            self._by_id[course_id] = replace(c, enrollment_count=count)
