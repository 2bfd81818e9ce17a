from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.course import Lesson, LessonContent


class LessonRepo(Protocol):
    async def get(self, lesson_id: UUID) -> Lesson | None: ...
    async def get_in_course(self, lesson_id: UUID, course_id: UUID) -> Lesson | None: ...
    async def add(self, lesson: Lesson) -> None: ...
    async def remove(self, lesson_id: UUID) -> bool: ...
    async def list_ids(self, course_id: UUID) -> list[UUID]: ...
    async def set_content(self, lesson_id: UUID, content: LessonContent) -> None: ...


class InMemoryLessonRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Lesson] = {}

    async def get(self, lesson_id: UUID) -> Lesson | None:
        return self._by_id.get(lesson_id)

    async def get_in_course(self, lesson_id: UUID, course_id: UUID) -> Lesson | None:
        lesson = self._by_id.get(lesson_id)
        if lesson is None or lesson.course_id != course_id:
            return None
        return lesson

    async def add(self, lesson: Lesson) -> None:
        if lesson.id in self._by_id:
            raise ValueError("lesson already exists")
        self._by_id[lesson.id] = lesson

    async def remove(self, lesson_id: UUID) -> bool:
        return self._by_id.pop(lesson_id, None) is not None

    async def list_ids(self, course_id: UUID) -> list[UUID]:
        lessons = [l for l in self._by_id.values() if l.course_id == course_id]
        return [l.id for l in sorted(lessons, key=lambda l: l.position)]

    async def set_content(self, lesson_id: UUID, content: LessonContent) -> None:
        lesson = self._by_id.get(lesson_id)
        if lesson is None:
            raise KeyError("lesson not found")
        self._by_id[lesson_id] = replace(lesson, content=content)
