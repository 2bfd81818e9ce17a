"""Lesson add/remove hooks for the catalog collaborator.

Course CRUD lives elsewhere; these two operations exist because changing
the lesson list moves every enrollment's percentage and can reopen
finished enrollments.
"""

from __future__ import annotations

import logging
from uuid import UUID

from coursetrack.core.errors import ForbiddenError, NotFoundError
from coursetrack.models.course import Course, Lesson, LessonContent
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import Stores
from coursetrack.services.events import Outbox
from coursetrack.services.progress import recompute_course

logger = logging.getLogger(__name__)


async def _editable_course(stores: Stores, course_id: UUID, caller: Principal) -> Course:
    course = await stores.courses.get(course_id)
    if course is None:
        raise NotFoundError("course not found")
    if not (caller.is_user(course.instructor_id) or caller.is_admin()):
        raise ForbiddenError("only the course instructor can edit lessons")
    return course


async def add_lesson(
    stores: Stores,
    outbox: Outbox,
    *,
    course_id: UUID,
    title: str,
    content: LessonContent,
    caller: Principal,
    position: int | None = None,
) -> Lesson:
    await _editable_course(stores, course_id, caller)
    if position is None:
        position = len(await stores.lessons.list_ids(course_id)) + 1
    lesson = Lesson.new(course_id=course_id, title=title, position=position, content=content)
    await stores.lessons.add(lesson)
    logger.info(
        "Lesson %s added to course %s",
        lesson.id,
        course_id,
        extra={"course_id": str(course_id), "lesson_id": str(lesson.id)},
    )
    await recompute_course(stores, course_id, outbox)
    return lesson


async def remove_lesson(
    stores: Stores,
    outbox: Outbox,
    *,
    course_id: UUID,
    lesson_id: UUID,
    caller: Principal,
) -> None:
    lesson = await stores.lessons.get_in_course(lesson_id, course_id)
    if lesson is None:
        raise NotFoundError("lesson not found in this course")
    await _editable_course(stores, lesson.course_id, caller)
    await stores.lessons.remove(lesson_id)
    logger.info(
        "Lesson %s removed from course %s",
        lesson_id,
        lesson.course_id,
        extra={"course_id": str(lesson.course_id), "lesson_id": str(lesson_id)},
    )
    await recompute_course(stores, lesson.course_id, outbox)
