"""Lesson completion and progress reconciliation.

recompute_progress is the only place that derives percentage_complete and
the active/completed status.  Everything that can move either number
(completing a lesson, adding or removing a lesson, reading an enrollment)
goes through it, so the derivation lives in exactly one function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import ForbiddenError, NotFoundError
from coursetrack.core.metrics import LESSON_COMPLETIONS
from coursetrack.models.enrollment import CompletedLesson, Enrollment
from coursetrack.repos.stores import Stores
from coursetrack.services.events import CourseCompleted, LessonCompleted, Outbox

logger = logging.getLogger(__name__)

Transition = Literal["completed", "reopened"]


@dataclass(frozen=True, slots=True)
class Reconciled:
    enrollment: Enrollment
    total_lessons: int
    transition: Transition | None = None


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    enrollment: Enrollment
    total_lessons: int
    newly_completed: bool
    course_completed: bool


def progress_percentage(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(min(100.0, max(0.0, 100.0 * completed / total)), 2)


async def recompute_progress(
    stores: Stores, enrollment_id: UUID, outbox: Outbox | None = None
) -> Reconciled:
    """Reconcile one enrollment against the live lesson list of its course.

    Only completed lessons that still exist in the course count.  A course
    that gained lessons after the student finished goes back to active.
    Publishes CourseCompleted on the active -> completed transition.
    Reads the enrollment under its row lock so concurrent completions on
    one enrollment reconcile one after the other.
    """
    enrollment = await stores.enrollments.get(enrollment_id, for_update=True)
    if enrollment is None:
        raise NotFoundError("enrollment not found")

    live = await stores.lessons.list_ids(enrollment.course_id)
    total = len(live)
    done = len(enrollment.completed_lesson_ids() & set(live))
    percentage = progress_percentage(done, total)

    status = enrollment.status
    completed_at = enrollment.completed_at
    transition: Transition | None = None
    if total > 0 and done == total and not enrollment.is_completed:
        status, completed_at, transition = "completed", now_ts(), "completed"
    elif enrollment.is_completed and done < total:
        status, completed_at, transition = "active", None, "reopened"

    if (percentage, status, completed_at) != (
        enrollment.percentage_complete,
        enrollment.status,
        enrollment.completed_at,
    ):
        await stores.enrollments.set_progress(
            enrollment_id,
            percentage=percentage,
            status=status,
            completed_at=completed_at,
        )
        refreshed = await stores.enrollments.get(enrollment_id)
        if refreshed is None:
            raise NotFoundError("enrollment not found")
        enrollment = refreshed

    if transition is not None:
        logger.info(
            "Enrollment %s %s (%d/%d lessons)",
            enrollment_id,
            transition,
            done,
            total,
            extra={"enrollment_id": str(enrollment_id)},
        )
    if transition == "completed" and outbox is not None:
        course = await stores.courses.get(enrollment.course_id)
        outbox.publish(
            CourseCompleted(
                user_id=enrollment.student_id,
                course_id=enrollment.course_id,
                enrollment_id=enrollment.id,
                course_title=course.title if course else "",
                occurred_at=completed_at or now_ts(),
            )
        )

    return Reconciled(enrollment=enrollment, total_lessons=total, transition=transition)


async def complete_lesson(
    stores: Stores,
    outbox: Outbox,
    *,
    enrollment_id: UUID,
    lesson_id: UUID,
    caller_id: UUID,
    time_spent: int | None = 0,
) -> LessonCompletion:
    """Mark a lesson complete for the caller's own enrollment.

    Repeat calls are no-ops for the completed set and for time accounting,
    but still reconcile progress.
    """
    enrollment = await stores.enrollments.get(enrollment_id, for_update=True)
    if enrollment is None:
        raise NotFoundError("enrollment not found")
    if enrollment.student_id != caller_id:
        raise ForbiddenError("not your enrollment")

    lesson = await stores.lessons.get_in_course(lesson_id, enrollment.course_id)
    if lesson is None:
        raise NotFoundError("lesson not found in this course")

    seconds = max(0, int(time_spent or 0))
    now = now_ts()
    added = await stores.enrollments.add_completed_lesson(
        enrollment_id,
        CompletedLesson(lesson_id=lesson_id, completed_at=now, time_spent=seconds),
    )
    LESSON_COMPLETIONS.labels(result="new" if added else "repeat").inc()

    if added:
        outbox.publish(
            LessonCompleted(
                user_id=enrollment.student_id,
                course_id=enrollment.course_id,
                enrollment_id=enrollment_id,
                lesson_id=lesson_id,
                lesson_title=lesson.title,
                occurred_at=now,
            )
        )

    result = await recompute_progress(stores, enrollment_id, outbox)
    await stores.courses.set_total_lessons(enrollment.course_id, result.total_lessons)

    logger.info(
        "Lesson %s %s for enrollment %s",
        lesson_id,
        "completed" if added else "already complete",
        enrollment_id,
        extra={
            "enrollment_id": str(enrollment_id),
            "lesson_id": str(lesson_id),
            "user_id": str(caller_id),
        },
    )
    return LessonCompletion(
        enrollment=result.enrollment,
        total_lessons=result.total_lessons,
        newly_completed=added,
        course_completed=result.transition == "completed",
    )


async def recompute_course(
    stores: Stores, course_id: UUID, outbox: Outbox | None = None
) -> int:
    """Refresh the cached lesson count and reconcile every enrollment.

    Returns the number of enrollments whose status flipped.
    """
    live = await stores.lessons.list_ids(course_id)
    await stores.courses.set_total_lessons(course_id, len(live))

    flipped = 0
    for enrollment_id in await stores.enrollments.list_ids_by_course(course_id):
        result = await recompute_progress(stores, enrollment_id, outbox)
        if result.transition is not None:
            flipped += 1
    logger.info(
        "Recomputed course %s: %d lessons, %d status changes",
        course_id,
        len(live),
        flipped,
        extra={"course_id": str(course_id)},
    )
    return flipped
