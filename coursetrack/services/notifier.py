"""Activity and achievement notifier.

Runs after the primary mutation committed.  Nothing in here may fail the
request that produced the events: every error is logged, counted in
NOTIFICATION_FAILURES and the event is pushed to the dead-letter queue.

Two dispatch modes (NOTIFY_MODE):
  inline: handle the events in-process, as a FastAPI background task
  queue:  enqueue them on the "notifications" queue for coursetrack.worker
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.config import SETTINGS
from coursetrack.core.metrics import ACHIEVEMENTS_GRANTED, NOTIFICATION_FAILURES
from coursetrack.middleware.request_context import current_request_id
from coursetrack.models.achievement import Achievement
from coursetrack.models.activity import Activity
from coursetrack.repos.stores import Stores, open_stores
from coursetrack.services import achievements as rules
from coursetrack.services.events import (
    AssignmentSubmitted,
    CertificateIssued,
    CourseCompleted,
    DomainEvent,
    LessonCompleted,
    QuizAttempted,
    ReviewSubmitted,
    StudentEnrolled,
    event_to_payload,
)
from coursetrack.services.task_queue import (
    DEAD_LETTER_QUEUE,
    NOTIFICATIONS_QUEUE,
    task_queue,
)

logger = logging.getLogger(__name__)


def activity_for(event: DomainEvent) -> Activity:
    """Timeline entry describing the event."""
    user_id = event.user_id
    at = event.occurred_at
    if isinstance(event, StudentEnrolled):
        return Activity.new(
            user_id=user_id,
            type="ENROLLMENT",
            message=f"Enrolled in {event.course_title}",
            created_at=at,
            course_id=event.course_id,
        )
    if isinstance(event, LessonCompleted):
        return Activity.new(
            user_id=user_id,
            type="LESSON_COMPLETE",
            message=f"Completed lesson {event.lesson_title}",
            created_at=at,
            course_id=event.course_id,
            lesson_id=event.lesson_id,
        )
    if isinstance(event, CourseCompleted):
        return Activity.new(
            user_id=user_id,
            type="COURSE_COMPLETE",
            message=f"Completed course {event.course_title}",
            created_at=at,
            course_id=event.course_id,
        )
    if isinstance(event, QuizAttempted):
        verb = "Passed" if event.passed else "Attempted"
        return Activity.new(
            user_id=user_id,
            type="QUIZ_ATTEMPT",
            message=f"{verb} quiz {event.quiz_title} ({event.percentage}%)",
            created_at=at,
            course_id=event.course_id,
            quiz_id=event.quiz_id,
        )
    if isinstance(event, AssignmentSubmitted):
        verb = "Resubmitted" if event.resubmission else "Submitted"
        return Activity.new(
            user_id=user_id,
            type="ASSIGNMENT_SUBMITTED",
            message=f"{verb} assignment {event.lesson_title}",
            created_at=at,
            course_id=event.course_id,
            lesson_id=event.lesson_id,
        )
    if isinstance(event, ReviewSubmitted):
        return Activity.new(
            user_id=user_id,
            type="REVIEW_SUBMITTED",
            message=f"Reviewed a course ({event.rating}/5)",
            created_at=at,
            course_id=event.course_id,
        )
    if isinstance(event, CertificateIssued):
        return Activity.new(
            user_id=user_id,
            type="CERTIFICATE_EARNED",
            message=f"Earned certificate {event.certificate_id}",
            created_at=at,
            course_id=event.course_id,
        )
    raise TypeError(f"no activity for {type(event).__name__}")


async def achievements_for(stores: Stores, event: DomainEvent) -> list[Achievement]:
    """Run the rule families the event can move."""
    uid = event.user_id
    if isinstance(event, StudentEnrolled):
        return await rules.check_enrollment_achievements(stores, uid)
    if isinstance(event, LessonCompleted):
        return await rules.check_lesson_achievements(stores, uid)
    if isinstance(event, CourseCompleted):
        return await rules.check_course_completion_achievements(stores, uid)
    if isinstance(event, QuizAttempted):
        found = await rules.check_quiz_score_achievements(stores, uid, event.percentage)
        if event.passed:
            found += await rules.check_quiz_pass_achievements(stores, uid)
        return found
    if isinstance(event, ReviewSubmitted):
        return await rules.check_review_achievements(stores, uid)
    if isinstance(event, CertificateIssued):
        return await rules.check_certificate_achievements(stores, uid)
    return []


async def record_activity(stores: Stores, event: DomainEvent) -> None:
    await stores.activities.add(activity_for(event))


async def award_achievements(stores: Stores, event: DomainEvent) -> list[str]:
    """Grant what the event unlocked; one ACHIEVEMENT_EARNED entry per grant."""
    found = await achievements_for(stores, event)
    if not found:
        return []
    by_code = {a.code: a for a in found}
    now = now_ts()
    granted = await stores.achievements.add_earned(event.user_id, list(by_code), now)
    for code in granted:
        achievement = by_code[code]
        await stores.activities.add(
            Activity.new(
                user_id=event.user_id,
                type="ACHIEVEMENT_EARNED",
                message=f"Earned achievement {achievement.title}",
                created_at=now,
                course_id=getattr(event, "course_id", None),
            )
        )
        ACHIEVEMENTS_GRANTED.labels(code=code).inc()
        logger.info(
            "User %s earned %s",
            event.user_id,
            code,
            extra={"user_id": str(event.user_id)},
        )
    return granted


_STAGES: tuple[tuple[str, Callable[[Stores, DomainEvent], Awaitable[object]]], ...] = (
    ("activity", record_activity),
    ("achievements", award_achievements),
)


async def notify(event: DomainEvent) -> bool:
    """Handle one event.  Never raises; returns False if any stage failed.

    Each stage runs in its own unit of work so a failing achievement
    evaluation does not roll back the activity entry.
    """
    failed: list[str] = []
    for stage, step in _STAGES:
        try:
            async with open_stores() as stores:
                await step(stores, event)
        except Exception:
            failed.append(stage)
            NOTIFICATION_FAILURES.labels(stage=stage).inc()
            logger.exception(
                "Notifier stage %s failed for %s",
                stage,
                type(event).__name__,
                extra={"event": type(event).__name__, "user_id": str(event.user_id)},
            )
    if failed:
        await dead_letter(event_to_payload(event), failed)
        return False
    return True


async def dead_letter(payload: dict, failed_stages: list[str]) -> None:
    entry = {**payload, "failed_stages": failed_stages}
    request_id = current_request_id()
    if request_id is not None:
        entry["request_id"] = request_id
    try:
        await task_queue.enqueue(DEAD_LETTER_QUEUE, entry)
    except Exception:
        # log-and-drop: there is nowhere further to put it
        NOTIFICATION_FAILURES.labels(stage="dead_letter").inc()
        logger.exception("Dead-lettering %s failed, dropping", payload.get("type"))


async def dispatch(events: list[DomainEvent]) -> None:
    """Background-task entry point for one request's committed events."""
    if SETTINGS.queue_notifications:
        for event in events:
            try:
                await task_queue.enqueue(NOTIFICATIONS_QUEUE, event_to_payload(event))
            except Exception:
                NOTIFICATION_FAILURES.labels(stage="dispatch").inc()
                logger.exception("Could not enqueue %s", type(event).__name__)
        return

    for event in events:
        await notify(event)


async def list_activities(
    stores: Stores, user_id: UUID, *, limit: int = 20, offset: int = 0
) -> tuple[list[Activity], int]:
    items = await stores.activities.list_by_user(user_id, limit=limit, offset=offset)
    total = await stores.activities.count_by_user(user_id)
    return items, total
