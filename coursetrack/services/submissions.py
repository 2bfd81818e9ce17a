"""Assignment submissions.

Submitting is what completes an assignment lesson; grading happens later
and never takes the completion back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailure,
)
from coursetrack.core.metrics import ASSIGNMENT_SUBMISSIONS
from coursetrack.models.principal import Principal
from coursetrack.models.submission import AssignmentSubmission
from coursetrack.repos.stores import Stores
from coursetrack.services.events import AssignmentSubmitted, Outbox
from coursetrack.services.progress import LessonCompletion, complete_lesson

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    submission: AssignmentSubmission
    created: bool
    lesson_completion: LessonCompletion | None = None


async def submit_assignment(
    stores: Stores,
    outbox: Outbox,
    *,
    lesson_id: UUID,
    course_id: UUID,
    student_id: UUID,
    content: str,
) -> SubmissionOutcome:
    if not content or not content.strip():
        raise ValidationFailure(
            "submission content is empty", fields={"content": "must not be blank"}
        )

    lesson = await stores.lessons.get_in_course(lesson_id, course_id)
    if lesson is None:
        raise NotFoundError("lesson not found in this course")
    if lesson.type != "assignment":
        raise InvalidStateError("lesson is not an assignment")

    enrollment = await stores.enrollments.get_for(student_id, course_id)
    if enrollment is None:
        raise ForbiddenError("not enrolled in this course")

    submission, created = await stores.submissions.upsert(
        lesson_id=lesson_id,
        course_id=course_id,
        student_id=student_id,
        content=content,
        submitted_at=now_ts(),
    )
    ASSIGNMENT_SUBMISSIONS.labels(kind="first" if created else "resubmission").inc()
    outbox.publish(
        AssignmentSubmitted(
            user_id=student_id,
            course_id=course_id,
            lesson_id=lesson_id,
            lesson_title=lesson.title,
            resubmission=not created,
            occurred_at=submission.submitted_at,
        )
    )

    completion = None
    if not enrollment.has_completed(lesson_id):
        completion = await complete_lesson(
            stores,
            outbox,
            enrollment_id=enrollment.id,
            lesson_id=lesson_id,
            caller_id=student_id,
        )

    logger.info(
        "Assignment %s %s by %s",
        lesson_id,
        "submitted" if created else "resubmitted",
        student_id,
        extra={"lesson_id": str(lesson_id), "user_id": str(student_id)},
    )
    return SubmissionOutcome(
        submission=submission, created=created, lesson_completion=completion
    )


async def get_submission(
    stores: Stores, *, lesson_id: UUID, student_id: UUID
) -> AssignmentSubmission | None:
    return await stores.submissions.get_for(lesson_id, student_id)


async def _require_instructor(
    stores: Stores, course_id: UUID, caller: Principal
) -> None:
    course = await stores.courses.get(course_id)
    if course is None:
        raise NotFoundError("course not found")
    if not (caller.is_user(course.instructor_id) or caller.is_admin()):
        raise ForbiddenError("only the course instructor can grade submissions")


async def grade_submission(
    stores: Stores,
    *,
    submission_id: UUID,
    grade: int,
    feedback: str | None,
    caller: Principal,
) -> AssignmentSubmission:
    if grade not in (0, 1):
        raise ValidationFailure("grade must be 0 or 1", fields={"grade": "0 or 1"})
    submission = await stores.submissions.get(submission_id)
    if submission is None:
        raise NotFoundError("submission not found")
    await _require_instructor(stores, submission.course_id, caller)

    graded = await stores.submissions.set_grade(
        submission_id, grade=grade, feedback=feedback, graded_at=now_ts()
    )
    if graded is None:
        raise NotFoundError("submission not found")
    logger.info(
        "Submission %s graded %s",
        submission_id,
        "pass" if grade == 1 else "fail",
        extra={"lesson_id": str(submission.lesson_id)},
    )
    return graded


async def list_pending_submissions(
    stores: Stores, *, course_id: UUID, caller: Principal
) -> list[AssignmentSubmission]:
    await _require_instructor(stores, course_id, caller)
    return await stores.submissions.list_pending(course_id)
