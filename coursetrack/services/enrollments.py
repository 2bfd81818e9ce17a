"""Enrollment lifecycle: enroll, paid confirmation, read, list, delete."""

from __future__ import annotations

import logging
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from coursetrack.models.course import Course
from coursetrack.models.enrollment import Enrollment
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import Stores
from coursetrack.services.events import Outbox, StudentEnrolled
from coursetrack.services.progress import Reconciled, recompute_progress

logger = logging.getLogger(__name__)


async def _enrollable_course(stores: Stores, course_id: UUID) -> Course:
    course = await stores.courses.get(course_id)
    if course is None:
        raise NotFoundError("course not found")
    if not course.is_published:
        raise InvalidStateError("course is not published")
    return course


async def _create(
    stores: Stores,
    outbox: Outbox,
    course: Course,
    student_id: UUID,
    *,
    enrollment_type: str,
    payment_ref: str | None = None,
) -> Enrollment:
    enrollment = Enrollment.new(
        student_id=student_id,
        course_id=course.id,
        enrolled_at=now_ts(),
        enrollment_type=enrollment_type,
        payment_ref=payment_ref,
    )
    try:
        await stores.enrollments.add(enrollment)
    except ValueError:
        raise ConflictError("already enrolled in this course") from None
    await stores.courses.adjust_enrollment_count(course.id, +1)

    outbox.publish(
        StudentEnrolled(
            user_id=student_id,
            course_id=course.id,
            enrollment_id=enrollment.id,
            course_title=course.title,
            occurred_at=enrollment.enrolled_at,
        )
    )
    logger.info(
        "Student %s enrolled in course %s (%s)",
        student_id,
        course.id,
        enrollment_type,
        extra={"user_id": str(student_id), "course_id": str(course.id)},
    )
    return enrollment


async def enroll(
    stores: Stores, outbox: Outbox, *, student_id: UUID, course_id: UUID
) -> Enrollment:
    """Free enrollment.  Paid courses go through confirm_paid_enrollment."""
    course = await _enrollable_course(stores, course_id)
    if await stores.enrollments.get_for(student_id, course_id) is not None:
        raise ConflictError("already enrolled in this course")
    if not course.is_free:
        raise InvalidStateError("payment required")
    return await _create(stores, outbox, course, student_id, enrollment_type="free")


async def confirm_paid_enrollment(
    stores: Stores,
    outbox: Outbox,
    *,
    student_id: UUID,
    course_id: UUID,
    payment_ref: str,
) -> tuple[Enrollment, bool]:
    """Create the enrollment once the payment collaborator confirmed payment.

    Returns (enrollment, created).  A repeated confirmation returns the
    existing enrollment untouched.
    """
    course = await _enrollable_course(stores, course_id)
    existing = await stores.enrollments.get_for(student_id, course_id)
    if existing is not None:
        logger.info(
            "Payment %s for existing enrollment %s ignored", payment_ref, existing.id
        )
        return existing, False
    enrollment = await _create(
        stores,
        outbox,
        course,
        student_id,
        enrollment_type="paid",
        payment_ref=payment_ref,
    )
    return enrollment, True


async def get_enrollment(
    stores: Stores, outbox: Outbox, *, enrollment_id: UUID, caller: Principal
) -> Reconciled:
    enrollment = await stores.enrollments.get(enrollment_id)
    if enrollment is None:
        raise NotFoundError("enrollment not found")
    if not (caller.is_user(enrollment.student_id) or caller.is_admin()):
        raise ForbiddenError("not your enrollment")
    return await recompute_progress(stores, enrollment_id, outbox)


async def list_enrollments(
    stores: Stores, *, student_id: UUID, status: str | None = None
) -> list[Enrollment]:
    return await stores.enrollments.list_by_student(student_id, status)


async def delete_enrollment(stores: Stores, *, enrollment_id: UUID) -> None:
    enrollment = await stores.enrollments.get(enrollment_id)
    if enrollment is None:
        raise NotFoundError("enrollment not found")
    if await stores.enrollments.delete(enrollment_id):
        await stores.courses.adjust_enrollment_count(enrollment.course_id, -1)
        logger.info(
            "Enrollment %s deleted",
            enrollment_id,
            extra={"enrollment_id": str(enrollment_id)},
        )
