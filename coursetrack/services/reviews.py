"""Course reviews: one per enrolled student and course."""

from __future__ import annotations

import logging
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import ConflictError, ForbiddenError, ValidationFailure
from coursetrack.models.review import Review
from coursetrack.repos.stores import Stores
from coursetrack.services.events import Outbox, ReviewSubmitted

logger = logging.getLogger(__name__)


async def submit_review(
    stores: Stores,
    outbox: Outbox,
    *,
    student_id: UUID,
    course_id: UUID,
    rating: int,
    comment: str | None = None,
) -> Review:
    if not 1 <= rating <= 5:
        raise ValidationFailure("rating out of range", fields={"rating": "1 to 5"})
    if await stores.enrollments.get_for(student_id, course_id) is None:
        raise ForbiddenError("only enrolled students can review a course")

    review = Review.new(
        student_id=student_id,
        course_id=course_id,
        rating=rating,
        created_at=now_ts(),
        comment=comment,
    )
    try:
        await stores.reviews.add(review)
    except ValueError:
        raise ConflictError("course already reviewed") from None

    outbox.publish(
        ReviewSubmitted(
            user_id=student_id,
            course_id=course_id,
            rating=rating,
            occurred_at=review.created_at,
        )
    )
    logger.info(
        "Review %d/5 for course %s by %s",
        rating,
        course_id,
        student_id,
        extra={"course_id": str(course_id), "user_id": str(student_id)},
    )
    return review


async def list_reviews(stores: Stores, *, course_id: UUID) -> list[Review]:
    return await stores.reviews.list_by_course(course_id)
