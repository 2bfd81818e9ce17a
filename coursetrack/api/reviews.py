from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from coursetrack.api.dependencies import get_outbox, require_user
from coursetrack.models.principal import Principal
from coursetrack.models.review import Review
from coursetrack.repos.stores import open_stores
from coursetrack.services import reviews
from coursetrack.services.events import Outbox

router = APIRouter(prefix="/v1/courses/{course_id}/reviews", tags=["reviews"])


class ReviewIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=5000)


class ReviewOut(BaseModel):
    id: UUID
    student_id: UUID
    course_id: UUID
    rating: int
    comment: str | None
    created_at: int


def _to_out(r: Review) -> ReviewOut:
    return ReviewOut(
        id=r.id,
        student_id=r.student_id,
        course_id=r.course_id,
        rating=r.rating,
        comment=r.comment,
        created_at=r.created_at,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReviewOut)
async def submit_review(
    course_id: UUID,
    body: ReviewIn,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> ReviewOut:
    async with open_stores() as stores:
        review = await reviews.submit_review(
            stores,
            outbox,
            student_id=principal.id,
            course_id=course_id,
            rating=body.rating,
            comment=body.comment,
        )
    return _to_out(review)


@router.get("", response_model=list[ReviewOut])
async def list_reviews(
    course_id: UUID,
    _principal: Annotated[Principal, Depends(require_user)],
) -> list[ReviewOut]:
    async with open_stores() as stores:
        items = await reviews.list_reviews(stores, course_id=course_id)
    return [_to_out(r) for r in items]
