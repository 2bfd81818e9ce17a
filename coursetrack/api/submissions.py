"""Assignment submission endpoints."""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from coursetrack.api.dependencies import get_outbox, require_user
from coursetrack.models.principal import Principal
from coursetrack.models.submission import AssignmentSubmission
from coursetrack.repos.stores import open_stores
from coursetrack.services import submissions
from coursetrack.services.events import Outbox

router = APIRouter(tags=["submissions"])


class SubmissionIn(BaseModel):
    # blank content is rejected by the service with field detail
    content: str


class GradeIn(BaseModel):
    grade: Literal[0, 1]
    feedback: str | None = None


class SubmissionOut(BaseModel):
    id: UUID
    lesson_id: UUID
    course_id: UUID
    student_id: UUID
    content: str
    submitted_at: int
    status: str
    grade: int | None = None
    feedback: str | None = None
    graded_at: int | None = None


class SubmitOut(BaseModel):
    submission: SubmissionOut
    created: bool
    lesson_completed: bool


def _to_out(s: AssignmentSubmission) -> SubmissionOut:
    return SubmissionOut(
        id=s.id,
        lesson_id=s.lesson_id,
        course_id=s.course_id,
        student_id=s.student_id,
        content=s.content,
        submitted_at=s.submitted_at,
        status=s.status,
        grade=s.grade,
        feedback=s.feedback,
        graded_at=s.graded_at,
    )


@router.post(
    "/v1/courses/{course_id}/lessons/{lesson_id}/submission",
    response_model=SubmitOut,
)
async def submit(
    course_id: UUID,
    lesson_id: UUID,
    body: SubmissionIn,
    response: Response,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> SubmitOut:
    async with open_stores() as stores:
        outcome = await submissions.submit_assignment(
            stores,
            outbox,
            lesson_id=lesson_id,
            course_id=course_id,
            student_id=principal.id,
            content=body.content,
        )
    response.status_code = (
        status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    )
    return SubmitOut(
        submission=_to_out(outcome.submission),
        created=outcome.created,
        lesson_completed=outcome.lesson_completion is not None,
    )


@router.get(
    "/v1/courses/{course_id}/lessons/{lesson_id}/submission",
    response_model=SubmissionOut | None,
)
async def get_mine(
    course_id: UUID,
    lesson_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> SubmissionOut | None:
    async with open_stores() as stores:
        sub = await submissions.get_submission(
            stores, lesson_id=lesson_id, student_id=principal.id
        )
    if sub is None or sub.course_id != course_id:
        return None
    return _to_out(sub)


@router.get(
    "/v1/courses/{course_id}/submissions/pending",
    response_model=list[SubmissionOut],
)
async def list_pending(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> list[SubmissionOut]:
    async with open_stores() as stores:
        items = await submissions.list_pending_submissions(
            stores, course_id=course_id, caller=principal
        )
    return [_to_out(s) for s in items]


@router.post("/v1/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def grade(
    submission_id: UUID,
    body: GradeIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> SubmissionOut:
    async with open_stores() as stores:
        graded = await submissions.grade_submission(
            stores,
            submission_id=submission_id,
            grade=body.grade,
            feedback=body.feedback,
            caller=principal,
        )
    return _to_out(graded)
