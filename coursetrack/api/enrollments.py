"""Enrollment ledger endpoints.

  POST   /v1/enrollments                                  free enrollment
  POST   /v1/enrollments/paid                             payment confirmation
  GET    /v1/enrollments                                  caller's enrollments
  GET    /v1/enrollments/{id}                             reconciled enrollment
  DELETE /v1/enrollments/{id}                             admin only
  POST   /v1/enrollments/{id}/lessons/{lesson_id}/complete
  POST   /v1/enrollments/{id}/certificate
"""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from coursetrack.api.dependencies import (
    get_outbox,
    require_any_role,
    require_role,
    require_user,
)
from coursetrack.models.enrollment import Enrollment
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import open_stores
from coursetrack.services import certificates, enrollments, progress
from coursetrack.services.events import Outbox

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class EnrollIn(BaseModel):
    course_id: UUID


class PaidEnrollIn(BaseModel):
    student_id: UUID
    course_id: UUID
    payment_ref: str = Field(min_length=1, max_length=255)


class CompleteLessonIn(BaseModel):
    # negative values are clamped to 0 by the service
    time_spent: int | None = 0


class CompletedLessonOut(BaseModel):
    lesson_id: UUID
    completed_at: int
    time_spent: int


class QuizRecordOut(BaseModel):
    quiz_id: UUID
    attempt_count: int
    best_score: int
    passed: bool


class CertificateOut(BaseModel):
    issued: bool
    certificate_id: str | None = None
    issued_at: int | None = None


class EnrollmentOut(BaseModel):
    id: UUID
    student_id: UUID
    course_id: UUID
    enrolled_at: int
    enrollment_type: str
    status: str
    percentage_complete: float
    total_time_spent: int
    completed_lessons: list[CompletedLessonOut]
    quiz_attempts: list[QuizRecordOut]
    certificate: CertificateOut
    completed_at: int | None = None


class ProgressOut(BaseModel):
    enrollment: EnrollmentOut
    total_lessons: int


class LessonCompletionOut(ProgressOut):
    newly_completed: bool
    course_completed: bool


def _to_out(e: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=e.id,
        student_id=e.student_id,
        course_id=e.course_id,
        enrolled_at=e.enrolled_at,
        enrollment_type=e.enrollment_type,
        status=e.status,
        percentage_complete=e.percentage_complete,
        total_time_spent=e.total_time_spent,
        completed_lessons=[
            CompletedLessonOut(
                lesson_id=c.lesson_id, completed_at=c.completed_at, time_spent=c.time_spent
            )
            for c in e.completed_lessons
        ],
        quiz_attempts=[
            QuizRecordOut(
                quiz_id=r.quiz_id,
                attempt_count=r.attempt_count,
                best_score=r.best_score,
                passed=r.passed,
            )
            for r in e.quiz_attempts
        ],
        certificate=CertificateOut(
            issued=e.certificate.issued,
            certificate_id=e.certificate.certificate_id,
            issued_at=e.certificate.issued_at,
        ),
        completed_at=e.completed_at,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED, response_model=EnrollmentOut)
async def enroll(
    body: EnrollIn,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> EnrollmentOut:
    async with open_stores() as stores:
        enrollment = await enrollments.enroll(
            stores, outbox, student_id=principal.id, course_id=body.course_id
        )
    return _to_out(enrollment)


@router.post("/paid", response_model=EnrollmentOut)
async def confirm_paid(
    body: PaidEnrollIn,
    response: Response,
    _principal: Annotated[Principal, Depends(require_any_role({"admin", "payments"}))],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> EnrollmentOut:
    async with open_stores() as stores:
        enrollment, created = await enrollments.confirm_paid_enrollment(
            stores,
            outbox,
            student_id=body.student_id,
            course_id=body.course_id,
            payment_ref=body.payment_ref,
        )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return _to_out(enrollment)


@router.get("", response_model=list[EnrollmentOut])
async def list_mine(
    principal: Annotated[Principal, Depends(require_user)],
    status_filter: Annotated[
        Literal["active", "completed"] | None, Query(alias="status")
    ] = None,
) -> list[EnrollmentOut]:
    async with open_stores() as stores:
        items = await enrollments.list_enrollments(
            stores, student_id=principal.id, status=status_filter
        )
    return [_to_out(e) for e in items]


@router.get("/{enrollment_id}", response_model=ProgressOut)
async def get_one(
    enrollment_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> ProgressOut:
    async with open_stores() as stores:
        result = await enrollments.get_enrollment(
            stores, outbox, enrollment_id=enrollment_id, caller=principal
        )
    return ProgressOut(
        enrollment=_to_out(result.enrollment), total_lessons=result.total_lessons
    )


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one(
    enrollment_id: UUID,
    _principal: Annotated[Principal, Depends(require_role("admin"))],
) -> Response:
    async with open_stores() as stores:
        await enrollments.delete_enrollment(stores, enrollment_id=enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{enrollment_id}/lessons/{lesson_id}/complete",
    response_model=LessonCompletionOut,
)
async def complete_lesson(
    enrollment_id: UUID,
    lesson_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
    body: CompleteLessonIn | None = None,
) -> LessonCompletionOut:
    async with open_stores() as stores:
        result = await progress.complete_lesson(
            stores,
            outbox,
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            caller_id=principal.id,
            time_spent=body.time_spent if body else 0,
        )
    return LessonCompletionOut(
        enrollment=_to_out(result.enrollment),
        total_lessons=result.total_lessons,
        newly_completed=result.newly_completed,
        course_completed=result.course_completed,
    )


@router.post(
    "/{enrollment_id}/certificate",
    status_code=status.HTTP_201_CREATED,
    response_model=EnrollmentOut,
)
async def issue_certificate(
    enrollment_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> EnrollmentOut:
    async with open_stores() as stores:
        enrollment = await certificates.issue_certificate(
            stores, outbox, enrollment_id=enrollment_id, caller=principal
        )
    return _to_out(enrollment)
