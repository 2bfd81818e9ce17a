"""Course completion certificates."""

from __future__ import annotations

import logging
import secrets
from uuid import UUID

from coursetrack.core.clock import now_ts
from coursetrack.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from coursetrack.models.enrollment import CertificateState, Enrollment
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import Stores
from coursetrack.services.events import CertificateIssued, Outbox

logger = logging.getLogger(__name__)


def new_certificate_id() -> str:
    """CERT- followed by 10 upper-case hex characters."""
    return "CERT-" + secrets.token_hex(5).upper()


async def issue_certificate(
    stores: Stores, outbox: Outbox, *, enrollment_id: UUID, caller: Principal
) -> Enrollment:
    enrollment = await stores.enrollments.get(enrollment_id)
    if enrollment is None:
        raise NotFoundError("enrollment not found")
    if not (caller.is_user(enrollment.student_id) or caller.is_admin()):
        raise ForbiddenError("not your enrollment")
    if not enrollment.is_completed:
        raise InvalidStateError("course is not completed yet")

    course = await stores.courses.get(enrollment.course_id)
    if course is None:
        raise NotFoundError("course not found")
    if not course.certificate_enabled:
        raise InvalidStateError("this course does not award certificates")

    state = CertificateState(
        issued=True, certificate_id=new_certificate_id(), issued_at=now_ts()
    )
    if not await stores.enrollments.set_certificate(enrollment_id, state):
        raise ConflictError("certificate already issued")

    outbox.publish(
        CertificateIssued(
            user_id=enrollment.student_id,
            course_id=enrollment.course_id,
            certificate_id=state.certificate_id or "",
            occurred_at=state.issued_at or now_ts(),
        )
    )
    logger.info(
        "Certificate %s issued for enrollment %s",
        state.certificate_id,
        enrollment_id,
        extra={"enrollment_id": str(enrollment_id)},
    )
    issued = await stores.enrollments.get(enrollment_id)
    if issued is None:
        raise NotFoundError("enrollment not found")
    return issued
