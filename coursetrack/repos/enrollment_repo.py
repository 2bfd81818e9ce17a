from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.enrollment import (
    CertificateState,
    CompletedLesson,
    Enrollment,
    QuizAttempt,
    QuizAttemptRecord,
)


class EnrollmentRepo(Protocol):
    async def get(
        self, enrollment_id: UUID, *, for_update: bool = False
    ) -> Enrollment | None: ...
    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def delete(self, enrollment_id: UUID) -> bool: ...
    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[Enrollment]: ...
    async def list_ids_by_course(self, course_id: UUID) -> list[UUID]: ...
    async def add_completed_lesson(
        self, enrollment_id: UUID, entry: CompletedLesson
    ) -> bool: ...
    async def set_progress(
        self,
        enrollment_id: UUID,
        *,
        percentage: float,
        status: str,
        completed_at: int | None,
    ) -> None: ...
    async def append_quiz_attempt(
        self,
        enrollment_id: UUID,
        quiz_id: UUID,
        attempt: QuizAttempt,
        max_attempts: int,
    ) -> QuizAttemptRecord | None: ...
    async def has_attempts_for_quiz(self, quiz_id: UUID) -> bool: ...
    async def set_certificate(
        self, enrollment_id: UUID, certificate: CertificateState
    ) -> bool: ...
    async def count_enrollments(self, student_id: UUID) -> int: ...
    async def count_completed_lessons(self, student_id: UUID) -> int: ...
    async def count_completed_courses(self, student_id: UUID) -> int: ...
    async def count_passed_quizzes(self, student_id: UUID) -> int: ...
    async def count_certificates(self, student_id: UUID) -> int: ...


class InMemoryEnrollmentRepo:
    """Dict-backed ledger.

    Every mutator reads and writes without awaiting in between, so under a
    single event loop each one is atomic with respect to other requests.
    """

    def __init__(self) -> None:
        self._by_id: dict[UUID, Enrollment] = {}
        self._by_pair: dict[tuple[UUID, UUID], UUID] = {}

    def _require(self, enrollment_id: UUID) -> Enrollment:
        e = self._by_id.get(enrollment_id)
        if e is None:
            raise KeyError("enrollment not found")
        return e

    async def get(
        self, enrollment_id: UUID, *, for_update: bool = False
    ) -> Enrollment | None:
        # single event loop, no interleaving inside a repo call: nothing to lock
        return self._by_id.get(enrollment_id)

    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None:
        eid = self._by_pair.get((student_id, course_id))
        return self._by_id.get(eid) if eid else None

    async def add(self, enrollment: Enrollment) -> None:
        pair = (enrollment.student_id, enrollment.course_id)
        if pair in self._by_pair:
            raise ValueError("enrollment already exists")
        self._by_id[enrollment.id] = enrollment
        self._by_pair[pair] = enrollment.id

    async def delete(self, enrollment_id: UUID) -> bool:
        e = self._by_id.pop(enrollment_id, None)
        if e is None:
            return False
        self._by_pair.pop((e.student_id, e.course_id), None)
        return True

    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[Enrollment]:
        items = [
            e
            for e in self._by_id.values()
            if e.student_id == student_id and (status is None or e.status == status)
        ]
        return sorted(items, key=lambda e: e.enrolled_at, reverse=True)

    async def list_ids_by_course(self, course_id: UUID) -> list[UUID]:
        return [e.id for e in self._by_id.values() if e.course_id == course_id]

    async def add_completed_lesson(
        self, enrollment_id: UUID, entry: CompletedLesson
    ) -> bool:
        e = self._require(enrollment_id)
        if e.has_completed(entry.lesson_id):
            return False
        self._by_id[enrollment_id] = replace(
            e,
            completed_lessons=e.completed_lessons + (entry,),
            total_time_spent=e.total_time_spent + entry.time_spent,
        )
        return True

    async def set_progress(
        self,
        enrollment_id: UUID,
        *,
        percentage: float,
        status: str,
        completed_at: int | None,
    ) -> None:
        e = self._require(enrollment_id)
        self._by_id[enrollment_id] = replace(
            e,
            percentage_complete=percentage,
            status=status,
            completed_at=completed_at,
        )

    async def append_quiz_attempt(
        self,
        enrollment_id: UUID,
        quiz_id: UUID,
        attempt: QuizAttempt,
        max_attempts: int,
    ) -> QuizAttemptRecord | None:
        """Append unless the limit is reached; None means the limit was hit."""
        e = self._require(enrollment_id)
        record = e.attempt_record(quiz_id) or QuizAttemptRecord(quiz_id=quiz_id)
        if max_attempts > 0 and record.attempt_count >= max_attempts:
            return None
        updated = record.with_attempt(attempt)
        others = tuple(r for r in e.quiz_attempts if r.quiz_id != quiz_id)
        self._by_id[enrollment_id] = replace(e, quiz_attempts=others + (updated,))
        return updated

    async def has_attempts_for_quiz(self, quiz_id: UUID) -> bool:
        return any(
            r.quiz_id == quiz_id and r.attempt_count > 0
            for e in self._by_id.values()
            for r in e.quiz_attempts
        )

    async def set_certificate(
        self, enrollment_id: UUID, certificate: CertificateState
    ) -> bool:
        e = self._require(enrollment_id)
        if e.certificate.issued:
            return False
        self._by_id[enrollment_id] = replace(e, certificate=certificate)
        return True

    def _for_student(self, student_id: UUID) -> list[Enrollment]:
        return [e for e in self._by_id.values() if e.student_id == student_id]

    async def count_enrollments(self, student_id: UUID) -> int:
        return len(self._for_student(student_id))

    async def count_completed_lessons(self, student_id: UUID) -> int:
        return sum(len(e.completed_lessons) for e in self._for_student(student_id))

    async def count_completed_courses(self, student_id: UUID) -> int:
        return sum(1 for e in self._for_student(student_id) if e.is_completed)

    async def count_passed_quizzes(self, student_id: UUID) -> int:
        return sum(
            1 for e in self._for_student(student_id) for r in e.quiz_attempts if r.passed
        )

    async def count_certificates(self, student_id: UUID) -> int:
        return sum(1 for e in self._for_student(student_id) if e.certificate.issued)
