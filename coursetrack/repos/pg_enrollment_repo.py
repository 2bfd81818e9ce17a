"""PostgreSQL implementation of EnrollmentRepo.

Completed lessons and quiz attempts live in child tables so that the
hot mutations (complete a lesson, append an attempt) are single-row
inserts or conditional UPDATEs rather than read-modify-write of the
whole enrollment.
"""

from __future__ import annotations

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import (
    CompletedLessonRow,
    EnrollmentRow,
    QuizAttemptRecordRow,
    QuizAttemptRow,
)
from coursetrack.models.enrollment import (
    CertificateState,
    CompletedLesson,
    Enrollment,
    GradedAnswer,
    QuizAttempt,
    QuizAttemptRecord,
)


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(
        self, enrollment_id: UUID, *, for_update: bool = False
    ) -> Enrollment | None:
        """Load one enrollment.

        for_update takes the row lock first, so concurrent writers to the
        same enrollment queue up and each then reads the committed
        completed-lesson set (READ COMMITTED re-snapshots per statement).
        """
        stmt = select(EnrollmentRow).where(EnrollmentRow.id == enrollment_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load(row)

    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load(row)

    async def add(self, enrollment: Enrollment) -> None:
        stmt = (
            pg_insert(EnrollmentRow)
            .values(
                id=enrollment.id,
                student_id=enrollment.student_id,
                course_id=enrollment.course_id,
                enrolled_at=enrollment.enrolled_at,
                enrollment_type=enrollment.enrollment_type,
                status=enrollment.status,
                percentage_complete=enrollment.percentage_complete,
                total_time_spent=enrollment.total_time_spent,
                completed_at=enrollment.completed_at,
                payment_ref=enrollment.payment_ref,
            )
            .on_conflict_do_nothing(index_elements=["student_id", "course_id"])
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ValueError("enrollment already exists")

    async def delete(self, enrollment_id: UUID) -> bool:
        result = await self._session.execute(
            delete(EnrollmentRow).where(EnrollmentRow.id == enrollment_id)
        )
        return result.rowcount == 1

    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[Enrollment]:
        stmt = select(EnrollmentRow).where(EnrollmentRow.student_id == student_id)
        if status is not None:
            stmt = stmt.where(EnrollmentRow.status == status)
        stmt = stmt.order_by(EnrollmentRow.enrolled_at.desc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [await self._load(r) for r in rows]

    async def list_ids_by_course(self, course_id: UUID) -> list[UUID]:
        stmt = select(EnrollmentRow.id).where(EnrollmentRow.course_id == course_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def add_completed_lesson(
        self, enrollment_id: UUID, entry: CompletedLesson
    ) -> bool:
        """Insert-if-absent; time is only added when the row is new."""
        stmt = (
            pg_insert(CompletedLessonRow)
            .values(
                enrollment_id=enrollment_id,
                lesson_id=entry.lesson_id,
                completed_at=entry.completed_at,
                time_spent=entry.time_spent,
            )
            .on_conflict_do_nothing(index_elements=["enrollment_id", "lesson_id"])
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return False
        if entry.time_spent:
            await self._session.execute(
                update(EnrollmentRow)
                .where(EnrollmentRow.id == enrollment_id)
                .values(
                    total_time_spent=EnrollmentRow.total_time_spent + entry.time_spent
                )
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
        stmt = (
            update(EnrollmentRow)
            .where(EnrollmentRow.id == enrollment_id)
            .values(
                percentage_complete=percentage,
                status=status,
                completed_at=completed_at,
            )
        )
        await self._session.execute(stmt)

    async def append_quiz_attempt(
        self,
        enrollment_id: UUID,
        quiz_id: UUID,
        attempt: QuizAttempt,
        max_attempts: int,
    ) -> QuizAttemptRecord | None:
        """Conditional append: bumps attempt_count only while under the limit.

        Returns None when the limit was already reached.
        """
        exists = await self._session.execute(
            select(EnrollmentRow.id).where(EnrollmentRow.id == enrollment_id)
        )
        if exists.scalar_one_or_none() is None:
            raise KeyError("enrollment not found")

        await self._session.execute(
            pg_insert(QuizAttemptRecordRow)
            .values(enrollment_id=enrollment_id, quiz_id=quiz_id)
            .on_conflict_do_nothing(index_elements=["enrollment_id", "quiz_id"])
        )

        values: dict = {
            "attempt_count": QuizAttemptRecordRow.attempt_count + 1,
            "best_score": func.greatest(QuizAttemptRecordRow.best_score, attempt.score),
        }
        if attempt.passed:
            values["passed"] = True
        stmt = update(QuizAttemptRecordRow).where(
            QuizAttemptRecordRow.enrollment_id == enrollment_id,
            QuizAttemptRecordRow.quiz_id == quiz_id,
        )
        if max_attempts > 0:
            stmt = stmt.where(QuizAttemptRecordRow.attempt_count < max_attempts)
        stmt = stmt.values(**values).returning(QuizAttemptRecordRow.attempt_count)
        attempt_no = (await self._session.execute(stmt)).scalar_one_or_none()
        if attempt_no is None:
            return None

        self._session.add(
            QuizAttemptRow(
                enrollment_id=enrollment_id,
                quiz_id=quiz_id,
                attempt_no=attempt_no,
                score=attempt.score,
                total_points=attempt.total_points,
                percentage=attempt.percentage,
                passed=attempt.passed,
                answers=[_answer_to_json(a) for a in attempt.answers],
                time_spent=attempt.time_spent,
                attempted_at=attempt.attempted_at,
            )
        )
        await self._session.flush()

        enrollment = await self.get(enrollment_id)
        if enrollment is None:
            raise KeyError("enrollment not found")
        return enrollment.attempt_record(quiz_id)

    async def has_attempts_for_quiz(self, quiz_id: UUID) -> bool:
        stmt = select(func.count()).where(
            QuizAttemptRecordRow.quiz_id == quiz_id,
            QuizAttemptRecordRow.attempt_count > 0,
        )
        return (await self._session.execute(stmt)).scalar_one() > 0

    async def set_certificate(
        self, enrollment_id: UUID, certificate: CertificateState
    ) -> bool:
        stmt = (
            update(EnrollmentRow)
            .where(EnrollmentRow.id == enrollment_id)
            .where(EnrollmentRow.certificate_issued.is_(False))
            .values(
                certificate_issued=certificate.issued,
                certificate_id=certificate.certificate_id,
                certificate_issued_at=certificate.issued_at,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    # --- Counters for achievement families ---

    async def count_enrollments(self, student_id: UUID) -> int:
        stmt = select(func.count()).where(EnrollmentRow.student_id == student_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def count_completed_lessons(self, student_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(CompletedLessonRow)
            .join(EnrollmentRow, EnrollmentRow.id == CompletedLessonRow.enrollment_id)
            .where(EnrollmentRow.student_id == student_id)
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def count_completed_courses(self, student_id: UUID) -> int:
        stmt = select(func.count()).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.status == "completed",
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def count_passed_quizzes(self, student_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(QuizAttemptRecordRow)
            .join(
                EnrollmentRow, EnrollmentRow.id == QuizAttemptRecordRow.enrollment_id
            )
            .where(
                EnrollmentRow.student_id == student_id,
                QuizAttemptRecordRow.passed.is_(True),
            )
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def count_certificates(self, student_id: UUID) -> int:
        stmt = select(func.count()).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.certificate_issued.is_(True),
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def _load(self, row: EnrollmentRow) -> Enrollment:
        completed = (
            await self._session.execute(
                select(CompletedLessonRow)
                .where(CompletedLessonRow.enrollment_id == row.id)
                .order_by(CompletedLessonRow.completed_at)
            )
        ).scalars().all()
        records = (
            await self._session.execute(
                select(QuizAttemptRecordRow).where(
                    QuizAttemptRecordRow.enrollment_id == row.id
                )
            )
        ).scalars().all()
        attempts = (
            await self._session.execute(
                select(QuizAttemptRow)
                .where(QuizAttemptRow.enrollment_id == row.id)
                .order_by(QuizAttemptRow.attempt_no)
            )
        ).scalars().all()

        by_quiz: dict[UUID, list[QuizAttempt]] = defaultdict(list)
        for a in attempts:
            by_quiz[a.quiz_id].append(_row_to_attempt(a))

        return Enrollment(
            id=row.id,
            student_id=row.student_id,
            course_id=row.course_id,
            enrolled_at=row.enrolled_at,
            enrollment_type=row.enrollment_type,
            status=row.status,
            completed_lessons=tuple(
                CompletedLesson(
                    lesson_id=c.lesson_id,
                    completed_at=c.completed_at,
                    time_spent=c.time_spent,
                )
                for c in completed
            ),
            percentage_complete=row.percentage_complete,
            total_time_spent=row.total_time_spent,
            quiz_attempts=tuple(
                QuizAttemptRecord(
                    quiz_id=r.quiz_id,
                    attempts=tuple(by_quiz.get(r.quiz_id, ())),
                    best_score=r.best_score,
                    passed=r.passed,
                )
                for r in records
            ),
            certificate=CertificateState(
                issued=row.certificate_issued,
                certificate_id=row.certificate_id,
                issued_at=row.certificate_issued_at,
            ),
            completed_at=row.completed_at,
            payment_ref=row.payment_ref,
        )


def _answer_to_json(a: GradedAnswer) -> dict:
    return {
        "question_id": a.question_id,
        "answer": a.answer,
        "is_correct": a.is_correct,
        "points": a.points,
    }


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        score=row.score,
        total_points=row.total_points,
        percentage=row.percentage,
        passed=row.passed,
        answers=tuple(
            GradedAnswer(
                question_id=a["question_id"],
                answer=a.get("answer"),
                is_correct=a["is_correct"],
                points=a["points"],
            )
            for a in row.answers
        ),
        time_spent=row.time_spent,
        attempted_at=row.attempted_at,
    )
