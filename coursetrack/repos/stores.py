"""Store bundle and unit of work.

Services receive a Stores instead of importing repo singletons, so the
same code runs against in-memory dicts (tests, local dev) and against
PostgreSQL sessions.  open_stores() picks the backend from config the
same way the rest of the app does: a configured DATABASE_URL means Pg
repos bound to one session that commits on success and rolls back on
exception.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.engine import async_session_factory
from coursetrack.repos.achievement_repo import AchievementRepo, InMemoryAchievementRepo
from coursetrack.repos.activity_repo import ActivityRepo, InMemoryActivityRepo
from coursetrack.repos.course_repo import CourseRepo, InMemoryCourseRepo
from coursetrack.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from coursetrack.repos.lesson_repo import InMemoryLessonRepo, LessonRepo
from coursetrack.repos.pg_achievement_repo import PgAchievementRepo
from coursetrack.repos.pg_activity_repo import PgActivityRepo
from coursetrack.repos.pg_course_repo import PgCourseRepo
from coursetrack.repos.pg_enrollment_repo import PgEnrollmentRepo
from coursetrack.repos.pg_lesson_repo import PgLessonRepo
from coursetrack.repos.pg_quiz_repo import PgQuizRepo
from coursetrack.repos.pg_review_repo import PgReviewRepo
from coursetrack.repos.pg_submission_repo import PgSubmissionRepo
from coursetrack.repos.quiz_repo import InMemoryQuizRepo, QuizRepo
from coursetrack.repos.review_repo import InMemoryReviewRepo, ReviewRepo
from coursetrack.repos.submission_repo import InMemorySubmissionRepo, SubmissionRepo


@dataclass(frozen=True, slots=True)
class Stores:
    courses: CourseRepo
    lessons: LessonRepo
    enrollments: EnrollmentRepo
    quizzes: QuizRepo
    submissions: SubmissionRepo
    activities: ActivityRepo
    achievements: AchievementRepo
    reviews: ReviewRepo


def memory_stores() -> Stores:
    return Stores(
        courses=InMemoryCourseRepo(),
        lessons=InMemoryLessonRepo(),
        enrollments=InMemoryEnrollmentRepo(),
        quizzes=InMemoryQuizRepo(),
        submissions=InMemorySubmissionRepo(),
        activities=InMemoryActivityRepo(),
        achievements=InMemoryAchievementRepo(),
        reviews=InMemoryReviewRepo(),
    )


def pg_stores(session: AsyncSession) -> Stores:
    return Stores(
        courses=PgCourseRepo(session),
        lessons=PgLessonRepo(session),
        enrollments=PgEnrollmentRepo(session),
        quizzes=PgQuizRepo(session),
        submissions=PgSubmissionRepo(session),
        activities=PgActivityRepo(session),
        achievements=PgAchievementRepo(session),
        reviews=PgReviewRepo(session),
    )


# Process-wide in-memory backend (used when no DATABASE_URL is set).
# Tests reset it via reset_memory_stores().
_memory: Stores = memory_stores()


def get_memory_stores() -> Stores:
    return _memory


def reset_memory_stores() -> Stores:
    global _memory
    _memory = memory_stores()
    return _memory


@asynccontextmanager
async def open_stores() -> AsyncIterator[Stores]:
    """One unit of work.  Commits on success, rolls back on exception."""
    if async_session_factory is None:
        yield _memory
        return
    async with async_session_factory() as session:
        try:
            yield pg_stores(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
