"""Achievement rules.

Each family has one counter.  A definition is newly earned when the
counter reaches its threshold and the user does not hold it yet.  The
check_* functions only evaluate; granting is done by the notifier.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from uuid import UUID

from coursetrack.models.achievement import Achievement, AchievementFamily
from coursetrack.repos.stores import Stores


@dataclass(frozen=True, slots=True)
class EarnedAchievement:
    achievement: Achievement
    earned_at: int


def newly_earned(
    definitions: Iterable[Achievement],
    family: AchievementFamily,
    value: int,
    earned: Collection[str],
) -> list[Achievement]:
    return [
        a
        for a in definitions
        if a.family == family and value >= a.threshold and a.code not in earned
    ]


async def _check(
    stores: Stores, user_id: UUID, family: AchievementFamily, value: int
) -> list[Achievement]:
    definitions = await stores.achievements.list_definitions()
    earned = await stores.achievements.get_earned(user_id)
    return newly_earned(definitions, family, value, earned)


async def check_enrollment_achievements(stores: Stores, user_id: UUID) -> list[Achievement]:
    count = await stores.enrollments.count_enrollments(user_id)
    return await _check(stores, user_id, "enrollment", count)


async def check_lesson_achievements(stores: Stores, user_id: UUID) -> list[Achievement]:
    count = await stores.enrollments.count_completed_lessons(user_id)
    return await _check(stores, user_id, "lesson", count)


async def check_course_completion_achievements(
    stores: Stores, user_id: UUID
) -> list[Achievement]:
    count = await stores.enrollments.count_completed_courses(user_id)
    return await _check(stores, user_id, "course_completion", count)


async def check_quiz_score_achievements(
    stores: Stores, user_id: UUID, percentage: int
) -> list[Achievement]:
    # the triggering attempt's score is the counter
    return await _check(stores, user_id, "quiz_score", percentage)


async def check_quiz_pass_achievements(stores: Stores, user_id: UUID) -> list[Achievement]:
    count = await stores.enrollments.count_passed_quizzes(user_id)
    return await _check(stores, user_id, "quiz_pass", count)


async def check_review_achievements(stores: Stores, user_id: UUID) -> list[Achievement]:
    count = await stores.reviews.count_by_student(user_id)
    return await _check(stores, user_id, "review", count)


async def check_certificate_achievements(
    stores: Stores, user_id: UUID
) -> list[Achievement]:
    count = await stores.enrollments.count_certificates(user_id)
    return await _check(stores, user_id, "certificate", count)


async def list_earned_achievements(
    stores: Stores, user_id: UUID
) -> list[EarnedAchievement]:
    definitions = {a.code: a for a in await stores.achievements.list_definitions()}
    earned = await stores.achievements.get_earned(user_id)
    items = [
        EarnedAchievement(achievement=definitions[code], earned_at=at)
        for code, at in earned.items()
        if code in definitions
    ]
    return sorted(items, key=lambda e: e.earned_at)
