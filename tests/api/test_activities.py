"""Activity timeline and achievements, written by the notifier after commit."""

from __future__ import annotations

import dataclasses
from uuid import UUID

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from coursetrack.core.config import SETTINGS
from coursetrack.models.quiz import QuizSettings
from coursetrack.repos.stores import get_memory_stores
from coursetrack.services import notifier
from coursetrack.services.task_queue import (
    DEAD_LETTER_QUEUE,
    NOTIFICATIONS_QUEUE,
    task_queue,
)
from tests.conftest import auth, enroll, run, seed_course, seed_lesson, seed_quiz


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _activities(client: TestClient, user_id, **params) -> dict:
    resp = client.get("/v1/me/activities", params=params, headers=auth(user_id))
    assert resp.status_code == 200
    return resp.json()


def _codes(client: TestClient, user_id) -> list[str]:
    resp = client.get("/v1/me/achievements", headers=auth(user_id))
    assert resp.status_code == 200
    return [a["code"] for a in resp.json()]


def test_enrollment_records_activity_and_first_achievement(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id, title="Databases")
    enroll(client, student_id, course.id)

    page = _activities(client, student_id)
    assert page["total"] == 2
    types = {a["type"] for a in page["items"]}
    assert types == {"ENROLLMENT", "ACHIEVEMENT_EARNED"}
    enrolled = next(a for a in page["items"] if a["type"] == "ENROLLMENT")
    assert enrolled["message"] == "Enrolled in Databases"
    assert enrolled["course_id"] == str(course.id)

    assert _codes(client, student_id) == ["FIRST_ENROLLMENT"]


def test_activities_paginate(client: TestClient, instructor_id, student_id) -> None:
    for title in ("A", "B", "C"):
        enroll(client, student_id, seed_course(instructor_id, title=title).id)

    first = _activities(client, student_id, limit=2)
    assert first["total"] == 4
    assert first["limit"] == 2
    assert len(first["items"]) == 2

    tail = _activities(client, student_id, limit=2, offset=3)
    assert len(tail["items"]) == 1
    assert tail["offset"] == 3


def test_activities_limit_is_bounded(client: TestClient, student_id) -> None:
    resp = client.get(
        "/v1/me/activities", params={"limit": 500}, headers=auth(student_id)
    )
    assert resp.status_code == 422


def test_timeline_is_private(client: TestClient, instructor_id, student_id) -> None:
    enroll(client, student_id, seed_course(instructor_id).id)
    assert _activities(client, instructor_id)["total"] == 0


def test_perfect_quiz_awarded_once(client: TestClient, instructor_id, student_id) -> None:
    course = seed_course(instructor_id)
    quiz = seed_quiz(course.id, settings=QuizSettings(attempts=0))
    enroll(client, student_id, course.id)
    before = _sample("achievements_granted_total", {"code": "PERFECT_QUIZ"})

    for _ in range(2):
        resp = client.post(
            f"/v1/quizzes/{quiz.id}/attempts",
            json={"answers": {"q1": "t"}},
            headers=auth(student_id),
        )
        assert resp.status_code == 201, resp.text

    codes = _codes(client, student_id)
    assert codes.count("PERFECT_QUIZ") == 1
    assert "FIRST_QUIZ_PASS" in codes
    after = _sample("achievements_granted_total", {"code": "PERFECT_QUIZ"})
    assert after - before == 1


def test_failed_quiz_earns_nothing_new(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    quiz = seed_quiz(course.id)
    enroll(client, student_id, course.id)

    client.post(
        f"/v1/quizzes/{quiz.id}/attempts",
        json={"answers": {"q1": "f"}},
        headers=auth(student_id),
    )
    assert _codes(client, student_id) == ["FIRST_ENROLLMENT"]
    quiz_entry = next(
        a for a in _activities(client, student_id)["items"] if a["type"] == "QUIZ_ATTEMPT"
    )
    assert quiz_entry["message"] == "Attempted quiz Checkpoint (0%)"
    assert quiz_entry["quiz_id"] == str(quiz.id)


# ---- failure isolation ----


def test_notifier_failure_does_not_fail_request(
    client: TestClient, instructor_id, student_id, monkeypatch
) -> None:
    course = seed_course(instructor_id)
    before = _sample("notification_failures_total", {"stage": "activity"})

    async def broken_add(activity) -> None:
        raise RuntimeError("activity store down")

    monkeypatch.setattr(get_memory_stores().activities, "add", broken_add)

    enroll(client, student_id, course.id)

    after = _sample("notification_failures_total", {"stage": "activity"})
    assert after - before == 1
    assert run(task_queue.queue_length(DEAD_LETTER_QUEUE)) == 1
    dead = run(task_queue.dequeue(DEAD_LETTER_QUEUE))
    assert dead.payload["type"] == "StudentEnrolled"
    assert "activity" in dead.payload["failed_stages"]

    # the enrollment itself committed
    stored = run(get_memory_stores().courses.get(course.id))
    assert stored.enrollment_count == 1


def test_queue_mode_defers_to_worker(
    client: TestClient, instructor_id, student_id, monkeypatch
) -> None:
    monkeypatch.setattr(
        notifier, "SETTINGS", dataclasses.replace(SETTINGS, notify_mode="queue")
    )
    enroll(client, student_id, seed_course(instructor_id).id)

    assert run(task_queue.queue_length(NOTIFICATIONS_QUEUE)) == 1
    assert _activities(client, student_id)["total"] == 0


def _break_notifier_stores(monkeypatch) -> None:
    async def broken_add(activity) -> None:
        raise RuntimeError("activity store down")

    async def broken_add_earned(user_id, codes, earned_at) -> list[str]:
        raise RuntimeError("achievement store down")

    stores = get_memory_stores()
    monkeypatch.setattr(stores.activities, "add", broken_add)
    monkeypatch.setattr(stores.achievements, "add_earned", broken_add_earned)


def _failures() -> tuple[float, float]:
    return (
        _sample("notification_failures_total", {"stage": "activity"}),
        _sample("notification_failures_total", {"stage": "achievements"}),
    )


def test_completion_commits_when_notifier_stores_fail(
    client: TestClient, instructor_id, student_id, monkeypatch
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]
    activity_before, achievements_before = _failures()
    _break_notifier_stores(monkeypatch)

    resp = client.post(
        f"/v1/enrollments/{eid}/lessons/{lesson.id}/complete",
        headers={**auth(student_id), "X-Request-ID": "trace-complete"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["enrollment"]["status"] == "completed"

    # LessonCompleted and CourseCompleted each fail both stages
    activity_after, achievements_after = _failures()
    assert activity_after - activity_before == 2
    assert achievements_after - achievements_before == 2
    assert run(task_queue.queue_length(DEAD_LETTER_QUEUE)) == 2
    dead = run(task_queue.dequeue(DEAD_LETTER_QUEUE))
    assert dead.payload["type"] == "LessonCompleted"
    assert dead.payload["failed_stages"] == ["activity", "achievements"]
    assert dead.payload["request_id"] == "trace-complete"

    enrollment = run(get_memory_stores().enrollments.get(UUID(eid)))
    assert enrollment.status == "completed"
    assert lesson.id in enrollment.completed_lesson_ids()


def test_quiz_attempt_commits_when_notifier_stores_fail(
    client: TestClient, instructor_id, student_id, monkeypatch
) -> None:
    course = seed_course(instructor_id)
    quiz = seed_quiz(course.id)
    enroll(client, student_id, course.id)
    activity_before, achievements_before = _failures()
    _break_notifier_stores(monkeypatch)

    resp = client.post(
        f"/v1/quizzes/{quiz.id}/attempts",
        json={"answers": {"q1": "t"}},
        headers=auth(student_id),
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["passed"] is True

    activity_after, achievements_after = _failures()
    assert activity_after - activity_before == 1
    assert achievements_after - achievements_before == 1

    history = client.get(
        f"/v1/quizzes/{quiz.id}/attempts", headers=auth(student_id)
    ).json()
    assert len(history["attempts"]) == 1
    assert history["best_score"] == 1
    assert history["passed"] is True
