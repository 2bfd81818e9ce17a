"""Lesson completion and progress reconciliation."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.conftest import auth, enroll, seed_course, seed_lesson


def _complete(client: TestClient, student_id, eid: str, lesson_id, **body):
    return client.post(
        f"/v1/enrollments/{eid}/lessons/{lesson_id}/complete",
        json=body or None,
        headers=auth(student_id),
    )


def test_complete_lesson_updates_percentage(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lessons = [seed_lesson(course.id, position=i) for i in (1, 2, 3)]
    eid = enroll(client, student_id, course.id)["id"]

    resp = _complete(client, student_id, eid, lessons[0].id, time_spent=90)
    assert resp.status_code == 200
    body = resp.json()
    assert body["newly_completed"] is True
    assert body["course_completed"] is False
    assert body["total_lessons"] == 3
    assert body["enrollment"]["percentage_complete"] == 33.33
    assert body["enrollment"]["total_time_spent"] == 90
    assert body["enrollment"]["status"] == "active"


def test_completing_last_lesson_completes_course(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lessons = [seed_lesson(course.id, position=i) for i in (1, 2)]
    eid = enroll(client, student_id, course.id)["id"]

    _complete(client, student_id, eid, lessons[0].id)
    body = _complete(client, student_id, eid, lessons[1].id).json()

    assert body["course_completed"] is True
    assert body["enrollment"]["status"] == "completed"
    assert body["enrollment"]["percentage_complete"] == 100.0
    assert body["enrollment"]["completed_at"] is not None


def test_repeat_completion_is_idempotent(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lessons = [seed_lesson(course.id, position=i) for i in (1, 2)]
    eid = enroll(client, student_id, course.id)["id"]

    _complete(client, student_id, eid, lessons[0].id, time_spent=60)
    again = _complete(client, student_id, eid, lessons[0].id, time_spent=60).json()

    assert again["newly_completed"] is False
    assert len(again["enrollment"]["completed_lessons"]) == 1
    assert again["enrollment"]["total_time_spent"] == 60
    assert again["enrollment"]["percentage_complete"] == 50.0


def test_negative_time_spent_counts_as_zero(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]

    body = _complete(client, student_id, eid, lesson.id, time_spent=-30).json()
    assert body["enrollment"]["total_time_spent"] == 0


def test_complete_without_body(client: TestClient, instructor_id, student_id) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]

    resp = client.post(
        f"/v1/enrollments/{eid}/lessons/{lesson.id}/complete", headers=auth(student_id)
    )
    assert resp.status_code == 200
    assert resp.json()["enrollment"]["percentage_complete"] == 100.0


def test_cannot_complete_for_someone_else(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]

    resp = _complete(client, uuid4(), eid, lesson.id)
    assert resp.status_code == 403


def test_lesson_from_other_course_is_404(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    seed_lesson(course.id)
    other = seed_course(instructor_id)
    foreign = seed_lesson(other.id)
    eid = enroll(client, student_id, course.id)["id"]

    resp = _complete(client, student_id, eid, foreign.id)
    assert resp.status_code == 404


def test_unknown_enrollment_is_404(client: TestClient, student_id) -> None:
    resp = _complete(client, student_id, str(uuid4()), uuid4())
    assert resp.status_code == 404


# ---- reconciliation when the lesson list changes ----


def test_adding_lesson_reopens_completed_enrollment(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]
    assert _complete(client, student_id, eid, lesson.id).json()["course_completed"]

    resp = client.post(
        f"/v1/courses/{course.id}/lessons",
        json={"title": "Bonus", "content": {"kind": "text", "body": "more"}},
        headers=auth(instructor_id, ["instructor"]),
    )
    assert resp.status_code == 201
    assert resp.json()["position"] == 2

    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["total_lessons"] == 2
    assert e["enrollment"]["status"] == "active"
    assert e["enrollment"]["percentage_complete"] == 50.0
    assert e["enrollment"]["completed_at"] is None


def test_removing_lesson_recomputes_against_live_lessons(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    done = seed_lesson(course.id, position=1)
    remaining = seed_lesson(course.id, position=2)
    eid = enroll(client, student_id, course.id)["id"]
    _complete(client, student_id, eid, done.id)

    # removing the finished lesson leaves 0 of 1 done
    resp = client.delete(
        f"/v1/courses/{course.id}/lessons/{done.id}",
        headers=auth(instructor_id, ["instructor"]),
    )
    assert resp.status_code == 204

    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["total_lessons"] == 1
    assert e["enrollment"]["percentage_complete"] == 0.0

    # finishing the one that is left completes the course
    _complete(client, student_id, eid, remaining.id)
    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["enrollment"]["status"] == "completed"


def test_removing_unfinished_lesson_completes_course(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    done = seed_lesson(course.id, position=1)
    pending = seed_lesson(course.id, position=2)
    eid = enroll(client, student_id, course.id)["id"]
    _complete(client, student_id, eid, done.id)

    client.delete(
        f"/v1/courses/{course.id}/lessons/{pending.id}",
        headers=auth(instructor_id, ["instructor"]),
    )
    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["enrollment"]["status"] == "completed"
    assert e["enrollment"]["percentage_complete"] == 100.0


def test_read_reconciles_stale_percentage(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]
    _complete(client, student_id, eid, lesson.id)

    # a lesson appears behind the service's back
    seed_lesson(course.id, position=2)

    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["enrollment"]["status"] == "active"
    assert e["enrollment"]["percentage_complete"] == 50.0


def test_lesson_edits_require_course_instructor(
    client: TestClient, instructor_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)

    add = client.post(
        f"/v1/courses/{course.id}/lessons",
        json={"title": "x", "content": {"kind": "text", "body": "y"}},
        headers=auth(uuid4(), ["instructor"]),
    )
    assert add.status_code == 403

    remove = client.delete(
        f"/v1/courses/{course.id}/lessons/{lesson.id}",
        headers=auth(uuid4(), ["instructor"]),
    )
    assert remove.status_code == 403


def test_add_lesson_rejects_unknown_content_kind(
    client: TestClient, instructor_id
) -> None:
    course = seed_course(instructor_id)
    resp = client.post(
        f"/v1/courses/{course.id}/lessons",
        json={"title": "x", "content": {"kind": "podcast"}},
        headers=auth(instructor_id, ["instructor"]),
    )
    assert resp.status_code == 422
