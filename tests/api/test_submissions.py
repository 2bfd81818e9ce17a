"""Assignment submission endpoints."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.conftest import (
    auth,
    enroll,
    seed_assignment_lesson,
    seed_course,
    seed_lesson,
)


def _submit(client: TestClient, student_id, course_id, lesson_id, content="My work"):
    return client.post(
        f"/v1/courses/{course_id}/lessons/{lesson_id}/submission",
        json={"content": content},
        headers=auth(student_id),
    )


def test_first_submission_completes_lesson(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id, position=1)
    seed_lesson(course.id, position=2)
    eid = enroll(client, student_id, course.id)["id"]

    resp = _submit(client, student_id, course.id, lesson.id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["created"] is True
    assert body["lesson_completed"] is True
    assert body["submission"]["status"] == "submitted"
    assert body["submission"]["grade"] is None

    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["enrollment"]["percentage_complete"] == 50.0


def test_resubmission_overwrites_and_returns_200(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)

    first = _submit(client, student_id, course.id, lesson.id, "draft").json()
    second = _submit(client, student_id, course.id, lesson.id, "final")
    assert second.status_code == 200
    body = second.json()
    assert body["created"] is False
    assert body["lesson_completed"] is False
    assert body["submission"]["id"] == first["submission"]["id"]
    assert body["submission"]["content"] == "final"

    mine = client.get(
        f"/v1/courses/{course.id}/lessons/{lesson.id}/submission",
        headers=auth(student_id),
    ).json()
    assert mine["content"] == "final"


def test_blank_submission_rejected(client: TestClient, instructor_id, student_id) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)

    resp = _submit(client, student_id, course.id, lesson.id, "   ")
    assert resp.status_code == 422
    assert resp.json()["fields"] == {"content": "must not be blank"}


def test_submission_to_non_assignment_lesson(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    enroll(client, student_id, course.id)

    resp = _submit(client, student_id, course.id, lesson.id)
    assert resp.status_code == 400


def test_submission_requires_enrollment(client: TestClient, instructor_id) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    resp = _submit(client, uuid4(), course.id, lesson.id)
    assert resp.status_code == 403


def test_submission_lesson_must_belong_to_course(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    other = seed_course(instructor_id)
    lesson = seed_assignment_lesson(other.id)
    enroll(client, student_id, course.id)

    resp = _submit(client, student_id, course.id, lesson.id)
    assert resp.status_code == 404


def test_get_submission_before_submitting_is_null(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    resp = client.get(
        f"/v1/courses/{course.id}/lessons/{lesson.id}/submission",
        headers=auth(student_id),
    )
    assert resp.status_code == 200
    assert resp.json() is None


# ---- grading ----


def test_instructor_grades_and_pending_list_shrinks(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)
    sub_id = _submit(client, student_id, course.id, lesson.id).json()["submission"]["id"]
    headers = auth(instructor_id, ["instructor"])

    pending = client.get(f"/v1/courses/{course.id}/submissions/pending", headers=headers)
    assert [s["id"] for s in pending.json()] == [sub_id]

    resp = client.post(
        f"/v1/submissions/{sub_id}/grade",
        json={"grade": 1, "feedback": "Nice"},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "graded"
    assert body["grade"] == 1
    assert body["feedback"] == "Nice"
    assert body["graded_at"] is not None

    pending = client.get(f"/v1/courses/{course.id}/submissions/pending", headers=headers)
    assert pending.json() == []


def test_failing_grade_keeps_lesson_complete(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]
    sub_id = _submit(client, student_id, course.id, lesson.id).json()["submission"]["id"]

    client.post(
        f"/v1/submissions/{sub_id}/grade",
        json={"grade": 0},
        headers=auth(instructor_id, ["instructor"]),
    )
    e = client.get(f"/v1/enrollments/{eid}", headers=auth(student_id)).json()
    assert e["enrollment"]["status"] == "completed"


def test_resubmission_returns_to_pending(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)
    sub_id = _submit(client, student_id, course.id, lesson.id).json()["submission"]["id"]
    headers = auth(instructor_id, ["instructor"])
    client.post(f"/v1/submissions/{sub_id}/grade", json={"grade": 0}, headers=headers)

    body = _submit(client, student_id, course.id, lesson.id, "try again").json()
    assert body["submission"]["status"] == "submitted"

    pending = client.get(f"/v1/courses/{course.id}/submissions/pending", headers=headers)
    assert [s["id"] for s in pending.json()] == [sub_id]


def test_grade_must_be_zero_or_one(client: TestClient, instructor_id, student_id) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)
    sub_id = _submit(client, student_id, course.id, lesson.id).json()["submission"]["id"]

    resp = client.post(
        f"/v1/submissions/{sub_id}/grade",
        json={"grade": 7},
        headers=auth(instructor_id, ["instructor"]),
    )
    assert resp.status_code == 422


def test_only_course_instructor_grades(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_assignment_lesson(course.id)
    enroll(client, student_id, course.id)
    sub_id = _submit(client, student_id, course.id, lesson.id).json()["submission"]["id"]

    resp = client.post(
        f"/v1/submissions/{sub_id}/grade",
        json={"grade": 1},
        headers=auth(student_id),
    )
    assert resp.status_code == 403

    pending = client.get(
        f"/v1/courses/{course.id}/submissions/pending", headers=auth(student_id)
    )
    assert pending.status_code == 403


def test_grade_unknown_submission_is_404(client: TestClient, admin_headers) -> None:
    resp = client.post(
        f"/v1/submissions/{uuid4()}/grade", json={"grade": 1}, headers=admin_headers
    )
    assert resp.status_code == 404
