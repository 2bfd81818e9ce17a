"""Notification queue tests (NOTIFY_MODE=queue).

Verifies:
1. Committed events land on the notifications queue in publish order
2. Queued payloads decode back into domain events
3. A failed request enqueues nothing
"""

from __future__ import annotations

import dataclasses

import pytest
from fastapi.testclient import TestClient

from coursetrack.core.config import SETTINGS
from coursetrack.services import notifier
from coursetrack.services.events import LessonCompleted, event_from_payload
from coursetrack.services.task_queue import NOTIFICATIONS_QUEUE, task_queue
from tests.conftest import auth, enroll, run, seed_course, seed_lesson


@pytest.fixture(autouse=True)
def queue_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        notifier, "SETTINGS", dataclasses.replace(SETTINGS, notify_mode="queue")
    )


def _drain() -> list[dict]:
    payloads = []
    task = run(task_queue.dequeue(NOTIFICATIONS_QUEUE))
    while task is not None:
        payloads.append(task.payload)
        task = run(task_queue.dequeue(NOTIFICATIONS_QUEUE))
    return payloads


def test_events_enqueued_in_publish_order(
    client: TestClient, instructor_id, student_id
) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id)
    eid = enroll(client, student_id, course.id)["id"]
    client.post(
        f"/v1/enrollments/{eid}/lessons/{lesson.id}/complete", headers=auth(student_id)
    )

    types = [p["type"] for p in _drain()]
    assert types == ["StudentEnrolled", "LessonCompleted", "CourseCompleted"]


def test_queued_payload_decodes(client: TestClient, instructor_id, student_id) -> None:
    course = seed_course(instructor_id)
    lesson = seed_lesson(course.id, title="Intro")
    eid = enroll(client, student_id, course.id)["id"]
    _drain()
    client.post(
        f"/v1/enrollments/{eid}/lessons/{lesson.id}/complete", headers=auth(student_id)
    )

    event = event_from_payload(_drain()[0])
    assert isinstance(event, LessonCompleted)
    assert event.user_id == student_id
    assert event.lesson_title == "Intro"


def test_failed_request_enqueues_nothing(client: TestClient, instructor_id) -> None:
    course = seed_course(instructor_id, status="draft")
    resp = client.post(
        "/v1/enrollments", json={"course_id": str(course.id)}, headers=auth()
    )
    assert resp.status_code == 400
    assert run(task_queue.queue_length(NOTIFICATIONS_QUEUE)) == 0
