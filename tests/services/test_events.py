from __future__ import annotations

import json
from uuid import uuid4

import pytest

from coursetrack.services.events import (
    Outbox,
    QuizAttempted,
    StudentEnrolled,
    event_from_payload,
    event_to_payload,
)


def test_payload_is_json_safe_and_decodes_back() -> None:
    event = QuizAttempted(
        user_id=uuid4(),
        course_id=uuid4(),
        quiz_id=uuid4(),
        quiz_title="Checkpoint",
        percentage=80,
        passed=True,
        occurred_at=1_700_000_000,
    )
    payload = json.loads(json.dumps(event_to_payload(event)))

    assert payload["type"] == "QuizAttempted"
    assert payload["data"]["quiz_id"] == str(event.quiz_id)
    assert event_from_payload(payload) == event


def test_unknown_event_type_raises() -> None:
    with pytest.raises(ValueError, match="unknown event type"):
        event_from_payload({"type": "Nope", "data": {}})


def test_missing_fields_raise_type_error() -> None:
    with pytest.raises(TypeError):
        event_from_payload({"type": "StudentEnrolled", "data": {}})


def test_outbox_drains_in_publish_order() -> None:
    outbox = Outbox()
    first = StudentEnrolled(uuid4(), uuid4(), uuid4(), "A", 1)
    second = StudentEnrolled(uuid4(), uuid4(), uuid4(), "B", 2)
    outbox.publish(first)
    outbox.publish(second)

    assert len(outbox) == 2
    assert outbox.drain() == [first, second]
    assert outbox.drain() == []
