"""Domain events emitted by the core services.

Services never call the notifier directly.  They publish events into the
request's Outbox; the API layer hands the drained outbox to the notifier
only after the unit of work committed (see api/dependencies.py).  In
queue mode the events travel through Redis as JSON, hence the codec.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class StudentEnrolled:
    user_id: UUID
    course_id: UUID
    enrollment_id: UUID
    course_title: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class LessonCompleted:
    user_id: UUID
    course_id: UUID
    enrollment_id: UUID
    lesson_id: UUID
    lesson_title: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class CourseCompleted:
    user_id: UUID
    course_id: UUID
    enrollment_id: UUID
    course_title: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class QuizAttempted:
    user_id: UUID
    course_id: UUID
    quiz_id: UUID
    quiz_title: str
    percentage: int
    passed: bool
    occurred_at: int


@dataclass(frozen=True, slots=True)
class AssignmentSubmitted:
    user_id: UUID
    course_id: UUID
    lesson_id: UUID
    lesson_title: str
    resubmission: bool
    occurred_at: int


@dataclass(frozen=True, slots=True)
class ReviewSubmitted:
    user_id: UUID
    course_id: UUID
    rating: int
    occurred_at: int


@dataclass(frozen=True, slots=True)
class CertificateIssued:
    user_id: UUID
    course_id: UUID
    certificate_id: str
    occurred_at: int


DomainEvent = (
    StudentEnrolled
    | LessonCompleted
    | CourseCompleted
    | QuizAttempted
    | AssignmentSubmitted
    | ReviewSubmitted
    | CertificateIssued
)

EVENT_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        StudentEnrolled,
        LessonCompleted,
        CourseCompleted,
        QuizAttempted,
        AssignmentSubmitted,
        ReviewSubmitted,
        CertificateIssued,
    )
}


class Outbox:
    """Events collected during one unit of work, in publish order."""

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self._events.append(event)

    def drain(self) -> list[DomainEvent]:
        events, self._events = self._events, []
        return events

    def __len__(self) -> int:
        return len(self._events)


def event_to_payload(event: DomainEvent) -> dict[str, Any]:
    data = {}
    for f in dataclasses.fields(event):
        value = getattr(event, f.name)
        data[f.name] = str(value) if isinstance(value, UUID) else value
    return {"type": type(event).__name__, "data": data}


def event_from_payload(payload: dict[str, Any]) -> DomainEvent:
    """Inverse of event_to_payload.  Raises ValueError on unknown types."""
    cls = EVENT_TYPES.get(payload.get("type", ""))
    if cls is None:
        raise ValueError(f"unknown event type {payload.get('type')!r}")
    data = dict(payload["data"])
    for f in dataclasses.fields(cls):
        # annotations are strings under `from __future__ import annotations`
        if f.type == "UUID" and data.get(f.name) is not None:
            data[f.name] = UUID(data[f.name])
    return cls(**data)
