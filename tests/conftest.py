from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursetrack.main import app
from coursetrack.models.course import (
    AssignmentContent,
    Course,
    Lesson,
    LessonContent,
    QuizContent,
    TextContent,
)
from coursetrack.models.quiz import Option, Question, Quiz, QuizSettings
from coursetrack.repos.stores import Stores, get_memory_stores, reset_memory_stores
from coursetrack.services import token_service
from coursetrack.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import tests.conftest` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_stores() -> None:
    """Fresh in-memory backend for every test."""
    reset_memory_stores()


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def stores() -> Stores:
    return get_memory_stores()


def mint_token(
    user_id: UUID | str | None = None,
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    sub = str(user_id) if user_id is not None else str(uuid4())
    return token_service.create_access_token(sub=sub, roles=roles)


def auth(user_id: UUID | str | None = None, roles: list[str] | None = None) -> dict:
    return {"Authorization": f"Bearer {mint_token(user_id, roles)}"}


@pytest.fixture
def instructor_id() -> UUID:
    return uuid4()


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_headers() -> dict:
    return auth(uuid4(), ["admin"])


# ---------------------------------------------------------------------------
# Seed helpers (write straight into the in-memory stores)
# ---------------------------------------------------------------------------


def run(coro):
    return asyncio.run(coro)


def seed_course(
    instructor_id: UUID,
    *,
    status: str = "published",
    price: int = 0,
    certificate_enabled: bool = False,
    title: str = "Intro to Testing",
) -> Course:
    course = Course.new(
        slug=f"course-{uuid4().hex[:8]}",
        title=title,
        instructor_id=instructor_id,
        status=status,
        price=price,
        certificate_enabled=certificate_enabled,
    )
    run(get_memory_stores().courses.add(course))
    return course


def seed_lesson(
    course_id: UUID,
    *,
    position: int = 1,
    title: str | None = None,
    content: LessonContent | None = None,
) -> Lesson:
    lesson = Lesson.new(
        course_id=course_id,
        title=title or f"Lesson {position}",
        position=position,
        content=content or TextContent(body="read me"),
    )
    run(get_memory_stores().lessons.add(lesson))
    return lesson


def seed_assignment_lesson(course_id: UUID, *, position: int = 1) -> Lesson:
    return seed_lesson(
        course_id,
        position=position,
        title="Homework",
        content=AssignmentContent(instructions="Write something"),
    )


def tf_question(qid: str = "q1", *, correct: str = "t", points: int = 1) -> Question:
    return Question(
        id=qid,
        type="true-false",
        prompt=f"Statement {qid}",
        points=points,
        options=(
            Option(id="t", text="True", is_correct=correct == "t"),
            Option(id="f", text="False", is_correct=correct == "f"),
        ),
        explanation="Because.",
    )


def seed_quiz(
    course_id: UUID,
    *,
    lesson_id: UUID | None = None,
    questions: tuple[Question, ...] | None = None,
    settings: QuizSettings | None = None,
    title: str = "Checkpoint",
) -> Quiz:
    quiz = Quiz.new(
        course_id=course_id,
        lesson_id=lesson_id,
        title=title,
        questions=questions if questions is not None else (tf_question(),),
        settings=settings or QuizSettings(),
        status="published",
    )
    stores = get_memory_stores()
    run(stores.quizzes.add(quiz))
    if lesson_id is not None:
        run(stores.lessons.set_content(lesson_id, QuizContent(quiz_id=quiz.id)))
    return quiz


def enroll(client: TestClient, student_id: UUID, course_id: UUID) -> dict:
    resp = client.post(
        "/v1/enrollments",
        json={"course_id": str(course_id)},
        headers=auth(student_id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
