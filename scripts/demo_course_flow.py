"""Demo: walk a student through a course using FastAPI TestClient.

Run with:
    python scripts/demo_course_flow.py

Uses the in-memory stores and inline notifications, so no PostgreSQL or
Redis is needed.  Tokens are minted with the service's ephemeral key.
"""

from __future__ import annotations

import asyncio
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from coursetrack.main import app
from coursetrack.models.course import Course
from coursetrack.repos.stores import get_memory_stores
from coursetrack.services import token_service

INSTRUCTOR_ID = str(uuid4())
STUDENT_ID = str(uuid4())


def _auth(sub: str, roles: list[str]) -> dict[str, str]:
    token = token_service.create_access_token(sub=sub, roles=roles)
    return {"Authorization": f"Bearer {token}"}


def main() -> None:
    client = TestClient(app)
    instructor = _auth(INSTRUCTOR_ID, ["instructor"])
    student = _auth(STUDENT_ID, ["student"])

    # ── Seed a published course ──────────────────────────────────────
    course = Course.new(
        slug="intro-python",
        title="Intro to Python",
        instructor_id=UUID(INSTRUCTOR_ID),
        status="published",
        certificate_enabled=True,
    )
    asyncio.run(get_memory_stores().courses.add(course))
    course_id = str(course.id)

    # ── Step 1: instructor builds the course ─────────────────────────
    r = client.post(
        f"/v1/courses/{course_id}/lessons",
        json={"title": "Variables", "content": {"kind": "text", "body": "x = 1"}},
        headers=instructor,
    )
    text_lesson = r.json()["id"]
    print(f"1. POST lesson (text)        → {r.status_code}")

    r = client.post(
        f"/v1/courses/{course_id}/lessons",
        json={"title": "Quiz", "content": {"kind": "quiz"}},
        headers=instructor,
    )
    quiz_lesson = r.json()["id"]
    print(f"   POST lesson (quiz)        → {r.status_code}")

    r = client.post(
        "/v1/quizzes",
        json={
            "course_id": course_id,
            "lesson_id": quiz_lesson,
            "title": "Variables check",
            "status": "published",
            "questions": [
                {
                    "id": "q1",
                    "type": "true-false",
                    "prompt": "Python is dynamically typed",
                    "options": [
                        {"id": "t", "text": "True", "is_correct": True},
                        {"id": "f", "text": "False"},
                    ],
                }
            ],
            "settings": {"attempts": 2, "show_results": "immediately"},
        },
        headers=instructor,
    )
    quiz_id = r.json()["id"]
    print(f"   POST quiz                 → {r.status_code}")

    # ── Step 2: student enrolls ──────────────────────────────────────
    r = client.post("/v1/enrollments", json={"course_id": course_id}, headers=student)
    enrollment_id = r.json()["id"]
    print(f"2. POST /v1/enrollments      → {r.status_code}")

    # ── Step 3: complete the text lesson ─────────────────────────────
    r = client.post(
        f"/v1/enrollments/{enrollment_id}/lessons/{text_lesson}/complete",
        json={"time_spent": 120},
        headers=student,
    )
    pct = r.json()["enrollment"]["percentage_complete"]
    print(f"3. complete text lesson      → {r.status_code}  ({pct}%)")

    # ── Step 4: pass the quiz, which completes its lesson ────────────
    r = client.post(
        f"/v1/quizzes/{quiz_id}/attempts",
        json={"answers": {"q1": "t"}},
        headers=student,
    )
    body = r.json()
    print(
        f"4. POST attempt              → {r.status_code}  "
        f"({body['percentage']}%, passed={body['passed']})"
    )

    r = client.get(f"/v1/enrollments/{enrollment_id}", headers=student)
    e = r.json()["enrollment"]
    print(f"   GET enrollment            → {e['status']} {e['percentage_complete']}%")

    # ── Step 5: certificate ──────────────────────────────────────────
    r = client.post(f"/v1/enrollments/{enrollment_id}/certificate", headers=student)
    print(f"5. POST certificate          → {r.status_code}  {r.json()}")

    # ── Step 6: timeline and badges ──────────────────────────────────
    r = client.get("/v1/me/activities", headers=student)
    print(f"6. GET /v1/me/activities     → {r.json()['total']} entries")
    for item in r.json()["items"]:
        print(f"     {item['type']:<20} {item['message']}")

    r = client.get("/v1/me/achievements", headers=student)
    print(f"   GET /v1/me/achievements   → {[a['code'] for a in r.json()]}")


if __name__ == "__main__":
    main()
