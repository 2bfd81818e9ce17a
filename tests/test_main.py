from __future__ import annotations

from fastapi.testclient import TestClient

from coursetrack.main import app


def test_all_routers_registered() -> None:
    paths = {getattr(r, "path", None) for r in app.routes}
    for expected in (
        "/health",
        "/ready",
        "/metrics",
        "/v1/enrollments",
        "/v1/enrollments/{enrollment_id}/lessons/{lesson_id}/complete",
        "/v1/courses/{course_id}/lessons",
        "/v1/quizzes/{quiz_id}/attempts",
        "/v1/courses/{course_id}/lessons/{lesson_id}/submission",
        "/v1/submissions/{submission_id}/grade",
        "/v1/courses/{course_id}/reviews",
        "/v1/me/activities",
        "/v1/me/achievements",
    ):
        assert expected in paths


def test_unknown_route_is_404(client: TestClient) -> None:
    assert client.get("/v1/nothing-here").status_code == 404


def test_malformed_token_rejected(client: TestClient) -> None:
    resp = client.get("/v1/me/activities", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
