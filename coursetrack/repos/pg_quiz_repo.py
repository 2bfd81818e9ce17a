"""PostgreSQL implementation of QuizRepo.

Questions and settings are stored as JSONB; analytics are plain integer
columns bumped with UPDATE ... SET x = x + n.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coursetrack.db.tables import QuizRow
from coursetrack.models.quiz import (
    Option,
    Question,
    Quiz,
    QuizAnalytics,
    QuizSettings,
)


class PgQuizRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, quiz_id: UUID) -> Quiz | None:
        stmt = select(QuizRow).where(QuizRow.id == quiz_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_quiz(row)

    async def add(self, quiz: Quiz) -> None:
        row = QuizRow(
            id=quiz.id,
            course_id=quiz.course_id,
            lesson_id=quiz.lesson_id,
            title=quiz.title,
            description=quiz.description,
            status=quiz.status,
            questions=[_question_to_json(q) for q in quiz.questions],
            settings=_settings_to_json(quiz.settings),
            total_attempts=0,
            passed_attempts=0,
            percentage_sum=0,
        )
        self._session.add(row)
        await self._session.flush()

    async def update(self, quiz: Quiz) -> bool:
        stmt = (
            update(QuizRow)
            .where(QuizRow.id == quiz.id)
            .values(
                course_id=quiz.course_id,
                lesson_id=quiz.lesson_id,
                title=quiz.title,
                description=quiz.description,
                status=quiz.status,
                questions=[_question_to_json(q) for q in quiz.questions],
                settings=_settings_to_json(quiz.settings),
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete(self, quiz_id: UUID) -> bool:
        result = await self._session.execute(delete(QuizRow).where(QuizRow.id == quiz_id))
        return result.rowcount == 1

    async def record_attempt(
        self, quiz_id: UUID, *, passed: bool, percentage: int
    ) -> None:
        stmt = (
            update(QuizRow)
            .where(QuizRow.id == quiz_id)
            .values(
                total_attempts=QuizRow.total_attempts + 1,
                passed_attempts=QuizRow.passed_attempts + (1 if passed else 0),
                percentage_sum=QuizRow.percentage_sum + percentage,
            )
        )
        await self._session.execute(stmt)


def _question_to_json(q: Question) -> dict[str, Any]:
    return {
        "id": q.id,
        "type": q.type,
        "prompt": q.prompt,
        "points": q.points,
        "options": [
            {"id": o.id, "text": o.text, "is_correct": o.is_correct} for o in q.options
        ],
        "correct_answer": q.correct_answer,
        "explanation": q.explanation,
    }


def _question_from_json(data: dict[str, Any]) -> Question:
    return Question(
        id=data["id"],
        type=data["type"],
        prompt=data["prompt"],
        points=data.get("points", 1),
        options=tuple(
            Option(id=o["id"], text=o["text"], is_correct=o.get("is_correct", False))
            for o in data.get("options", [])
        ),
        correct_answer=data.get("correct_answer"),
        explanation=data.get("explanation"),
    )


def _settings_to_json(s: QuizSettings) -> dict[str, Any]:
    return {
        "attempts": s.attempts,
        "passing_score": s.passing_score,
        "show_results": s.show_results,
        "show_correct_answers": s.show_correct_answers,
        "shuffle_questions": s.shuffle_questions,
        "shuffle_options": s.shuffle_options,
        "time_limit": s.time_limit,
    }


def _row_to_quiz(row: QuizRow) -> Quiz:
    return Quiz(
        id=row.id,
        course_id=row.course_id,
        lesson_id=row.lesson_id,
        title=row.title,
        description=row.description,
        status=row.status,
        questions=tuple(_question_from_json(q) for q in row.questions),
        settings=QuizSettings(**row.settings),
        analytics=QuizAnalytics(
            total_attempts=row.total_attempts,
            passed_attempts=row.passed_attempts,
            percentage_sum=row.percentage_sum,
        ),
    )
