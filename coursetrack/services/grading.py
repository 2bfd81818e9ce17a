"""Quiz auto-grading.

Pure functions: no I/O, no clock.  submit_quiz_attempt in quizzes.py
wraps grade_attempt with the attempt limit and persistence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from coursetrack.models.enrollment import GradedAnswer
from coursetrack.models.quiz import CHOICE_TYPES, Question, Quiz


@dataclass(frozen=True, slots=True)
class GradeResult:
    score: int
    total_points: int
    percentage: int
    passed: bool
    has_essay: bool
    answers: tuple[GradedAnswer, ...]


def _normalize_choice(answer: Any) -> str | None:
    if answer is None:
        return None
    if isinstance(answer, bool):
        return "true" if answer else "false"
    return str(answer)


def _normalize_text(answer: Any) -> str:
    if answer is None:
        return ""
    return str(answer).strip().lower()


def _is_correct(question: Question, answer: Any) -> bool:
    if question.type in CHOICE_TYPES:
        correct = question.correct_option
        if correct is None:
            return False
        return _normalize_choice(answer) == correct.id
    if question.type == "short-answer":
        if answer is None or question.correct_answer is None:
            return False
        return _normalize_text(answer) == _normalize_text(question.correct_answer)
    return False  # essay


def percentage_of(score: int, total_points: int) -> int:
    """round(100 * score / total) with halves rounded up; 0 when total is 0."""
    if total_points <= 0:
        return 0
    return (200 * score + total_points) // (2 * total_points)


def grade_attempt(quiz: Quiz, answers: dict[str, Any]) -> GradeResult:
    """Grade one submission.

    answers maps question id to the raw answer (option id for choice
    questions, free text otherwise).  Missing entries are unanswered.
    Essays score nothing, are excluded from total_points and hold the
    attempt at passed=False until a human grades them.
    """
    score = 0
    total = 0
    has_essay = False
    graded: list[GradedAnswer] = []

    for q in quiz.questions:
        answer = answers.get(q.id)
        if q.type == "essay":
            has_essay = True
            graded.append(
                GradedAnswer(question_id=q.id, answer=answer, is_correct=False, points=0)
            )
            continue

        total += q.points
        correct = _is_correct(q, answer)
        points = q.points if correct else 0
        score += points
        graded.append(
            GradedAnswer(
                question_id=q.id, answer=answer, is_correct=correct, points=points
            )
        )

    percentage = percentage_of(score, total)
    passed = not has_essay and percentage >= quiz.settings.passing_score
    return GradeResult(
        score=score,
        total_points=total,
        percentage=percentage,
        passed=passed,
        has_essay=has_essay,
        answers=tuple(graded),
    )


def visible_answers(quiz: Quiz, answers: tuple[GradedAnswer, ...]) -> list[dict] | None:
    """Per-question feedback as the student may see it.

    None when show_results is "never".  The correct answer and explanation
    are revealed only with show_results "immediately" and
    show_correct_answers on.
    """
    settings = quiz.settings
    if settings.show_results == "never":
        return None
    reveal = settings.show_results == "immediately" and settings.show_correct_answers

    out = []
    for a in answers:
        item: dict[str, Any] = {
            "question_id": a.question_id,
            "answer": a.answer,
            "is_correct": a.is_correct,
            "points": a.points,
        }
        if reveal:
            q = quiz.question(a.question_id)
            if q is not None:
                correct = q.correct_option
                item["correct_answer"] = (
                    correct.id if correct is not None else q.correct_answer
                )
                item["explanation"] = q.explanation
        out.append(item)
    return out
