from __future__ import annotations

import random
from uuid import uuid4

import pytest

from coursetrack.models.quiz import Option, Question, Quiz, QuizSettings
from coursetrack.services.grading import grade_attempt, percentage_of, visible_answers
from coursetrack.services.quizzes import redact_quiz
from tests.conftest import tf_question


def _quiz(*questions: Question, **settings) -> Quiz:
    return Quiz.new(
        course_id=uuid4(),
        lesson_id=None,
        title="Unit",
        questions=questions,
        settings=QuizSettings(**settings),
    )


def _mc(qid: str = "mc", points: int = 2) -> Question:
    return Question(
        id=qid,
        type="multiple-choice",
        prompt="Pick one",
        points=points,
        options=(
            Option(id="a", text="A"),
            Option(id="b", text="B", is_correct=True),
            Option(id="c", text="C"),
        ),
    )


def _short(qid: str = "sa", key: str = "Paris") -> Question:
    return Question(id=qid, type="short-answer", prompt="Capital?", correct_answer=key)


def _essay(qid: str = "es") -> Question:
    return Question(id=qid, type="essay", prompt="Discuss", points=5)


@pytest.mark.parametrize(
    ("score", "total", "expected"),
    [
        (0, 0, 0),
        (1, 8, 13),  # 12.5 rounds up
        (2, 3, 67),
        (1, 3, 33),
        (5, 5, 100),
    ],
)
def test_percentage_of(score: int, total: int, expected: int) -> None:
    assert percentage_of(score, total) == expected


def test_mixed_quiz_scores_per_question() -> None:
    quiz = _quiz(_mc(), _short(), tf_question())
    result = grade_attempt(quiz, {"mc": "b", "sa": "  pARIS ", "q1": "f"})

    assert result.score == 3
    assert result.total_points == 4
    assert result.percentage == 75
    assert result.passed is True
    assert [a.is_correct for a in result.answers] == [True, True, False]


def test_unanswered_questions_score_zero() -> None:
    quiz = _quiz(_mc(), _short())
    result = grade_attempt(quiz, {})

    assert result.score == 0
    assert result.percentage == 0
    assert result.passed is False
    assert all(a.answer is None for a in result.answers)


def test_passing_score_is_inclusive() -> None:
    quiz = _quiz(_mc(points=7), tf_question(points=3), passing_score=70)
    assert grade_attempt(quiz, {"mc": "b"}).passed is True
    assert grade_attempt(quiz, {"q1": "t"}).passed is False


def test_essay_excluded_from_points_and_blocks_pass() -> None:
    quiz = _quiz(tf_question(), _essay())
    result = grade_attempt(quiz, {"q1": "t", "es": "long text"})

    assert result.total_points == 1
    assert result.percentage == 100
    assert result.has_essay is True
    assert result.passed is False
    essay = result.answers[1]
    assert (essay.is_correct, essay.points, essay.answer) == (False, 0, "long text")


def test_essay_only_quiz_grades_to_zero() -> None:
    result = grade_attempt(_quiz(_essay()), {"es": "x"})
    assert (result.score, result.total_points, result.percentage) == (0, 0, 0)


def test_choice_without_correct_option_never_matches() -> None:
    broken = Question(
        id="x",
        type="multiple-choice",
        prompt="?",
        options=(Option(id="a", text="A"), Option(id="b", text="B")),
    )
    assert grade_attempt(_quiz(broken), {"x": "a"}).score == 0


# ---- visible answers ----


def test_visible_answers_hidden_when_never() -> None:
    quiz = _quiz(tf_question(), show_results="never")
    result = grade_attempt(quiz, {"q1": "t"})
    assert visible_answers(quiz, result.answers) is None


def test_visible_answers_reveal_key_immediately() -> None:
    quiz = _quiz(tf_question(), _short(), show_results="immediately")
    result = grade_attempt(quiz, {"q1": "f"})
    items = visible_answers(quiz, result.answers)

    assert items[0]["correct_answer"] == "t"
    assert items[0]["explanation"] == "Because."
    assert items[1]["correct_answer"] == "Paris"


def test_visible_answers_respect_show_correct_answers() -> None:
    quiz = _quiz(tf_question(), show_results="immediately", show_correct_answers=False)
    items = visible_answers(quiz, grade_attempt(quiz, {"q1": "t"}).answers)
    assert "correct_answer" not in items[0]
    assert items[0]["is_correct"] is True


# ---- redaction ----


def test_redact_quiz_strips_keys() -> None:
    quiz = _quiz(_mc(), _short())
    redacted = redact_quiz(quiz)

    assert all(not o.is_correct for o in redacted.questions[0].options)
    assert redacted.questions[1].correct_answer is None
    # the stored quiz is untouched
    assert quiz.questions[0].correct_option.id == "b"


def test_redact_quiz_shuffles_with_given_rng() -> None:
    questions = tuple(tf_question(f"q{i}") for i in range(6))
    quiz = _quiz(*questions, shuffle_questions=True)
    redacted = redact_quiz(quiz, random.Random(7))

    assert sorted(q.id for q in redacted.questions) == sorted(q.id for q in questions)
    assert redact_quiz(quiz, random.Random(7)).questions == redacted.questions
