"""Quiz scoring and review."""

from __future__ import annotations

from dataclasses import dataclass

from deutsch_meister.models import QuizQuestion


@dataclass(frozen=True)
class ReviewItem:
    """An incorrectly answered question, for the post-quiz review."""

    index: int
    question: str
    user_answer: str | None
    correct_answer: str


def score_quiz(answers: dict[int, str], questions: list[QuizQuestion]) -> int:
    """Count questions whose recorded answer equals the correct one; unanswered is wrong."""
    return sum(
        1 for i, q in enumerate(questions) if answers.get(i) == q.correct_answer
    )


def review_incorrect(answers: dict[int, str], questions: list[QuizQuestion]) -> list[ReviewItem]:
    return [
        ReviewItem(
            index=i,
            question=q.question,
            user_answer=answers.get(i),
            correct_answer=q.correct_answer,
        )
        for i, q in enumerate(questions)
        if answers.get(i) != q.correct_answer
    ]
