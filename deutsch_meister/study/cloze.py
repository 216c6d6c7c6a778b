"""
Cloze exercise helpers.

A cloze session tracks the learner's entry for every blank, the optional
multiple-choice options fetched per blank, and whether results are shown.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace

from deutsch_meister.models import BLANK_MARKER, ClozeExercise

CONTEXT_BLANK = "___"


def split_cloze(cloze_text: str) -> list[str]:
    """Text segments around the blanks; ``n`` blanks give ``n + 1`` segments."""
    return cloze_text.split(BLANK_MARKER)


def distractor_context(cloze_text: str) -> str:
    """Cloze text with every marker rendered as a plain gap for the distractor prompt."""
    return cloze_text.replace(BLANK_MARKER, CONTEXT_BLANK)


def is_correct(user_answer: str, expected: str) -> bool:
    return user_answer.strip().lower() == expected.strip().lower()


def build_choices(
    answer: str,
    distractors: list[str],
    rng: random.Random | None = None,
) -> list[str]:
    """Shuffle the correct answer in among its distractors."""
    options = [*distractors, answer]
    (rng or random).shuffle(options)
    return options


@dataclass(frozen=True)
class ClozeSession:
    """Learner progress through one ClozeExercise."""

    exercise: ClozeExercise
    user_answers: tuple[str, ...] = ()
    choices: dict[int, tuple[str, ...]] = field(default_factory=dict)
    show_result: bool = False

    @classmethod
    def start(cls, exercise: ClozeExercise) -> "ClozeSession":
        return cls(exercise=exercise, user_answers=("",) * exercise.blank_count)

    def with_answer(self, index: int, value: str) -> "ClozeSession":
        """Record the entry for one blank (ignored once results are shown)."""
        if self.show_result or not 0 <= index < len(self.user_answers):
            return self
        answers = list(self.user_answers)
        answers[index] = value
        return replace(self, user_answers=tuple(answers))

    def with_choices(self, index: int, options: list[str]) -> "ClozeSession":
        return replace(self, choices={**self.choices, index: tuple(options)})

    def check(self) -> "ClozeSession":
        return replace(self, show_result=True)

    def results(self) -> list[bool]:
        return [
            is_correct(given, expected)
            for given, expected in zip(self.user_answers, self.exercise.answers)
        ]

    @property
    def correct_count(self) -> int:
        return sum(self.results())
