"""
Domain entities shared by the content service, the study state and storage.

All entities are immutable pydantic models. Field aliases reproduce the
JSON keys used both by the generation endpoint and by the persisted store
(``correctAnswer``, ``clozeText``), so a single model validates model output
and round-trips saved data.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

BLANK_MARKER = "[___]"
QUIZ_OPTION_COUNT = 4
DISTRACTOR_COUNT = 3

MIN_WORD_COUNT = 100
MAX_WORD_COUNT = 1000


class CEFRLevel(str, Enum):
    """Supported proficiency levels, lowest first."""

    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"


LEVELS: tuple[CEFRLevel, ...] = tuple(CEFRLevel)

MOODS: tuple[str, ...] = (
    "neutral",
    "lustig",
    "spannend",
    "romantisch",
    "geheimnisvoll",
    "nachdenklich",
)


class _Entity(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ExerciseRequest(_Entity):
    """Parameters of one story generation."""

    level: CEFRLevel = CEFRLevel.A2
    theme: str = Field(..., min_length=1)
    word_count: int = Field(150, ge=MIN_WORD_COUNT, le=MAX_WORD_COUNT)
    mood: str = MOODS[0]


class GeneratedText(_Entity):
    title: str
    body: str = Field(..., min_length=1)
    level: CEFRLevel


class TranslationPair(_Entity):
    """One source sentence and its translation."""

    german: str
    turkish: str


class QuizQuestion(_Entity):
    """A multiple-choice comprehension question with four unique options."""

    question: str = Field(..., min_length=1)
    options: tuple[str, ...]
    correct_answer: str = Field(..., alias="correctAnswer")

    @model_validator(mode="after")
    def _check_options(self) -> "QuizQuestion":
        if len(self.options) != QUIZ_OPTION_COUNT:
            raise ValueError(
                f"expected {QUIZ_OPTION_COUNT} options, got {len(self.options)}"
            )
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be unique")
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer is not one of the options")
        return self


class WordExplanation(_Entity):
    explanation: str = Field(..., min_length=1)
    examples: tuple[str, ...] = Field(..., min_length=1)


class ClozeExercise(_Entity):
    """
    Fill-in-the-blank text.

    ``cloze_text`` contains one ``[___]`` marker per entry of ``answers``,
    and answers are ordered by the left-to-right position of their blank.
    """

    cloze_text: str = Field(..., alias="clozeText")
    answers: tuple[str, ...]

    @model_validator(mode="after")
    def _check_alignment(self) -> "ClozeExercise":
        blanks = self.cloze_text.count(BLANK_MARKER)
        if blanks != len(self.answers):
            raise ValueError(
                f"{blanks} blank markers but {len(self.answers)} answers"
            )
        if any(not answer for answer in self.answers):
            raise ValueError("answers must not be empty")
        return self

    @property
    def blank_count(self) -> int:
        return len(self.answers)


class FavoriteWord(_Entity):
    german: str = Field(..., min_length=1)
    turkish: str


class FavoriteList(_Entity):
    id: str
    name: str = Field(..., min_length=1)
    words: tuple[FavoriteWord, ...] = ()


class SavedText(_Entity):
    """Archived snapshot of a generated text and its exercises."""

    title: str
    text: str
    level: CEFRLevel
    translations: tuple[TranslationPair, ...] = ()
    quiz: tuple[QuizQuestion, ...] = ()
