"""
Exercise state container and its transitions.

Phases of the active exercise:

    idle -> generating -> ready -> quiz_scored
                          ready -> cloze_loading -> cloze_in_progress -> ready

Every transition is a pure function ``(state, event...) -> state``; the
orchestrator performs the model calls and feeds their results back in.
Results tagged with a stale ``generation_id`` are ignored, so a superseded
generation can never overwrite a newer one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from deutsch_meister.generation.errors import TEXT_CLOZE_EMPTY_MESSAGE
from deutsch_meister.models import (
    MOODS,
    CEFRLevel,
    ClozeExercise,
    ExerciseRequest,
    FavoriteList,
    GeneratedText,
    QuizQuestion,
    SavedText,
    TranslationPair,
)

from .cloze import ClozeSession

UNKNOWN_TRANSLATION = "..."


class Phase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    QUIZ_SCORED = "quiz_scored"
    CLOZE_LOADING = "cloze_loading"
    CLOZE_IN_PROGRESS = "cloze_in_progress"


@dataclass(frozen=True)
class ExerciseState:
    """Everything the study view renders for the active exercise."""

    phase: Phase = Phase.IDLE

    # Request form
    level: CEFRLevel = CEFRLevel.A2
    theme: str = ""
    word_count: int = 150
    mood: str = MOODS[0]

    # Generated content
    text: str = ""
    translations: tuple[TranslationPair, ...] = ()
    quiz: tuple[QuizQuestion, ...] = ()

    # Quiz progress
    quiz_answers: dict[int, str] = field(default_factory=dict)
    quiz_score: int | None = None
    current_question: int = 0

    # Text cloze mode
    cloze: ClozeSession | None = None

    error: str | None = None
    generation_id: int = 0

    @property
    def is_loading(self) -> bool:
        return self.phase == Phase.GENERATING

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    @property
    def generated_text(self) -> GeneratedText | None:
        if not self.text:
            return None
        return GeneratedText(title=self.theme, body=self.text, level=self.level)

    def translation_for(self, sentence: str) -> str:
        """Translation shown when hovering a source sentence."""
        for pair in self.translations:
            if pair.german == sentence:
                return pair.turkish
        return UNKNOWN_TRANSLATION


@dataclass(frozen=True)
class WordLookup:
    """Translation popup for a selected word or phrase."""

    term: str
    translation: str = ""
    is_loading: bool = True


@dataclass(frozen=True)
class ListLearningState:
    """Cloze drill built from the words of one favorite list."""

    favorite_list: FavoriteList
    session: ClozeSession | None = None
    is_loading: bool = True
    fetching_choices: int | None = None
    error: str | None = None


# =============================================================================
# Generation
# =============================================================================


def _after_content(state: ExerciseState) -> Phase:
    if not state.text:
        return Phase.IDLE
    return Phase.QUIZ_SCORED if state.quiz_score is not None else Phase.READY


def begin_generation(state: ExerciseState, request: ExerciseRequest) -> ExerciseState:
    """Clear all derived state and enter ``generating`` for a new request."""
    return replace(
        state,
        phase=Phase.GENERATING,
        level=request.level,
        theme=request.theme,
        word_count=request.word_count,
        mood=request.mood,
        text="",
        translations=(),
        quiz=(),
        quiz_answers={},
        quiz_score=None,
        current_question=0,
        cloze=None,
        error=None,
        generation_id=state.generation_id + 1,
    )


def begin_theme_lookup(state: ExerciseState) -> ExerciseState:
    return replace(state, phase=Phase.GENERATING, error=None)


def story_received(state: ExerciseState, generation_id: int, text: str) -> ExerciseState:
    if generation_id != state.generation_id:
        return state
    return replace(state, text=text)


def translations_received(
    state: ExerciseState, generation_id: int, pairs: list[TranslationPair]
) -> ExerciseState:
    if generation_id != state.generation_id:
        return state
    return replace(state, translations=tuple(pairs))


def quiz_received(
    state: ExerciseState, generation_id: int, questions: list[QuizQuestion]
) -> ExerciseState:
    """Last step of a generation: the exercise becomes ``ready``."""
    if generation_id != state.generation_id:
        return state
    return replace(state, quiz=tuple(questions), phase=Phase.READY)


def generation_failed(state: ExerciseState, generation_id: int, message: str) -> ExerciseState:
    """Keep whatever was already fetched and surface the error."""
    if generation_id != state.generation_id:
        return state
    return replace(state, phase=_after_content(state), error=message)


# =============================================================================
# Quiz
# =============================================================================


def answer_question(state: ExerciseState, index: int, choice: str) -> ExerciseState:
    """Record one answer per question; the last answer wins."""
    if state.phase != Phase.READY or not 0 <= index < len(state.quiz):
        return state
    return replace(state, quiz_answers={**state.quiz_answers, index: choice})


def submit_quiz(state: ExerciseState) -> ExerciseState:
    from .quiz import score_quiz

    if state.phase != Phase.READY or not state.quiz:
        return state
    score = score_quiz(state.quiz_answers, list(state.quiz))
    return replace(state, quiz_score=score, phase=Phase.QUIZ_SCORED)


def reset_quiz(state: ExerciseState) -> ExerciseState:
    if state.phase not in (Phase.READY, Phase.QUIZ_SCORED):
        return state
    return replace(
        state,
        quiz_answers={},
        quiz_score=None,
        current_question=0,
        phase=Phase.READY,
    )


def go_to_question(state: ExerciseState, index: int) -> ExerciseState:
    if not state.quiz:
        return state
    index = max(0, min(index, len(state.quiz) - 1))
    return replace(state, current_question=index)


# =============================================================================
# Text Cloze
# =============================================================================


def begin_cloze(state: ExerciseState) -> ExerciseState:
    if state.phase not in (Phase.READY, Phase.QUIZ_SCORED) or not state.text:
        return state
    return replace(state, phase=Phase.CLOZE_LOADING, error=None)


def cloze_received(state: ExerciseState, exercise: ClozeExercise) -> ExerciseState:
    """Enter cloze mode; an exercise without blanks is refused."""
    if state.phase != Phase.CLOZE_LOADING:
        return state
    if not exercise.answers:
        return replace(state, phase=_after_content(state), error=TEXT_CLOZE_EMPTY_MESSAGE)
    return replace(state, phase=Phase.CLOZE_IN_PROGRESS, cloze=ClozeSession.start(exercise))


def cloze_failed(state: ExerciseState, message: str) -> ExerciseState:
    if state.phase != Phase.CLOZE_LOADING:
        return state
    return replace(state, phase=_after_content(state), error=message)


def update_cloze(state: ExerciseState, session: ClozeSession) -> ExerciseState:
    if state.phase != Phase.CLOZE_IN_PROGRESS:
        return state
    return replace(state, cloze=session)


def finish_cloze(state: ExerciseState) -> ExerciseState:
    if state.phase != Phase.CLOZE_IN_PROGRESS:
        return state
    return replace(state, cloze=None, phase=_after_content(replace(state, cloze=None)))


# =============================================================================
# Archive & Reset
# =============================================================================


def load_saved_text(state: ExerciseState, saved: SavedText) -> ExerciseState:
    """Restore an archived text with fresh quiz and cloze state."""
    return replace(
        state,
        phase=Phase.READY,
        theme=saved.title,
        level=saved.level,
        text=saved.text,
        translations=saved.translations,
        quiz=saved.quiz,
        quiz_answers={},
        quiz_score=None,
        current_question=0,
        cloze=None,
        error=None,
        generation_id=state.generation_id + 1,
    )


def start_new_story(
    state: ExerciseState,
    level: CEFRLevel = CEFRLevel.A2,
    word_count: int = 150,
) -> ExerciseState:
    """Back to an empty form with default settings."""
    return ExerciseState(
        level=level,
        word_count=word_count,
        generation_id=state.generation_id + 1,
    )


def set_error(state: ExerciseState, message: str | None) -> ExerciseState:
    return replace(state, error=message)
