"""
Exercise Orchestrator: the learner-facing workflow.

Owns the exercise state, the learner's library (favorite lists and saved
texts) and speech playback. Model calls go through the ContentService; their
results are applied with the pure transitions in ``state.py``.

Generation sequence (strictly in order, each step needs the previous one):
    story -> sentence translations -> quiz

Concurrency rules:
- A new ``generate`` cancels the generation still in flight; results of the
  cancelled sequence are never applied.
- A new word selection cancels the previous lookup; a stale lookup result is
  never written.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import replace
from pathlib import Path
from typing import Any

from loguru import logger

from config import Settings, get_settings
from deutsch_meister.generation.content_service import ContentService
from deutsch_meister.generation.errors import (
    SPEECH_UNSUPPORTED_MESSAGE,
    WORD_COUNT_MESSAGE,
    WORD_TRANSLATION_PLACEHOLDER,
    GenerationError,
    SpeechError,
    failure_message,
)
from deutsch_meister.models import (
    CEFRLevel,
    ExerciseRequest,
    FavoriteList,
    FavoriteWord,
    SavedText,
    WordExplanation,
)
from deutsch_meister.storage.export import export_saved_texts
from deutsch_meister.storage.repository import LibraryRepository

from . import library
from . import state as transitions
from .cloze import ClozeSession, build_choices, distractor_context
from .quiz import ReviewItem, review_incorrect
from .speech import SpeechSequencer, SpeechSynthesizer
from .state import ExerciseState, ListLearningState, Phase, WordLookup


async def _await_task(task: asyncio.Task) -> None:
    """
    Wait for ``task`` without propagating its cancellation.

    If the caller itself is cancelled, the task is cancelled too.
    """
    try:
        await asyncio.wait({task})
    except asyncio.CancelledError:
        task.cancel()
        raise


class ExerciseOrchestrator:
    """
    Drives one learner session.

    Example:
        orchestrator = ExerciseOrchestrator(ContentService(), repository)
        await orchestrator.generate(ExerciseRequest(theme="Ein Tag in Berlin"))
        orchestrator.answer(0, "Berlin")
        orchestrator.submit_quiz()
    """

    def __init__(
        self,
        service: ContentService,
        repository: LibraryRepository,
        settings: Settings | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        rng: random.Random | None = None,
    ):
        self.service = service
        self.repository = repository
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

        self.state = self._initial_state()
        self.favorite_lists: list[FavoriteList] = repository.load_favorite_lists()
        self.saved_texts: list[SavedText] = repository.load_saved_texts()

        self.word_lookup: WordLookup | None = None
        self.learning: ListLearningState | None = None

        self.speech = (
            SpeechSequencer(synthesizer, on_error=self._on_speech_error)
            if synthesizer is not None
            else None
        )

        self._generation_task: asyncio.Task | None = None
        self._lookup_task: asyncio.Task | None = None
        self._lookup_seq = 0

    def _initial_state(self) -> ExerciseState:
        return ExerciseState(
            level=CEFRLevel(self.settings.default_level),
            word_count=self.settings.default_word_count,
        )

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(self, request: ExerciseRequest) -> ExerciseState:
        """
        Run story, sentence translations and quiz for ``request``.

        A failure at any step keeps what was already fetched and surfaces the
        step's message. Returns the resulting state; if this generation was
        superseded by a newer one, the newer one's state is returned.
        """
        if not self._accepts_word_count(request.word_count):
            return self.state

        self._cancel_generation()
        self.stop_speech()

        self.state = transitions.begin_generation(self.state, request)
        generation_id = self.state.generation_id
        logger.info(
            f"Generating {request.level.value} story '{request.theme}' "
            f"({request.word_count} words, {request.mood})"
        )

        task = asyncio.create_task(self._run_generation(generation_id, request))
        self._generation_task = task
        await _await_task(task)

        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
        return self.state

    async def generate_random(
        self,
        level: CEFRLevel | None = None,
        mood: str | None = None,
        word_count: int | None = None,
    ) -> ExerciseState:
        """Ask the model for a theme, then run the normal generation with it."""
        level = level or self.state.level
        mood = mood or self.state.mood
        word_count = word_count or self.state.word_count
        if not self._accepts_word_count(word_count):
            return self.state

        self._cancel_generation()
        self.state = transitions.begin_theme_lookup(self.state)
        generation_id = self.state.generation_id

        try:
            theme = await self.service.generate_random_theme(level, mood)
        except GenerationError as e:
            self.state = transitions.generation_failed(self.state, generation_id, e.message)
            return self.state

        if generation_id != self.state.generation_id:
            return self.state

        request = ExerciseRequest(level=level, theme=theme, word_count=word_count, mood=mood)
        return await self.generate(request)

    async def _run_generation(self, generation_id: int, request: ExerciseRequest) -> None:
        try:
            text = await self.service.generate_story(
                request.level, request.theme, request.word_count, request.mood
            )
            self.state = transitions.story_received(self.state, generation_id, text)

            pairs = await self.service.translate_sentence_by_sentence(text)
            self.state = transitions.translations_received(self.state, generation_id, pairs)

            questions = await self.service.generate_quiz(
                text, self.settings.quiz_question_count
            )
            self.state = transitions.quiz_received(self.state, generation_id, questions)
        except GenerationError as e:
            logger.warning(f"Generation stopped at '{e.action}': {e.message}")
            self.state = transitions.generation_failed(self.state, generation_id, e.message)

    def _accepts_word_count(self, word_count: int) -> bool:
        """Set the word-count error and return False outside the configured choices."""
        if self.settings.is_valid_word_count(word_count):
            return True
        logger.warning(f"Rejected word count {word_count}")
        message = WORD_COUNT_MESSAGE.format(
            low=self.settings.min_word_count,
            high=self.settings.max_word_count,
            step=self.settings.word_count_step,
        )
        self.state = transitions.set_error(self.state, message)
        return False

    def _cancel_generation(self) -> None:
        if self._generation_task is not None and not self._generation_task.done():
            logger.debug("Superseding in-flight generation")
            self._generation_task.cancel()
        self._generation_task = None

    def start_new_story(self) -> ExerciseState:
        """Stop everything and return to an empty form with default settings."""
        self._cancel_generation()
        self.stop_speech()
        self.state = transitions.start_new_story(
            self.state,
            level=CEFRLevel(self.settings.default_level),
            word_count=self.settings.default_word_count,
        )
        return self.state

    def translation_for(self, sentence: str) -> str:
        return self.state.translation_for(sentence)

    # =========================================================================
    # Quiz
    # =========================================================================

    def answer(self, index: int, choice: str) -> ExerciseState:
        self.state = transitions.answer_question(self.state, index, choice)
        return self.state

    def submit_quiz(self) -> int | None:
        """Score the quiz; returns the number of correct answers."""
        self.state = transitions.submit_quiz(self.state)
        return self.state.quiz_score

    def reset_quiz(self) -> ExerciseState:
        self.state = transitions.reset_quiz(self.state)
        return self.state

    def next_question(self) -> int:
        self.state = transitions.go_to_question(self.state, self.state.current_question + 1)
        return self.state.current_question

    def previous_question(self) -> int:
        self.state = transitions.go_to_question(self.state, self.state.current_question - 1)
        return self.state.current_question

    def go_to_question(self, index: int) -> int:
        self.state = transitions.go_to_question(self.state, index)
        return self.state.current_question

    def quiz_review(self) -> list[ReviewItem]:
        """Incorrectly answered questions; empty until the quiz is scored."""
        if self.state.phase != Phase.QUIZ_SCORED:
            return []
        return review_incorrect(self.state.quiz_answers, list(self.state.quiz))

    # =========================================================================
    # Text Cloze
    # =========================================================================

    async def start_text_cloze(self) -> ExerciseState:
        """Turn the current text into a fill-in-the-blank exercise."""
        self.state = transitions.begin_cloze(self.state)
        if self.state.phase != Phase.CLOZE_LOADING:
            return self.state

        try:
            exercise = await self.service.generate_cloze_from_text(
                self.state.text, self.state.level
            )
        except GenerationError as e:
            self.state = transitions.cloze_failed(self.state, e.message)
            return self.state

        self.state = transitions.cloze_received(self.state, exercise)
        return self.state

    def answer_blank(self, index: int, value: str) -> ExerciseState:
        if self.state.cloze is not None:
            session = self.state.cloze.with_answer(index, value)
            self.state = transitions.update_cloze(self.state, session)
        return self.state

    async def fetch_blank_choices(self, index: int) -> list[str] | None:
        """Multiple-choice options for one blank of the text cloze."""
        if self.state.cloze is None:
            return None
        exercise = self.state.cloze.exercise
        options = await self._choices_for(self.state.cloze, index)
        current = self.state.cloze
        if current is None or current.exercise is not exercise:
            logger.debug(f"Discarding choices for blank {index}: exercise changed")
            return None
        if options is not None:
            self.state = transitions.update_cloze(self.state, current.with_choices(index, options))
        return options

    def check_cloze(self) -> list[bool]:
        if self.state.cloze is None:
            return []
        self.state = transitions.update_cloze(self.state, self.state.cloze.check())
        return self.state.cloze.results()

    def finish_cloze(self) -> ExerciseState:
        self.state = transitions.finish_cloze(self.state)
        return self.state

    # =========================================================================
    # Learning Mode (favorite list cloze)
    # =========================================================================

    async def start_list_learning(self, list_id: str) -> ListLearningState | None:
        """Build a cloze drill from the words of one favorite list."""
        favorite_list = library.find_list(self.favorite_lists, list_id)
        if favorite_list is None:
            return None

        self.learning = ListLearningState(favorite_list=favorite_list)
        if not favorite_list.words:
            self.learning = ListLearningState(
                favorite_list=favorite_list,
                is_loading=False,
                error=failure_message("cloze_words"),
            )
            return self.learning

        try:
            exercise = await self.service.generate_cloze_from_words(
                list(favorite_list.words), self.state.level
            )
        except GenerationError as e:
            self.learning = ListLearningState(
                favorite_list=favorite_list, is_loading=False, error=e.message
            )
            return self.learning

        self.learning = ListLearningState(
            favorite_list=favorite_list,
            session=ClozeSession.start(exercise),
            is_loading=False,
        )
        return self.learning

    def answer_learning_blank(self, index: int, value: str) -> None:
        if self.learning is not None and self.learning.session is not None:
            session = self.learning.session.with_answer(index, value)
            self.learning = self._learning_with(session=session)

    async def fetch_learning_choices(self, index: int) -> list[str] | None:
        if self.learning is None or self.learning.session is None:
            return None

        exercise = self.learning.session.exercise
        self.learning = self._learning_with(fetching_choices=index)
        options = await self._choices_for(self.learning.session, index)
        session = self.learning.session if self.learning is not None else None
        if session is None or session.exercise is not exercise:
            logger.debug(f"Discarding choices for blank {index}: exercise changed")
            return None

        if options is not None:
            session = session.with_choices(index, options)
        self.learning = self._learning_with(session=session, fetching_choices=None)
        return options

    def check_learning(self) -> list[bool]:
        if self.learning is None or self.learning.session is None:
            return []
        self.learning = self._learning_with(session=self.learning.session.check())
        return self.learning.session.results()

    def finish_learning(self) -> None:
        self.learning = None

    def _learning_with(self, **changes: Any) -> ListLearningState:
        return replace(self.learning, **changes)

    async def _choices_for(self, session: ClozeSession, index: int) -> list[str] | None:
        """Fetch distractors for one blank and shuffle in the correct answer."""
        if not 0 <= index < session.exercise.blank_count:
            return None
        if index in session.choices:
            return list(session.choices[index])

        answer = session.exercise.answers[index]
        context = distractor_context(session.exercise.cloze_text)
        try:
            distractors = await self.service.generate_distractors(answer, context)
        except GenerationError as e:
            logger.warning(f"No options for blank {index}: {e.message}")
            return None

        return build_choices(answer, distractors, self.rng)

    # =========================================================================
    # Word Lookup
    # =========================================================================

    def is_selectable(self, selection: str) -> bool:
        """Short selections (a word or phrase) are eligible for lookup."""
        term = selection.strip()
        return (
            bool(term)
            and len(term) < self.settings.max_selection_chars
            and len(term.split()) <= self.settings.max_selection_words
        )

    async def select_word(self, selection: str) -> WordLookup | None:
        """
        Translate a selected word or phrase.

        An ineligible selection clears the current lookup. Returns None when
        this lookup was superseded by a newer selection.
        """
        if self._lookup_task is not None and not self._lookup_task.done():
            self._lookup_task.cancel()
        self._lookup_seq += 1
        seq = self._lookup_seq

        if not self.is_selectable(selection):
            self.word_lookup = None
            return None

        term = selection.strip()
        self.word_lookup = WordLookup(term=term)

        task = asyncio.create_task(self.service.translate_word(term))
        self._lookup_task = task
        await _await_task(task)

        if task.cancelled() or seq != self._lookup_seq:
            return None

        error = task.exception()
        if isinstance(error, GenerationError):
            logger.warning(f"Lookup of '{term}' failed: {error.message}")
            translation = WORD_TRANSLATION_PLACEHOLDER
        elif error is not None:
            raise error
        else:
            translation = task.result()

        self.word_lookup = WordLookup(term=term, translation=translation, is_loading=False)
        return self.word_lookup

    def clear_word_lookup(self) -> None:
        if self._lookup_task is not None and not self._lookup_task.done():
            self._lookup_task.cancel()
        self._lookup_seq += 1
        self.word_lookup = None

    def _pending_word(self) -> FavoriteWord | None:
        lookup = self.word_lookup
        if lookup is None or lookup.is_loading:
            return None
        if not lookup.translation or lookup.translation == WORD_TRANSLATION_PLACEHOLDER:
            return None
        return FavoriteWord(german=lookup.term, turkish=lookup.translation)

    async def explain_word(self, term: str, level: CEFRLevel | None = None) -> WordExplanation:
        """Simple-German explanation, at the current level by default (raises GenerationError)."""
        return await self.service.explain_word(term, level or self.state.level)

    # =========================================================================
    # Favorite Lists
    # =========================================================================

    def _set_lists(self, lists: list[FavoriteList]) -> None:
        self.favorite_lists = lists
        self.repository.save_favorite_lists(lists)

    def create_list(self, name: str) -> FavoriteList | None:
        lists, new_list = library.create_list(self.favorite_lists, name)
        if new_list is not None:
            self._set_lists(lists)
        return new_list

    def delete_list(self, list_id: str) -> None:
        self._set_lists(library.delete_list(self.favorite_lists, list_id))

    def add_word(self, word: FavoriteWord, list_id: str) -> None:
        self._set_lists(library.add_word(self.favorite_lists, word, list_id))

    def remove_word(self, term: str, list_id: str) -> None:
        self._set_lists(library.remove_word(self.favorite_lists, term, list_id))

    def add_looked_up_word(self, list_id: str) -> bool:
        """Add the current lookup to a list; refused without a usable translation."""
        word = self._pending_word()
        if word is None:
            return False
        self.add_word(word, list_id)
        return True

    def create_list_and_add(self, name: str) -> FavoriteList | None:
        """Create a list and put the current lookup into it in one step."""
        word = self._pending_word()
        if word is None:
            return None
        lists, new_list = library.create_list(self.favorite_lists, name)
        if new_list is None:
            return None
        self._set_lists(library.add_word(lists, word, new_list.id))
        return library.find_list(self.favorite_lists, new_list.id)

    def is_word_in_favorites(self, term: str) -> bool:
        return library.is_word_in_favorites(self.favorite_lists, term)

    # =========================================================================
    # Saved Texts
    # =========================================================================

    def _set_texts(self, texts: list[SavedText]) -> None:
        self.saved_texts = texts
        self.repository.save_saved_texts(texts)

    def is_current_text_saved(self) -> bool:
        return library.is_text_saved(self.saved_texts, self.state.text)

    def save_current_text(self) -> bool:
        """Archive the current text with its translations and quiz."""
        if not self.state.text or self.is_current_text_saved():
            return False
        self._set_texts(
            library.save_text(
                self.saved_texts,
                title=self.state.theme,
                body=self.state.text,
                level=self.state.level,
                translations=list(self.state.translations),
                quiz=list(self.state.quiz),
            )
        )
        return True

    def load_text(self, saved: SavedText) -> ExerciseState:
        self._cancel_generation()
        self.stop_speech()
        self.state = transitions.load_saved_text(self.state, saved)
        return self.state

    def delete_text(self, body: str) -> None:
        self._set_texts(library.delete_text(self.saved_texts, body))

    def export_texts(self, path: Path | None = None) -> Path | None:
        """Write the archive as plain text; None when there is nothing to export."""
        return export_saved_texts(self.saved_texts, path or Path(self.settings.export_filename))

    # =========================================================================
    # Speech
    # =========================================================================

    def toggle_speech(self) -> bool:
        """Play the current text sentence by sentence, or stop playback."""
        if self.speech is None:
            self.state = transitions.set_error(self.state, SPEECH_UNSUPPORTED_MESSAGE)
            return False
        self.speech.toggle([pair.german for pair in self.state.translations])
        return self.speech.is_speaking

    def stop_speech(self) -> None:
        if self.speech is not None and self.speech.is_speaking:
            self.speech.stop()

    def _on_speech_error(self, error: SpeechError) -> None:
        self.state = transitions.set_error(self.state, str(error))

