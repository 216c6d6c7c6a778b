"""
Content Service: one model call per exercise operation.

Each operation:
1. Builds a German instruction embedding the caller's parameters
2. Calls Gemini (free text, or JSON constrained by a response schema)
3. Parses and validates the response into typed entities

Failures never escape as transport or parsing exceptions. They are logged
and normalized to the taxonomy in ``errors.py``:
- GenerationError: the call failed or returned nothing
- ResponseFormatError: structured output was not JSON
- ResponseValidationError: JSON parsed but broke a structural invariant
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from config import Settings, get_settings
from deutsch_meister.models import (
    CEFRLevel,
    ClozeExercise,
    FavoriteWord,
    QuizQuestion,
    TranslationPair,
    WordExplanation,
)

from . import prompts, schemas
from .errors import (
    MISSING_API_KEY_MESSAGE,
    ConfigurationError,
    GenerationError,
    ResponseFormatError,
    ResponseValidationError,
    failure_message,
    invalid_response_message,
)
from .validators import check_distractors, check_sentence_alignment, clean_theme

_TRANSLATIONS = TypeAdapter(list[TranslationPair])
_QUIZ = TypeAdapter(list[QuizQuestion])
_STRINGS = TypeAdapter(list[str])

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class ContentService:
    """
    Stateless bridge between exercise requests and the generation endpoint.

    The model client is created lazily. Tests inject any object exposing
    ``generate_content_async(prompt, generation_config=...)`` whose result
    has a ``text`` attribute.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        client: Any | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the service.

        Args:
            api_key: Gemini API key (uses settings if not provided)
            model_name: Model to use (uses settings if not provided)
            client: Pre-built model client, bypassing lazy construction
            settings: Settings instance (uses cached settings if not provided)
        """
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.gemini_api_key
        self.model_name = model_name or self.settings.ai_model
        self._client = client

    @property
    def client(self):
        """Lazy-load Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(MISSING_API_KEY_MESSAGE, action="configure")

            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(model_name=self.model_name)
        return self._client

    # =========================================================================
    # Free-text Operations
    # =========================================================================

    async def generate_story(
        self,
        level: CEFRLevel | str,
        theme: str,
        word_count: int,
        mood: str,
    ) -> str:
        """Generate a story of roughly ``word_count`` words for ``level``."""
        prompt = prompts.story_prompt(level, theme, word_count, mood)
        return (await self._call_text(prompt, "story")).strip()

    async def generate_random_theme(self, level: CEFRLevel | str, mood: str) -> str:
        """Ask the model for a story theme; quotes the model adds are removed."""
        raw = await self._call_text(prompts.random_theme_prompt(level, mood), "random_theme")
        theme = clean_theme(raw)
        if not theme:
            logger.error("Random theme was empty after cleanup")
            raise GenerationError(failure_message("random_theme"), "random_theme")
        return theme

    async def translate(self, text: str) -> str:
        """Translate a whole document into Turkish."""
        return (await self._call_text(prompts.translate_prompt(text), "translate")).strip()

    async def translate_word(self, word: str) -> str:
        """Most common Turkish translation of a word or short phrase."""
        raw = await self._call_text(prompts.translate_word_prompt(word), "translate_word")
        return raw.strip()

    # =========================================================================
    # Structured Operations
    # =========================================================================

    async def translate_sentence_by_sentence(self, text: str) -> list[TranslationPair]:
        """
        Translate ``text`` into aligned sentence pairs, in reading order.

        With ``strict_sentence_alignment`` enabled the result is rejected when
        the model's segmentation disagrees with the local sentence splitter.
        """
        action = "translate_sentences"
        data = await self._call_json(
            prompts.sentence_translation_prompt(text),
            schemas.TRANSLATION_PAIRS_SCHEMA,
            action,
        )
        pairs = self._validate(_TRANSLATIONS, data, action)

        check = check_sentence_alignment(text, pairs)
        if not check.is_aligned:
            if self.settings.strict_sentence_alignment:
                logger.error(f"Sentence alignment rejected: {'; '.join(check.issues)}")
                raise ResponseValidationError(invalid_response_message(action), action)
            logger.warning(f"Sentence alignment mismatch accepted: {'; '.join(check.issues)}")

        return pairs

    async def generate_quiz(
        self,
        text: str,
        question_count: int | None = None,
    ) -> list[QuizQuestion]:
        """
        Generate comprehension questions for ``text``.

        Every question must have four unique options containing the correct
        answer. Surplus questions are dropped; a quiz with fewer questions than
        requested (including an empty one) is rejected.
        """
        action = "quiz"
        count = question_count or self.settings.quiz_question_count
        data = await self._call_json(
            prompts.quiz_prompt(text, count), schemas.QUIZ_SCHEMA, action
        )
        questions = self._validate(_QUIZ, data, action)

        if len(questions) < count:
            logger.error(f"Requested {count} quiz questions, model returned {len(questions)}")
            raise ResponseValidationError(invalid_response_message(action), action)
        if len(questions) > count:
            logger.warning(f"Dropping {len(questions) - count} surplus quiz questions")

        return questions[:count]

    async def explain_word(self, word: str, level: CEFRLevel | str) -> WordExplanation:
        """Simple-German explanation of ``word`` with example sentences."""
        action = "explain_word"
        data = await self._call_json(
            prompts.explain_word_prompt(word, level),
            schemas.WORD_EXPLANATION_SCHEMA,
            action,
        )
        return self._validate(WordExplanation, data, action)

    async def generate_cloze_from_words(
        self,
        words: list[FavoriteWord],
        level: CEFRLevel | str,
    ) -> ClozeExercise:
        """Write a short text around ``words`` and blank each of them."""
        if not words:
            raise ValueError("cloze generation needs at least one word")

        action = "cloze_words"
        data = await self._call_json(
            prompts.cloze_from_words_prompt(words, level), schemas.CLOZE_SCHEMA, action
        )
        return self._validate(ClozeExercise, data, action)

    async def generate_cloze_from_text(self, text: str, level: CEFRLevel | str) -> ClozeExercise:
        """Blank 5-10 level-relevant words of an existing text."""
        action = "cloze_text"
        data = await self._call_json(
            prompts.cloze_from_text_prompt(text, level), schemas.CLOZE_SCHEMA, action
        )
        return self._validate(ClozeExercise, data, action)

    async def generate_distractors(self, word: str, context: str) -> list[str]:
        """Three plausible but wrong fillers for the blank whose answer is ``word``."""
        action = "distractors"
        data = await self._call_json(
            prompts.distractors_prompt(word, context), schemas.DISTRACTORS_SCHEMA, action
        )
        distractors = [d.strip() for d in self._validate(_STRINGS, data, action)]

        issues = check_distractors(word, distractors)
        if issues:
            logger.error(f"Distractors for '{word}' rejected: {'; '.join(issues)}")
            raise ResponseValidationError(invalid_response_message(action), action)

        return distractors

    # =========================================================================
    # Model Calls
    # =========================================================================

    def _generation_config(self, schema: dict | None = None) -> dict:
        config: dict[str, Any] = {}
        if self.settings.ai_temperature is not None:
            config["temperature"] = self.settings.ai_temperature
        if schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = schema
        return config

    async def _call_text(self, prompt: str, action: str, schema: dict | None = None) -> str:
        """Call Gemini and return the response text."""
        logger.debug(f"Requesting {action} from {self.model_name}")
        try:
            response = await self.client.generate_content_async(
                prompt,
                generation_config=self._generation_config(schema),
            )
            text = response.text
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Gemini API error during {action}: {e}")
            raise GenerationError(failure_message(action), action) from e

        if not text or not text.strip():
            logger.error(f"Empty response from Gemini during {action}")
            raise GenerationError(failure_message(action), action)

        return text

    async def _call_json(self, prompt: str, schema: dict, action: str) -> Any:
        """Call Gemini in JSON mode and decode the response."""
        text = await self._call_text(prompt, action, schema=schema)

        payload = text.strip()
        fenced = _CODE_FENCE.search(payload)
        if fenced:
            payload = fenced.group(1).strip()

        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error during {action}: {e}")
            logger.debug(f"Raw response for {action}: {text}")
            raise ResponseFormatError(invalid_response_message(action), action) from e

    def _validate(self, schema: Any, data: Any, action: str) -> Any:
        """Validate decoded JSON against a pydantic model or type adapter."""
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_python(data)
            return schema.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid {action} response: {e.error_count()} validation errors")
            logger.debug(f"{action} validation details: {e}")
            raise ResponseValidationError(invalid_response_message(action), action) from e
