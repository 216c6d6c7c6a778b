"""
Unit tests for ContentService.

The Gemini client is replaced by FakeModelClient (see conftest.py).
"""

import pytest

from deutsch_meister.generation import (
    ConfigurationError,
    ContentService,
    GenerationError,
    ResponseFormatError,
    ResponseValidationError,
)
from deutsch_meister.generation.errors import (
    FAILURE_MESSAGES,
    INVALID_RESPONSE_MESSAGES,
    MISSING_API_KEY_MESSAGE,
)
from deutsch_meister.models import CEFRLevel, FavoriteWord


class TestClient:
    """Tests for lazy client construction."""

    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings):
        """Without a key every operation fails with a configuration error."""
        service = ContentService(settings=settings.model_copy(update={"gemini_api_key": None}))

        with pytest.raises(ConfigurationError) as exc_info:
            await service.generate_story(CEFRLevel.A2, "Berlin", 150, "neutral")

        assert exc_info.value.message == MISSING_API_KEY_MESSAGE


class TestFreeText:
    """Tests for free-text operations."""

    @pytest.mark.asyncio
    async def test_generate_story_prompt(self, service, fake_client):
        """The story prompt embeds level, theme, length and mood."""
        fake_client.queue("  Anna wohnt in Berlin.  \n")

        story = await service.generate_story(CEFRLevel.A2, "Ein Tag in Berlin", 150, "neutral")

        assert story == "Anna wohnt in Berlin."
        prompt = fake_client.prompts[0]
        assert "A2-Niveau" in prompt
        assert '"Ein Tag in Berlin"' in prompt
        assert "150 Wörtern" in prompt
        assert "neutral" in prompt

    @pytest.mark.asyncio
    async def test_free_text_has_no_response_schema(self, service, fake_client):
        fake_client.queue("Merhaba")

        await service.translate("Hallo")

        _, config = fake_client.calls[0]
        assert "response_schema" not in config

    @pytest.mark.asyncio
    async def test_transport_error_is_normalized(self, service, fake_client):
        """Client exceptions become GenerationError with the operation's message."""
        fake_client.queue(ConnectionError("network down"))

        with pytest.raises(GenerationError) as exc_info:
            await service.generate_story(CEFRLevel.B1, "Urlaub", 200, "lustig")

        assert exc_info.value.message == FAILURE_MESSAGES["story"]
        assert exc_info.value.action == "story"

    @pytest.mark.asyncio
    async def test_empty_response_is_a_failure(self, service, fake_client):
        fake_client.queue("   ")

        with pytest.raises(GenerationError):
            await service.translate_word("Haus")

    @pytest.mark.asyncio
    async def test_random_theme_quotes_removed(self, service, fake_client):
        fake_client.queue('"Ein geheimnisvoller Brief"\n')

        theme = await service.generate_random_theme(CEFRLevel.B2, "geheimnisvoll")

        assert theme == "Ein geheimnisvoller Brief"

    @pytest.mark.asyncio
    async def test_random_theme_empty_after_cleanup(self, service, fake_client):
        fake_client.queue('""')

        with pytest.raises(GenerationError) as exc_info:
            await service.generate_random_theme(CEFRLevel.B2, "neutral")

        assert exc_info.value.message == FAILURE_MESSAGES["random_theme"]

    @pytest.mark.asyncio
    async def test_translate_word(self, service, fake_client):
        fake_client.queue("ev\n")

        assert await service.translate_word("Haus") == "ev"
        assert '"Haus"' in fake_client.prompts[0]


class TestSentenceTranslation:
    """Tests for translate_sentence_by_sentence."""

    @pytest.mark.asyncio
    async def test_aligned_pairs(self, service, fake_client, sample_story, sample_translations):
        fake_client.queue(sample_translations)

        pairs = await service.translate_sentence_by_sentence(sample_story)

        assert [p.german for p in pairs] == [t["german"] for t in sample_translations]
        _, config = fake_client.calls[0]
        assert config["response_mime_type"] == "application/json"
        assert config["response_schema"]["type"] == "array"

    @pytest.mark.asyncio
    async def test_code_fenced_json_accepted(self, service, fake_client, sample_story, sample_translations):
        import json

        fake_client.queue("```json\n" + json.dumps(sample_translations) + "\n```")

        pairs = await service.translate_sentence_by_sentence(sample_story)

        assert len(pairs) == 3

    @pytest.mark.asyncio
    async def test_misaligned_rejected_when_strict(self, service, fake_client, sample_story, sample_translations):
        """Merged sentences fail closed by default."""
        fake_client.queue(sample_translations[:2])

        with pytest.raises(ResponseValidationError):
            await service.translate_sentence_by_sentence(sample_story)

    @pytest.mark.asyncio
    async def test_reordered_pairs_rejected(self, service, fake_client, sample_story, sample_translations):
        """Pairs must follow the story's sentence order."""
        fake_client.queue(list(reversed(sample_translations)))

        with pytest.raises(ResponseValidationError):
            await service.translate_sentence_by_sentence(sample_story)

    @pytest.mark.asyncio
    async def test_foreign_sentences_rejected(self, service, fake_client, sample_story):
        fake_client.queue([{"german": "Ganz anders.", "turkish": "Bambaşka."}] * 3)

        with pytest.raises(ResponseValidationError):
            await service.translate_sentence_by_sentence(sample_story)

    @pytest.mark.asyncio
    async def test_misaligned_accepted_when_lenient(self, fake_client, settings, sample_story, sample_translations):
        lenient = settings.model_copy(update={"strict_sentence_alignment": False})
        service = ContentService(client=fake_client, settings=lenient)
        fake_client.queue(sample_translations[:2])

        pairs = await service.translate_sentence_by_sentence(sample_story)

        assert len(pairs) == 2

    @pytest.mark.asyncio
    async def test_not_json(self, service, fake_client, sample_story):
        fake_client.queue("Hier ist die Übersetzung:")

        with pytest.raises(ResponseFormatError):
            await service.translate_sentence_by_sentence(sample_story)


class TestQuiz:
    """Tests for generate_quiz."""

    @pytest.mark.asyncio
    async def test_five_questions(self, service, fake_client, sample_story, sample_quiz):
        fake_client.queue(sample_quiz)

        questions = await service.generate_quiz(sample_story)

        assert len(questions) == 5
        assert questions[0].correct_answer == "Berlin"
        assert "5 Fragen" in fake_client.prompts[0]

    @pytest.mark.asyncio
    async def test_quotes_escaped_in_prompt(self, service, fake_client, sample_quiz):
        fake_client.queue(sample_quiz)

        await service.generate_quiz('Er sagte: "Hallo".')

        assert 'Er sagte: \\"Hallo\\".' in fake_client.prompts[0]

    @pytest.mark.asyncio
    async def test_surplus_questions_truncated(self, service, fake_client, sample_story, sample_quiz):
        fake_client.queue(sample_quiz + sample_quiz[:2])

        questions = await service.generate_quiz(sample_story)

        assert len(questions) == 5

    @pytest.mark.asyncio
    async def test_fewer_questions_rejected(self, service, fake_client, sample_story, sample_quiz):
        """A quiz always has the configured number of questions."""
        fake_client.queue(sample_quiz[:3])

        with pytest.raises(ResponseValidationError):
            await service.generate_quiz(sample_story)

    @pytest.mark.asyncio
    async def test_empty_quiz_rejected(self, service, fake_client, sample_story):
        fake_client.queue([])

        with pytest.raises(ResponseValidationError):
            await service.generate_quiz(sample_story)

    @pytest.mark.asyncio
    async def test_malformed_json_message(self, service, fake_client, sample_story):
        """A schema violation carries the quiz-specific invalid-response message."""
        fake_client.queue('[{"question": "Wo?", "options": ')

        with pytest.raises(ResponseFormatError) as exc_info:
            await service.generate_quiz(sample_story)

        assert exc_info.value.message == INVALID_RESPONSE_MESSAGES["quiz"]

    @pytest.mark.asyncio
    async def test_invalid_question_rejected(self, service, fake_client, sample_story, sample_quiz):
        broken = dict(sample_quiz[0], correctAnswer="Paris")
        fake_client.queue([broken, *sample_quiz[1:]])

        with pytest.raises(ResponseValidationError):
            await service.generate_quiz(sample_story)


class TestStructuredOperations:
    """Tests for explanation, cloze and distractor generation."""

    @pytest.mark.asyncio
    async def test_explain_word(self, service, fake_client):
        fake_client.queue(
            {
                "explanation": "Fernweh ist die Sehnsucht nach fernen Orten.",
                "examples": ["Im Winter habe ich oft Fernweh.", "Fernweh macht mich unruhig."],
            }
        )

        explanation = await service.explain_word("Fernweh", CEFRLevel.B1)

        assert explanation.examples[0].startswith("Im Winter")
        assert "B1-Niveau" in fake_client.prompts[0]

    @pytest.mark.asyncio
    async def test_explain_word_without_examples(self, service, fake_client):
        fake_client.queue({"explanation": "Ein Wort.", "examples": []})

        with pytest.raises(ResponseValidationError):
            await service.explain_word("Wort", CEFRLevel.A2)

    @pytest.mark.asyncio
    async def test_cloze_from_words(self, service, fake_client, sample_cloze):
        fake_client.queue(sample_cloze)
        words = [FavoriteWord(german="wohnt", turkish="yaşıyor"), FavoriteWord(german="U-Bahn", turkish="metro")]

        exercise = await service.generate_cloze_from_words(words, CEFRLevel.A2)

        assert exercise.answers == ("wohnt", "U-Bahn")
        assert '"wohnt", "U-Bahn"' in fake_client.prompts[0]

    @pytest.mark.asyncio
    async def test_cloze_from_words_needs_words(self, service):
        with pytest.raises(ValueError):
            await service.generate_cloze_from_words([], CEFRLevel.A2)

    @pytest.mark.asyncio
    async def test_cloze_marker_mismatch_rejected(self, service, fake_client, sample_story):
        """Three blanks with two answers is a schema violation."""
        fake_client.queue({"clozeText": "[___] [___] [___]", "answers": ["a", "b"]})

        with pytest.raises(ResponseValidationError):
            await service.generate_cloze_from_text(sample_story, CEFRLevel.A2)

    @pytest.mark.asyncio
    async def test_distractors(self, service, fake_client):
        fake_client.queue([" Bus ", "Zug", "Taxi"])

        distractors = await service.generate_distractors("U-Bahn", "Sie fährt mit der ___ zur Arbeit.")

        assert distractors == ["Bus", "Zug", "Taxi"]
        assert "Sie fährt mit der ___ zur Arbeit." in fake_client.prompts[0]

    @pytest.mark.asyncio
    async def test_distractor_equal_to_answer_rejected(self, service, fake_client):
        fake_client.queue(["Bus", "u-bahn", "Taxi"])

        with pytest.raises(ResponseValidationError):
            await service.generate_distractors("U-Bahn", "Mit der ___.")

    @pytest.mark.asyncio
    async def test_temperature_passed_when_configured(self, fake_client, settings, sample_cloze):
        service = ContentService(
            client=fake_client, settings=settings.model_copy(update={"ai_temperature": 0.4})
        )
        fake_client.queue(sample_cloze)

        await service.generate_cloze_from_text("Anna wohnt in Berlin.", CEFRLevel.A2)

        _, config = fake_client.calls[0]
        assert config["temperature"] == 0.4
