"""
Error taxonomy for content generation.

Every ContentService operation raises one of these, never a raw transport
or parsing exception. ``message`` is the short, localized text shown to the
learner; ``action`` names the operation that failed.
"""

from __future__ import annotations


class GenerationError(Exception):
    """The model call failed or was rejected."""

    def __init__(self, message: str, action: str = "generate"):
        super().__init__(message)
        self.message = message
        self.action = action


class ConfigurationError(GenerationError):
    """No API key is configured for the generation endpoint."""


class ResponseFormatError(GenerationError):
    """A structured response was not valid JSON."""


class ResponseValidationError(ResponseFormatError):
    """A structured response parsed but violates a structural invariant."""


class SpeechError(Exception):
    """Speech playback failed for a reason other than cancellation."""


# =============================================================================
# User-facing Messages
# =============================================================================

FAILURE_MESSAGES: dict[str, str] = {
    "story": "Metin oluşturulurken bir hata oluştu. Lütfen tekrar deneyin.",
    "random_theme": "Rastgele tema oluşturulurken bir hata oluştu.",
    "translate": "Çeviri sırasında bir hata oluştu.",
    "translate_word": "Kelime çevirisi sırasında bir hata oluştu.",
    "translate_sentences": "Cümle çevirisi sırasında bir hata oluştu.",
    "quiz": "Test oluşturulurken bir hata oluştu.",
    "explain_word": "Kelime açıklanırken bir hata oluştu.",
    "cloze_words": "Öğrenme modu içeriği oluşturulurken bir hata oluştu.",
    "cloze_text": "Metinden öğrenme modu içeriği oluşturulurken bir hata oluştu.",
    "distractors": "Alternatif şıklar oluşturulurken bir hata oluştu.",
}

INVALID_RESPONSE_MESSAGES: dict[str, str] = {
    "quiz": (
        "Test oluşturulamadı çünkü modelden geçersiz bir yanıt alındı. "
        "Lütfen farklı bir metinle tekrar deneyin."
    ),
}

DEFAULT_INVALID_RESPONSE_MESSAGE = (
    "Modelden geçersiz bir yanıt alındı. Lütfen farklı bir girdiyle tekrar deneyin."
)

MISSING_API_KEY_MESSAGE = "GEMINI_API_KEY ayarlanmamış. Lütfen API anahtarını yapılandırın."

# Orchestrator-level messages
SEQUENCE_FAILED_MESSAGE = "İçerik oluşturulurken bir hata oluştu. Lütfen tekrar deneyin."
TEXT_CLOZE_EMPTY_MESSAGE = (
    "Bu metin için öğrenme modu oluşturulamadı. Lütfen farklı bir metin deneyin."
)
WORD_TRANSLATION_PLACEHOLDER = "Çeviri hatası"
WORD_COUNT_MESSAGE = "Kelime sayısı {low} ile {high} arasında ve {step}'lik adımlarla seçilmelidir."
SPEECH_UNSUPPORTED_MESSAGE = "Seslendirme özelliği bu sistemde desteklenmiyor."
SPEECH_FAILED_MESSAGE = "Seslendirme sırasında bir hata oluştu."


def failure_message(action: str) -> str:
    return FAILURE_MESSAGES.get(action, SEQUENCE_FAILED_MESSAGE)


def invalid_response_message(action: str) -> str:
    return INVALID_RESPONSE_MESSAGES.get(action, DEFAULT_INVALID_RESPONSE_MESSAGE)
