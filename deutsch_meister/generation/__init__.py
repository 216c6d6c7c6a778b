"""Prompt construction, model calls and response validation.

Usage:
    from deutsch_meister.generation import ContentService

    service = ContentService()
    story = await service.generate_story("A2", "Ein Tag in Berlin", 150, "neutral")
    pairs = await service.translate_sentence_by_sentence(story)
"""
from deutsch_meister.generation.content_service import ContentService
from deutsch_meister.generation.errors import (
    ConfigurationError,
    GenerationError,
    ResponseFormatError,
    ResponseValidationError,
    SpeechError,
)

__all__ = [
    "ContentService",
    "ConfigurationError",
    "GenerationError",
    "ResponseFormatError",
    "ResponseValidationError",
    "SpeechError",
]
