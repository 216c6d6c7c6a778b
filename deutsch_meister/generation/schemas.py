"""
Response schemas for controlled generation.

Passed to Gemini as ``response_schema`` together with
``response_mime_type="application/json"``. The schemas only constrain the
shape; counts and cross-field rules are enforced after parsing by the
pydantic models in ``deutsch_meister.models``.
"""

from __future__ import annotations

STRING = {"type": "string"}

STRING_ARRAY = {
    "type": "array",
    "items": STRING,
}

# =============================================================================
# Sentence-by-sentence Translation
# =============================================================================

TRANSLATION_PAIRS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "german": {**STRING, "description": "One sentence of the source text"},
            "turkish": {**STRING, "description": "Turkish translation of that sentence"},
        },
        "required": ["german", "turkish"],
    },
}

# =============================================================================
# Comprehension Quiz
# =============================================================================

QUIZ_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "question": STRING,
            "options": {**STRING_ARRAY, "description": "Exactly 4 distinct answer options"},
            "correctAnswer": {**STRING, "description": "Verbatim copy of the correct option"},
        },
        "required": ["question", "options", "correctAnswer"],
    },
}

# =============================================================================
# Word Explanation
# =============================================================================

WORD_EXPLANATION_SCHEMA = {
    "type": "object",
    "properties": {
        "explanation": STRING,
        "examples": STRING_ARRAY,
    },
    "required": ["explanation", "examples"],
}

# =============================================================================
# Cloze Exercise
# =============================================================================

CLOZE_SCHEMA = {
    "type": "object",
    "properties": {
        "clozeText": {**STRING, "description": "Text with every target word replaced by [___]"},
        "answers": {**STRING_ARRAY, "description": "Removed words in left-to-right blank order"},
    },
    "required": ["clozeText", "answers"],
}

# =============================================================================
# Distractors
# =============================================================================

DISTRACTORS_SCHEMA = STRING_ARRAY
