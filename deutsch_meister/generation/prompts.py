"""
Prompts for the German reading trainer.

Every prompt is written in German, addresses the model as a German teacher
and embeds the caller's parameters. Translation prompts target Turkish.
Structured prompts describe the JSON shape in prose; the matching response
schema is passed alongside (see ``schemas.py``).
"""
from __future__ import annotations

from deutsch_meister.models import BLANK_MARKER, CEFRLevel, FavoriteWord

# =============================================================================
# Free-text Prompts
# =============================================================================

STORY_PROMPT = (
    "Du bist ein Deutschlehrer. Erstelle einen zusammenhängenden und interessanten "
    "Text oder eine Geschichte mit etwa {word_count} Wörtern für einen Deutschlerner "
    "auf dem {level}-Niveau zum Thema \"{theme}\". Der Ton des Textes sollte {mood} sein. "
    "Der Text sollte klar, gut strukturiert und für das angegebene Sprachniveau "
    "angemessen sein. Antworte nur mit dem generierten Text."
)

RANDOM_THEME_PROMPT = (
    "Gib mir ein interessantes und kreatives Thema für eine {mood} Geschichte für "
    "einen Deutschlerner auf dem {level}-Niveau. Antworte nur mit dem Thema selbst, "
    "ohne zusätzliche Sätze, Erklärungen oder Anführungszeichen."
)

TRANSLATE_PROMPT = "Übersetze den folgenden deutschen Text ins Türkische: \"{text}\""

TRANSLATE_WORD_PROMPT = (
    "Translate the following German word/phrase into Turkish. Provide only the most "
    "common translation. Do not add any extra text or explanations. Word: \"{word}\""
)

# =============================================================================
# Structured Prompts
# =============================================================================

SENTENCE_TRANSLATION_PROMPT = (
    "Übersetze den folgenden deutschen Text Satz für Satz ins Türkische. Gib die "
    "Antwort als JSON-Array zurück, wobei jedes Objekt die Schlüssel \"german\" und "
    "\"turkish\" hat. Behalte die Reihenfolge der Sätze bei und lasse keinen Satz aus. "
    "Der Text: \"{text}\""
)

QUIZ_PROMPT = (
    "Erstelle ein Multiple-Choice-Quiz mit {question_count} Fragen auf Deutsch "
    "basierend auf dem folgenden deutschen Text. Das Quiz sollte das Textverständnis "
    "und den Wortschatz testen. Gib die Antwort als JSON-Array zurück. Jedes Objekt "
    "sollte die Schlüssel \"question\" (die Frage auf Deutsch), \"options\" (ein Array "
    "von 4 unterschiedlichen deutschen Strings als Antwortmöglichkeiten) und "
    "\"correctAnswer\" (die richtige deutsche Antwort, wörtlich identisch mit einer "
    "der Optionen) haben. Der Text: \"{text}\""
)

EXPLAIN_WORD_PROMPT = (
    "Erkläre das deutsche Wort/die deutsche Phrase \"{word}\" für einen Deutschlerner "
    "auf dem {level}-Niveau auf einfachem Deutsch. Gib auch 2 Beispielsätze. Gib die "
    "Antwort als JSON-Objekt mit den Schlüsseln \"explanation\" (eine Zeichenkette) "
    "und \"examples\" (ein Array von Zeichenketten)."
)

_CLOZE_FORMAT = (
    "Gib die Antwort als JSON-Objekt mit zwei Schlüsseln zurück: 'clozeText' (der Text, "
    "in dem jedes Zielwort durch '{marker}' ersetzt wurde) und 'answers' (ein Array der "
    "ursprünglichen Wörter in der Reihenfolge, in der sie im Text erscheinen). Stelle "
    "sicher, dass die Reihenfolge der Wörter im 'answers'-Array genau der Reihenfolge "
    "der Lücken im 'clozeText' entspricht und dass es genau so viele Lücken wie "
    "Antworten gibt."
).format(marker=BLANK_MARKER)

CLOZE_FROM_WORDS_PROMPT = (
    "Erstelle einen kurzen, zusammenhängenden deutschen Text von etwa 5-7 Sätzen auf "
    "dem {level}-Niveau, der die folgenden Wörter/Phrasen natürlich verwendet: "
    "{word_list}. " + _CLOZE_FORMAT
)

CLOZE_FROM_TEXT_PROMPT = (
    "Basierend auf dem folgenden deutschen Text auf dem {level}-Niveau, erstelle einen "
    "Lückentext (cloze test). Wähle 5-10 wichtige und für das Niveau relevante Wörter "
    "(Substantive, Verben, Adjektive) aus, die im Text ausgefüllt werden sollen. "
    + _CLOZE_FORMAT
    + " Der Text: \"{text}\""
)

DISTRACTORS_PROMPT = (
    "Der folgende deutsche Satz hat eine Lücke: \"{context}\". Das richtige Wort für "
    "die Lücke ist \"{word}\". Erstelle 3 plausible, aber falsche deutsche "
    "Antwortmöglichkeiten (Distraktoren) für diese Lücke. Die Distraktoren sollten "
    "grammatikalisch in den Satz passen, aber die Bedeutung falsch machen. Gib die "
    "Antwort als JSON-Array zurück, das nur die 3 falschen Wörter enthält."
)


# =============================================================================
# Prompt Builders
# =============================================================================


def _level(level: CEFRLevel | str) -> str:
    return level.value if isinstance(level, CEFRLevel) else str(level)


def story_prompt(level: CEFRLevel | str, theme: str, word_count: int, mood: str) -> str:
    return STORY_PROMPT.format(
        word_count=word_count, level=_level(level), theme=theme, mood=mood
    )


def random_theme_prompt(level: CEFRLevel | str, mood: str) -> str:
    return RANDOM_THEME_PROMPT.format(level=_level(level), mood=mood)


def translate_prompt(text: str) -> str:
    return TRANSLATE_PROMPT.format(text=text)


def translate_word_prompt(word: str) -> str:
    return TRANSLATE_WORD_PROMPT.format(word=word)


def sentence_translation_prompt(text: str) -> str:
    return SENTENCE_TRANSLATION_PROMPT.format(text=text)


def quiz_prompt(text: str, question_count: int) -> str:
    """Build the quiz prompt; double quotes in the text are escaped."""
    sanitized = text.replace('"', '\\"')
    return QUIZ_PROMPT.format(question_count=question_count, text=sanitized)


def explain_word_prompt(word: str, level: CEFRLevel | str) -> str:
    return EXPLAIN_WORD_PROMPT.format(word=word, level=_level(level))


def cloze_from_words_prompt(words: list[FavoriteWord], level: CEFRLevel | str) -> str:
    word_list = ", ".join(f'"{w.german}"' for w in words)
    return CLOZE_FROM_WORDS_PROMPT.format(level=_level(level), word_list=word_list)


def cloze_from_text_prompt(text: str, level: CEFRLevel | str) -> str:
    return CLOZE_FROM_TEXT_PROMPT.format(level=_level(level), text=text)


def distractors_prompt(word: str, context: str) -> str:
    return DISTRACTORS_PROMPT.format(word=word, context=context)
