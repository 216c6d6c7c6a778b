"""
Favorite word lists and the saved-text archive.

Pure functions over immutable entities: every operation returns a new list
and leaves its input untouched, so callers can persist the result with a
full overwrite.
"""

from __future__ import annotations

import uuid

from deutsch_meister.models import (
    CEFRLevel,
    FavoriteList,
    FavoriteWord,
    QuizQuestion,
    SavedText,
    TranslationPair,
)

PREVIEW_WORDS = 10


# =============================================================================
# Favorite Lists
# =============================================================================


def _same_term(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def create_list(
    lists: list[FavoriteList], name: str
) -> tuple[list[FavoriteList], FavoriteList | None]:
    """
    Prepend a new empty list.

    Returns:
        (updated lists, new list) - the new list is None for a blank name
    """
    name = name.strip()
    if not name:
        return list(lists), None

    new_list = FavoriteList(id=str(uuid.uuid4()), name=name, words=())
    return [new_list, *lists], new_list


def delete_list(lists: list[FavoriteList], list_id: str) -> list[FavoriteList]:
    return [fl for fl in lists if fl.id != list_id]


def add_word(lists: list[FavoriteList], word: FavoriteWord, list_id: str) -> list[FavoriteList]:
    """Add ``word`` to one list; a case-insensitive duplicate term is a no-op."""
    updated = []
    for fl in lists:
        if fl.id == list_id and not any(_same_term(w.german, word.german) for w in fl.words):
            fl = fl.model_copy(update={"words": (*fl.words, word)})
        updated.append(fl)
    return updated


def remove_word(lists: list[FavoriteList], term: str, list_id: str) -> list[FavoriteList]:
    """Remove every word of one list whose term matches ``term`` case-insensitively."""
    updated = []
    for fl in lists:
        if fl.id == list_id:
            fl = fl.model_copy(
                update={"words": tuple(w for w in fl.words if not _same_term(w.german, term))}
            )
        updated.append(fl)
    return updated


def find_list(lists: list[FavoriteList], list_id: str) -> FavoriteList | None:
    return next((fl for fl in lists if fl.id == list_id), None)


def is_word_in_favorites(lists: list[FavoriteList], term: str) -> bool:
    return any(_same_term(w.german, term) for fl in lists for w in fl.words)


def sorted_words(favorite_list: FavoriteList) -> list[FavoriteWord]:
    """Words of a list in alphabetical order of their German term."""
    return sorted(favorite_list.words, key=lambda w: (w.german.casefold(), w.german))


# =============================================================================
# Saved Texts
# =============================================================================


def is_text_saved(texts: list[SavedText], body: str) -> bool:
    return any(t.text == body for t in texts)


def save_text(
    texts: list[SavedText],
    title: str,
    body: str,
    level: CEFRLevel,
    translations: list[TranslationPair],
    quiz: list[QuizQuestion],
) -> list[SavedText]:
    """Prepend a snapshot unless an entry with identical body text exists."""
    if not body or is_text_saved(texts, body):
        return list(texts)

    entry = SavedText(
        title=title,
        text=body,
        level=level,
        translations=tuple(translations),
        quiz=tuple(quiz),
    )
    return [entry, *texts]


def delete_text(texts: list[SavedText], body: str) -> list[SavedText]:
    return [t for t in texts if t.text != body]


def preview(body: str) -> str:
    """First ten space-separated words followed by an ellipsis."""
    return " ".join(body.split(" ")[:PREVIEW_WORDS]) + "..."
