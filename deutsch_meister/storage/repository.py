"""
Persistence of favorite lists and saved texts.

Two keys in the local store, each holding a JSON array:
- ``favoriteLists``: FavoriteList[]
- ``savedTexts``: SavedText[] (newest first)

Loading is fail-soft: an absent or malformed value yields an empty list.
Saving serializes the full list on every change.
"""

from __future__ import annotations

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from deutsch_meister.models import FavoriteList, SavedText

from .local_store import LocalStore

FAVORITE_LISTS_KEY = "favoriteLists"
SAVED_TEXTS_KEY = "savedTexts"

_FAVORITE_LISTS = TypeAdapter(list[FavoriteList])
_SAVED_TEXTS = TypeAdapter(list[SavedText])


class LibraryRepository:
    """Reads and writes the learner's library through a LocalStore."""

    def __init__(self, store: LocalStore):
        self.store = store

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.store.get_item(key)
        if raw is None:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed '{key}' entry: {e.error_count()} errors")
            return []

    def _save(self, key: str, adapter: TypeAdapter, items: list) -> None:
        try:
            self.store.set_item(key, adapter.dump_json(items, by_alias=True).decode("utf-8"))
        except OSError as e:
            logger.error(f"Failed to save '{key}': {e}")

    def load_favorite_lists(self) -> list[FavoriteList]:
        return self._load(FAVORITE_LISTS_KEY, _FAVORITE_LISTS)

    def save_favorite_lists(self, lists: list[FavoriteList]) -> None:
        self._save(FAVORITE_LISTS_KEY, _FAVORITE_LISTS, list(lists))

    def load_saved_texts(self) -> list[SavedText]:
        return self._load(SAVED_TEXTS_KEY, _SAVED_TEXTS)

    def save_saved_texts(self, texts: list[SavedText]) -> None:
        self._save(SAVED_TEXTS_KEY, _SAVED_TEXTS, list(texts))
