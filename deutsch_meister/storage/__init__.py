"""Local persistence: key/value store, library repository and export."""
from deutsch_meister.storage.export import export_saved_texts, format_export
from deutsch_meister.storage.local_store import LocalStore
from deutsch_meister.storage.repository import (
    FAVORITE_LISTS_KEY,
    SAVED_TEXTS_KEY,
    LibraryRepository,
)

__all__ = [
    "FAVORITE_LISTS_KEY",
    "SAVED_TEXTS_KEY",
    "LibraryRepository",
    "LocalStore",
    "export_saved_texts",
    "format_export",
]
