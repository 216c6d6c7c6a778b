"""Plain-text export of the saved-text archive."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from deutsch_meister.models import SavedText


def format_saved_text(text: SavedText) -> str:
    return f"--- {text.title} ({text.level.value}) ---\n\n{text.text}\n\n"


def format_export(texts: list[SavedText]) -> str:
    """Concatenate saved texts as titled blocks separated by a newline."""
    return "\n".join(format_saved_text(t) for t in texts)


def export_saved_texts(texts: list[SavedText], path: Path) -> Path | None:
    """
    Write the archive to ``path``.

    Returns:
        The written path, or None when there is nothing to export.
    """
    if not texts:
        return None

    path = Path(path)
    path.write_text(format_export(texts), encoding="utf-8")
    logger.info(f"Exported {len(texts)} saved texts to {path}")
    return path
