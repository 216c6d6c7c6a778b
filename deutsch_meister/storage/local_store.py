"""
Local key/value store.

String-keyed, string-valued persistence mirroring browser local storage.
Each key lives in its own UTF-8 file under the data directory
(default ``~/.deutsch_meister/``). Writes replace the whole value.
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStore:
    """File-per-key string store."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("key must not be empty")
        return self.data_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent or unreadable."""
        filepath = self._path(key)
        if not filepath.exists():
            return None

        try:
            return filepath.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {filepath}: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        """Overwrite the value stored under ``key``."""
        filepath = self._path(key)
        tmp_path = filepath.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(filepath)

    def remove_item(self, key: str) -> bool:
        filepath = self._path(key)
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.data_dir.glob("*.json"))
