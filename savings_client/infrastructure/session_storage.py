"""Session Storage — KeyValueStorage backends for the persisted current user.

Invariants:
    - JsonFileStorage keeps every key in one JSON object on disk
    - Writes go to a temp file then os.replace(): a crash never leaves half a file
    - A missing file reads as empty; an unreadable file is logged and read as empty
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Process-local storage (tests, headless scripts)."""

    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """One JSON file holding string values by key."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable session storage {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
