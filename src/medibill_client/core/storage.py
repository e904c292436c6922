# ============================================================================
# src/medibill_client/core/storage.py
# ============================================================================
"""
Client-local storage

Key/value store playing the role of the browser's localStorage: one JSON
file on the client machine, not synced anywhere. Every write replaces the
whole file atomically, so a reader never observes a partial update.
"""

from pathlib import Path
from typing import Any, Dict, Optional
import logging

from src.medibill_client.config import storage_settings
from src.utils.exceptions import StorageError
from src.utils.file_utils import read_json, write_json


logger = logging.getLogger(__name__)


class LocalStorage:
    """JSON-file backed key/value storage."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else storage_settings.STORAGE_PATH

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            # ValueError covers both malformed JSON and bytes that are not UTF-8
            logger.warning(f"Ignoring unreadable local storage {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring local storage {self.path}: top level is not an object")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            write_json(data, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write local storage {self.path}: {e}") from e

    def get_item(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set_item(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        self._save({})

    def __contains__(self, key: str) -> bool:
        return key in self._load()
