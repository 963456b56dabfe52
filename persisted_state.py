import json
from pathlib import Path
from typing import Any, Dict

from logging_config import get_logger

logger = get_logger(__name__)


class PersistedState:
    """Small JSON file holding UI preferences under fixed string keys.

    {
        "metafield-manager:visible-columns": ["short_description", ...],
        "metafield-manager:product-filters": {"search": "", ...}
    }

    Loaded once, written on every ``set``. A missing, unreadable or corrupt
    file behaves like an empty one, and write failures are only logged.
    """

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self._state: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.filepath.exists():
            return
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._state = data
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable UI state file %s: %s", self.filepath, e)
            self._state = {}

    def _save(self) -> None:
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            with self.filepath.open("w", encoding="utf-8") as f:
                json.dump(self._state, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError) as e:
            logger.warning("Could not write UI state file %s: %s", self.filepath, e)

    def get(self, key: str, default=None):
        return self._state.get(key, default)

    def set(self, key: str, value) -> None:
        self._state[key] = value
        self._save()
