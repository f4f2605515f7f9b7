"""JSON file backed key-value persistence."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from photo_sharing_client.services.sessions import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store persisted as a single JSON object on disk."""

    path: Path

    def get(self, key: str) -> object | None:
        """Return the stored value for a key, if present."""
        return self._load().get(key)

    def set(self, key: str, value: object) -> None:
        """Store a JSON-serializable value under a key."""
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def _load(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable state file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)
