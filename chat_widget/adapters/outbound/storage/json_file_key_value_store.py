"""JSON file key-value store adapter."""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from chat_widget.application.errors import StorageUnavailable
from chat_widget.application.ports.key_value_store import KeyValueStore


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store persisted as one JSON object in a local file.

    Each write replaces the whole file atomically, so keys written together
    are always read back together.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Initialize file store.

        Args:
            path: Location of the JSON file (created on first write)
        """
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self._path}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Corrupt storage file {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailable(f"Corrupt storage file {self._path}: not an object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, sort_keys=True)
                os.replace(tmp_path, self._path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self._path}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        """Get a value."""
        return self._read().get(key)

    async def set_many(self, items: dict[str, str]) -> None:
        """Store several keys in one file replacement."""
        data = self._read()
        data.update(items)
        self._write(data)
