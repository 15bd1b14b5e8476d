"""
Key-value persistence for client-local state.

PERSISTENCE:
- String keys, JSON documents as values
- Missing keys are absent, never an error
- Unreadable documents are logged and treated as absent
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class DataCorruptionError(Exception):
    """Persisted data could not be read back."""


class KeyValueStore(ABC):
    """Durable string-keyed mapping of JSON documents."""

    def put(self, key: str, value: Any) -> None:
        """Serialize and store a value under key."""
        self._write(key, json.dumps(value, ensure_ascii=False))

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when missing or unreadable."""
        raw = self._read(key)
        if raw is None:
            return None
        try:
            return self._decode(key, raw)
        except DataCorruptionError as exc:
            logger.warning("Ignoring corrupt stored data: %s", exc)
            return None

    def delete(self, key: str) -> None:
        """Remove key if present."""
        self._remove(key)

    @staticmethod
    def _decode(key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            raise DataCorruptionError(f"{key}: {exc}") from exc

    @abstractmethod
    def _read(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def _write(self, key: str, raw: str) -> None: ...

    @abstractmethod
    def _remove(self, key: str) -> None: ...


class MemoryKeyValueStore(KeyValueStore):
    """In-process storage, lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def _remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Union[Path, str]):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def _write(self, key: str, raw: str) -> None:
        # Replace atomically so an interrupted write never leaves half a document
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory, prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(raw)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
