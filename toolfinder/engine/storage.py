"""Key-value storage used for personalization data.

The engine only needs three synchronous, string-valued operations. Any of
them may raise (quota, corruption, disabled storage); callers are expected
to recover.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from loguru import logger


class StorageProvider(Protocol):
    """Interface for a string key-value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    """In-process storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Storage backed by a single JSON object on disk.

    Every write rewrites the file through a temporary file and an atomic
    rename so a crash never leaves a half-written store.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        """Current file contents; an unreadable file reads as empty and is rewritten on the next set."""
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring corrupt storage file {self.path}: {e}")
                return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: not a JSON object")
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {len(data)} keys to {self.path}")

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else json.dumps(value)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
