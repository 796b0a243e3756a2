"""
Storage backends

JsonFileBackend keeps one JSON document per key in a data directory.
Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write leaves the previous snapshot intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from scansave.services.storage.interface import (
    PersistenceError,
    StorageBackend,
    StorageError,
)


class JsonFileBackend(StorageBackend):
    """File-per-key storage under a single directory."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(key, f"unreadable snapshot at {path}: {e}")

    def write(self, key: str, payload: str) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory,
                prefix=f".{key}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {path}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {key}: {e}")


class InMemoryBackend(StorageBackend):
    """Dictionary-backed storage for tests and ephemeral runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def read(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def write(self, key: str, payload: str) -> None:
        self.values[key] = payload
        self.write_count += 1

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
