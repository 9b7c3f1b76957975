"""File-backed key-value store."""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from nutrisnap.domain.errors import PersistenceError
from nutrisnap.services.entries import KeyValueStore


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores each key as a UTF-8 file inside a directory."""

    directory: Path

    def get(self, key: str) -> str | None:
        """Return the file contents for a key, if present."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        """Atomically replace the file for a key."""
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}") from exc

    def _path(self, key: str) -> Path:
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"
