"""JSON file key-value storage backend.

Stores every key as ``<directory>/<key>.json``. Writes go to a temporary
file in the same directory and are moved into place with ``os.replace``,
so readers see either the previous snapshot or the new one.
"""

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path

from .base import KeyValueStorage

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStorage(KeyValueStorage):
    """File-backed storage, one JSON document per key."""

    def __init__(self, directory: str | Path = "~/.lmchat"):
        self._directory = Path(directory).expanduser()

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.warning("Could not decode %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def delete(self, key: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path_for(key).unlink()

    @property
    def backend_type(self) -> str:
        return "json"

    @property
    def directory(self) -> Path:
        return self._directory
