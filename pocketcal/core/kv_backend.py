"""Key-value document backends used by the event store.

A backend holds serialized documents under string keys with plain get/set
semantics. FileBackend keeps one JSON file per key and writes atomically;
MemoryBackend keeps everything in a dict.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

from ..config_loader import STORAGE_KEY_PATTERN
from ..exceptions import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(STORAGE_KEY_PATTERN)


class KeyValueBackend(Protocol):
    """Minimal blob store: one serialized document per key."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored document for ``key`` or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous document."""
        ...


class MemoryBackend:
    """In-process backend. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data


class FileBackend:
    """Directory-backed store with one ``<key>.json`` file per key.

    Writes go to a temporary file in the same directory and are then
    replaced into place, so a reader never sees a half-written document.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._dir = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key):
            raise ValueError(f"storage key {key!r} contains unsupported characters")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            path = self.path_for(key)
        except ValueError as exc:
            raise StoreReadError(str(exc)) from exc
        if not path.exists():
            logger.debug("No document for key %r at %s", key, path)
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(f"failed to read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            path = self.path_for(key)
        except ValueError as exc:
            raise StoreWriteError(str(exc)) from exc
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreWriteError(f"cannot create data directory {self._dir}: {exc}") from exc

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._dir, delete=False, encoding="utf-8", suffix=".tmp"
            ) as tf:
                tmp_path = Path(tf.name)
                tf.write(value)
                tf.flush()
                with contextlib.suppress(OSError):
                    os.fsync(tf.fileno())
            tmp_path.replace(path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise StoreWriteError(f"failed to write {path}: {exc}") from exc

        logger.debug("Wrote %d bytes to %s", len(value), path)
