"""Key-value storage backends for persisted UI state."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from modules.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """Minimal string blob store, modelled on browser localStorage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


def _encode(key: str, value: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise StorageError(f"Value for '{key}' is not valid UTF-8 text: {exc}") from exc


class MemoryStorage:
    """In-process storage, mostly for tests and headless runs."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        size = len(_encode(key, value))
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if used + size > self.quota_bytes:
                raise StorageError(f"Storage quota exceeded while writing '{key}'")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """Directory-backed storage with one UTF-8 file per key.

    Each write replaces the whole value through a temporary file and
    ``os.replace``; readers see either the previous or the new blob.
    """

    def __init__(self, root_dir: Path, quota_bytes: Optional[int] = 5 * 1024 * 1024) -> None:
        self.root_dir = Path(root_dir)
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root_dir / f"{key}.json"

    def _used_bytes(self, exclude: Path) -> int:
        if not self.root_dir.exists():
            return 0
        total = 0
        for child in self.root_dir.glob("*.json"):
            if child == exclude:
                continue
            try:
                total += child.stat().st_size
            except OSError:
                continue
        return total

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read storage key %s: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        payload = _encode(key, value)
        if self.quota_bytes is not None and self._used_bytes(path) + len(payload) > self.quota_bytes:
            raise StorageError(
                f"Storage quota exceeded while writing '{key}' "
                f"({len(payload)} bytes, quota {self.quota_bytes})"
            )

        tmp_name: Optional[str] = None
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root_dir, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as fp:
                fp.write(payload)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(f"Failed to write '{key}': {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
