"""Generation history tracking."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from config.settings import HISTORY_KEY
from modules.errors import CorruptDataError, StorageError
from modules.services.storage_service import KeyValueStorage
from modules.utils.content_type import ContentType, classify, parse_content_type

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """Snapshot of one successful QR generation."""

    id: int
    text: str
    image_data: str  # PNG data URL
    size: int
    timestamp: int
    content_type: Optional[ContentType] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "dataURL": self.image_data,
            "size": self.size,
            "timestamp": self.timestamp,
        }
        if self.content_type is not None:
            payload["type"] = self.content_type.value
        return payload

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> "HistoryRecord":
        text = entry["text"]
        if not isinstance(text, str):
            raise TypeError("text must be a string")
        timestamp = _coerce_int(entry.get("timestamp"))
        record_id = _coerce_int(entry.get("id"))
        if timestamp is None:
            timestamp = record_id if record_id is not None else 0
        if record_id is None:
            record_id = timestamp
        size = _coerce_int(entry.get("size"))
        content_type = parse_content_type(entry.get("type")) or classify(text)
        return cls(
            id=record_id,
            text=text,
            image_data=str(entry.get("dataURL") or ""),
            size=size if size is not None else 0,
            timestamp=timestamp,
            content_type=content_type,
        )


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            number = float(stripped)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


class SaveOutcome(str, Enum):
    """Result of a successful ``HistoryStore.save`` call."""

    SAVED = "saved"
    DUPLICATE = "duplicate"


def decode_history(blob: str) -> List[HistoryRecord]:
    """Parse a persisted JSON array, skipping entries that are not records."""
    try:
        data = json.loads(blob)
    except (TypeError, ValueError, RecursionError) as exc:
        raise CorruptDataError(f"History blob is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise CorruptDataError(f"History blob must be a JSON array, got {type(data).__name__}")

    records: List[HistoryRecord] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        try:
            records.append(HistoryRecord.from_dict(entry))
        except (KeyError, TypeError):
            continue
    return records


def encode_history(records: List[HistoryRecord]) -> str:
    return json.dumps([record.to_dict() for record in records], ensure_ascii=False)


class HistoryStore:
    """Bounded, newest-first QR history persisted as a single JSON blob.

    Every operation reads the full collection from the backend, mutates it
    and writes it back whole. Writers in other processes sharing the same
    backend are not coordinated: the last write wins.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = HISTORY_KEY,
        max_items: int = 12,
        duplicate_window_ms: int = 60_000,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.storage = storage
        self.key = key
        self.max_items = max_items
        self.duplicate_window_ms = duplicate_window_ms
        self._clock = clock
        self._lock = threading.RLock()

    def load(self) -> List[HistoryRecord]:
        """Return stored records newest-first; unreadable data yields an empty list."""
        with self._lock:
            try:
                blob = self.storage.get(self.key)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to read history from storage: %s", exc)
                return []
            if not blob:
                return []
            try:
                return decode_history(blob)
            except CorruptDataError as exc:
                logger.warning("Ignoring corrupt history data: %s", exc)
                return []

    def is_duplicate_recent(self, text: str, now: Optional[int] = None) -> bool:
        """True when ``text`` was saved less than the duplicate window ago."""
        current = self._clock() if now is None else now
        return any(
            record.text == text and current - record.timestamp < self.duplicate_window_ms
            for record in self.load()
        )

    def create_record(
        self,
        text: str,
        image_data: str,
        size: int,
        content_type: Optional[ContentType] = None,
    ) -> HistoryRecord:
        """Build a record stamped with the current clock value."""
        stamp = self._clock()
        return HistoryRecord(
            id=stamp,
            text=text,
            image_data=image_data,
            size=int(size),
            timestamp=stamp,
            content_type=content_type or classify(text),
        )

    def save(self, record: HistoryRecord) -> SaveOutcome:
        """Prepend ``record`` and persist the capped collection.

        Returns ``SaveOutcome.DUPLICATE`` without touching storage when the
        same text was saved within the duplicate window. Raises
        ``StorageError`` when the backend rejects the write.
        """
        with self._lock:
            records = self.load()
            if any(
                existing.text == record.text
                and record.timestamp - existing.timestamp < self.duplicate_window_ms
                for existing in records
            ):
                logger.info("Skipped duplicate history entry (id=%s)", record.id)
                return SaveOutcome.DUPLICATE

            updated = [record, *records][: self.max_items]
            blob = encode_history(updated)
            try:
                self.storage.set(self.key, blob)
            except StorageError:
                logger.warning("Failed to persist history (%d records)", len(updated))
                raise
            except OSError as exc:
                logger.warning("Failed to persist history: %s", exc)
                raise StorageError(f"Failed to persist history: {exc}") from exc

            evicted = len(records) + 1 - len(updated)
            logger.info("Saved history entry id=%s (evicted %d)", record.id, evicted)
            return SaveOutcome.SAVED

    def find_by_id(self, record_id: Any) -> Optional[HistoryRecord]:
        """Look up a record; numeric and string ids compare equal."""
        wanted = _coerce_int(record_id)
        if wanted is None:
            return None
        for record in self.load():
            if record.id == wanted:
                return record
        return None

    def clear(self) -> None:
        """Remove all history; failures are logged and ignored."""
        with self._lock:
            try:
                self.storage.remove(self.key)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to clear history: %s", exc)
                return
            logger.info("History cleared")
