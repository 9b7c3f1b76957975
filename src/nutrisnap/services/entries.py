"""Entry store owning the canonical list of food entries."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from nutrisnap.domain.entries import FoodEntry
from nutrisnap.domain.errors import DecodeError, DuplicateEntryError, PersistenceError
from nutrisnap.services.calendar import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS

ENTRIES_KEY = "nutrisnap_entries"

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable string-keyed storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under a key."""


class _StoredEntry(BaseModel):
    """Persisted representation of a food entry."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    id: str
    timestamp: int = Field(ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)
    image_url: str | None = Field(default=None, alias="imageUrl")
    name: str
    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    carbs: int = Field(ge=0)
    fats: int = Field(ge=0)
    analysis: str


_ENTRIES_ADAPTER = TypeAdapter(list[_StoredEntry])


def encode_entries(entries: tuple[FoodEntry, ...]) -> str:
    """Serialize entries to the persisted JSON blob."""
    stored = [
        _StoredEntry(
            id=entry.id,
            timestamp=entry.timestamp,
            image_url=entry.image_url,
            name=entry.name,
            calories=entry.calories,
            protein=entry.protein,
            carbs=entry.carbs,
            fats=entry.fats,
            analysis=entry.analysis,
        )
        for entry in entries
    ]
    return _ENTRIES_ADAPTER.dump_json(
        stored, by_alias=True, exclude_none=True
    ).decode("utf-8")


def decode_entries(blob: str) -> list[FoodEntry]:
    """Parse the persisted JSON blob into entries."""
    try:
        stored = _ENTRIES_ADAPTER.validate_json(blob)
    except ValidationError as exc:
        raise DecodeError(f"Stored entries are malformed: {exc}") from exc
    return [
        FoodEntry(
            id=item.id,
            timestamp=item.timestamp,
            image_url=item.image_url,
            name=item.name,
            calories=item.calories,
            protein=item.protein,
            carbs=item.carbs,
            fats=item.fats,
            analysis=item.analysis,
        )
        for item in stored
    ]


@dataclass
class EntryStore:
    """Most-recent-first collection of entries mirrored to durable storage.

    Other components only ever see immutable snapshots. Every append writes
    the full collection back synchronously. If that write fails the in-memory
    append is kept and ``PersistenceError`` is raised, so the caller knows the
    stored copy is behind until the next successful write.
    """

    storage: KeyValueStore
    key: str = ENTRIES_KEY
    _entries: list[FoodEntry] = field(default_factory=list, init=False, repr=False)

    def load(self) -> tuple[FoodEntry, ...]:
        """Replace the collection with the persisted one and return it."""
        blob = self.storage.get(self.key)
        if blob is None:
            self._entries = []
            return self.snapshot()
        try:
            self._entries = decode_entries(blob)
        except DecodeError as exc:
            _logger.warning("Discarding stored history: %s", exc)
            self._entries = []
        return self.snapshot()

    def append(self, entry: FoodEntry) -> None:
        """Insert an entry at the head and persist the collection."""
        if any(existing.id == entry.id for existing in self._entries):
            raise DuplicateEntryError(f"Entry {entry.id} already exists")
        self._entries.insert(0, entry)
        self._persist()

    def snapshot(self) -> tuple[FoodEntry, ...]:
        """Return an immutable view of the current collection."""
        return tuple(self._entries)

    def recent(self, limit: int = 5) -> tuple[FoodEntry, ...]:
        """Return the most recent entries."""
        return tuple(self._entries[:limit])

    def __len__(self) -> int:
        return len(self._entries)

    def _persist(self) -> None:
        blob = encode_entries(self.snapshot())
        try:
            self.storage.set(self.key, blob)
        except PersistenceError:
            _logger.error("Failed to persist %s entries", len(self._entries))
            raise
        except Exception as exc:
            _logger.error("Failed to persist %s entries", len(self._entries))
            raise PersistenceError(str(exc)) from exc
