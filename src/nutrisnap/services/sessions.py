"""Session state machine for photo-based logging."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from uuid import uuid4

from nutrisnap.domain.entries import FoodAnalysis, FoodEntry
from nutrisnap.domain.errors import (
    ConcurrentAnalysisError,
    GatewayError,
    PersistenceError,
    SessionStateError,
)
from nutrisnap.services.analysis import to_data_url
from nutrisnap.services.calendar import LocalCalendar
from nutrisnap.services.entries import EntryStore

_logger = logging.getLogger(__name__)


class AnalysisGateway(Protocol):
    """Interface for turning an image into a nutrient estimate."""

    async def analyze(self, image_bytes: bytes, mime_type: str) -> FoodAnalysis:
        """Return the analysis or raise GatewayError."""


class SessionState(Enum):
    """States of the capture workflow."""

    IDLE = "idle"
    CAPTURING = "capturing"
    ANALYZING = "analyzing"
    REVIEWING = "reviewing"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of confirming a reviewed entry."""

    entry: FoodEntry
    persisted: bool


def _new_entry_id() -> str:
    return str(uuid4())


@dataclass
class SessionController:
    """Drives one capture, analyze, review and commit-or-discard workflow.

    Only one workflow runs at a time. The provisional entry lives here until
    it is confirmed, so statistics never include it.
    """

    gateway: AnalysisGateway
    entry_store: EntryStore
    local_calendar: LocalCalendar = field(default_factory=LocalCalendar)
    id_factory: Callable[[], str] = _new_entry_id
    _state: SessionState = field(default=SessionState.IDLE, init=False)
    _pending: FoodEntry | None = field(default=None, init=False, repr=False)
    _last_error: str | None = field(default=None, init=False)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pending(self) -> FoodEntry | None:
        """Return the entry under review, if any."""
        return self._pending

    @property
    def last_error(self) -> str | None:
        """Return the message of the last failed analysis."""
        return self._last_error

    async def capture(self, image_bytes: bytes, mime_type: str) -> FoodEntry:
        """Analyze an image and hold the result for review."""
        if self._state is SessionState.ANALYZING:
            raise ConcurrentAnalysisError("An analysis is already in progress")
        if self._state is not SessionState.IDLE:
            raise SessionStateError(
                "Confirm or cancel the current entry before a new capture"
            )

        self._state = SessionState.CAPTURING
        self._last_error = None
        preview = to_data_url(image_bytes, mime_type or None)

        self._state = SessionState.ANALYZING
        try:
            analysis = await self.gateway.analyze(image_bytes, mime_type)
        except GatewayError as exc:
            self._last_error = str(exc)
            self._reset()
            raise
        except BaseException:
            # Cancellation and timeouts also return the session to idle.
            self._reset()
            raise

        entry = FoodEntry(
            id=self.id_factory(),
            timestamp=self.local_calendar.now_ms(),
            image_url=preview,
            name=analysis.name,
            calories=analysis.calories,
            protein=analysis.protein,
            carbs=analysis.carbs,
            fats=analysis.fats,
            analysis=analysis.analysis,
        )
        self._pending = entry
        self._state = SessionState.REVIEWING
        return entry

    def confirm(self) -> CommitResult:
        """Commit the reviewed entry to the store and return to idle."""
        if self._state is not SessionState.REVIEWING or self._pending is None:
            raise SessionStateError("There is no analyzed entry to confirm")

        entry = self._pending
        persisted = True
        try:
            self.entry_store.append(entry)
        except PersistenceError:
            _logger.exception("Entry %s kept in memory but not persisted", entry.id)
            persisted = False
        finally:
            self._reset()
        return CommitResult(entry=entry, persisted=persisted)

    def cancel(self) -> None:
        """Discard the reviewed entry without touching the store."""
        if self._state is SessionState.IDLE:
            return
        if self._state is not SessionState.REVIEWING:
            raise SessionStateError("An in-flight analysis cannot be cancelled")
        self._reset()

    def _reset(self) -> None:
        self._pending = None
        self._state = SessionState.IDLE
