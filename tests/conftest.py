"""Shared test fixtures."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

import pytest

from nutrisnap.config import Settings
from nutrisnap.containers import AppContainer
from nutrisnap.domain.entries import FoodAnalysis, FoodEntry
from nutrisnap.domain.errors import PersistenceError
from nutrisnap.services.analysis import AnalysisClient, AnalysisService
from nutrisnap.services.calendar import LocalCalendar
from nutrisnap.services.entries import EntryStore, KeyValueStore
from nutrisnap.services.preferences import PreferenceService
from nutrisnap.services.sessions import SessionController
from nutrisnap.services.stats import StatsService

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
NOW = datetime(2026, 10, 19, 12, 30, tzinfo=SAO_PAULO)


def fixed_calendar(
    now: datetime = NOW, tz: tzinfo | None = SAO_PAULO
) -> LocalCalendar:
    return LocalCalendar(tz=tz, clock=lambda: now)


def millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def make_entry(  # noqa: PLR0913
    entry_id: str = "entry-1",
    timestamp: int | None = None,
    calories: int = 500,
    protein: int = 30,
    carbs: int = 40,
    fats: int = 20,
    name: str = "Rice and beans",
) -> FoodEntry:
    return FoodEntry(
        id=entry_id,
        timestamp=millis(NOW) if timestamp is None else timestamp,
        name=name,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fats=fats,
        analysis="Balanced plate.",
    )


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append(key)
        self.values[key] = value


@dataclass
class FailingWriteStore(InMemoryKeyValueStore):
    """Store whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise PersistenceError("disk full")


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "name": "Grilled chicken salad",
            "calories": 420,
            "protein": 35,
            "carbs": 18,
            "fats": 22,
            "analysis": "High in protein, moderate fat.",
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        api_key: str,
        model: str,
        image_base64: str,
        mime_type: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append({"api_key": api_key, "model": model, "mime_type": mime_type})
        return self.payload


@dataclass
class FakeGateway:
    """Gateway returning a fixed analysis or raising a configured error."""

    result: FoodAnalysis = field(
        default_factory=lambda: FoodAnalysis(
            name="Pasta",
            calories=650,
            protein=22,
            carbs=90,
            fats=18,
            analysis="Carb heavy.",
        )
    )
    error: Exception | None = None
    calls: int = 0

    async def analyze(self, image_bytes: bytes, mime_type: str) -> FoodAnalysis:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def _reset_app_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("nutrisnap")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def settings(tmp_path) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(
        analysis_provider="gemini",
        analysis_api_key="test-key",
        data_dir=tmp_path,
        timezone="America/Sao_Paulo",
        _env_file=None,
    )


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def entry_store(storage: InMemoryKeyValueStore) -> EntryStore:
    return EntryStore(storage)


@pytest.fixture
def local_calendar() -> LocalCalendar:
    return fixed_calendar()


@pytest.fixture
def stats_service(local_calendar: LocalCalendar) -> StatsService:
    return StatsService(local_calendar=local_calendar)


@pytest.fixture
def container(
    settings: Settings,
    storage: InMemoryKeyValueStore,
    entry_store: EntryStore,
    local_calendar: LocalCalendar,
    stats_service: StatsService,
) -> AppContainer:
    analysis_service = AnalysisService(
        client=FakeAnalysisClient(), model="test-model", api_key="test-key"
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        entry_store=entry_store,
        preference_service=PreferenceService(storage),
        analysis_service=analysis_service,
        session_controller=SessionController(
            gateway=analysis_service,
            entry_store=entry_store,
            local_calendar=local_calendar,
        ),
        stats_service=stats_service,
        close_resources=close_resources,
    )
