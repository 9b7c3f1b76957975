"""Tests for the capture session state machine."""

import asyncio
from datetime import datetime

import pytest

from nutrisnap.domain.errors import (
    ConcurrentAnalysisError,
    GatewayError,
    SessionStateError,
)
from nutrisnap.services.calendar import LocalCalendar
from nutrisnap.services.entries import EntryStore
from nutrisnap.services.sessions import SessionController, SessionState
from nutrisnap.services.stats import StatsService
from tests.conftest import (
    NOW,
    FailingWriteStore,
    FakeGateway,
    InMemoryKeyValueStore,
    make_entry,
    millis,
)


def _controller(
    entry_store: EntryStore,
    local_calendar: LocalCalendar,
    gateway: FakeGateway | None = None,
) -> SessionController:
    return SessionController(
        gateway=gateway or FakeGateway(),
        entry_store=entry_store,
        local_calendar=local_calendar,
        id_factory=lambda: "new-entry",
    )


def test_capture_then_confirm_commits_entry(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    controller = _controller(entry_store, local_calendar)

    entry = asyncio.run(controller.capture(b"\xff\xd8\xffphoto", "image/jpeg"))

    assert controller.state is SessionState.REVIEWING
    assert controller.pending == entry
    assert entry.id == "new-entry"
    assert entry.timestamp == millis(NOW)
    assert entry.name == "Pasta"
    assert entry.image_url is not None
    assert entry.image_url.startswith("data:image/jpeg;base64,")
    assert len(entry_store) == 0

    result = controller.confirm()

    assert result.persisted
    assert result.entry == entry
    assert controller.state is SessionState.IDLE
    assert controller.pending is None
    assert entry_store.snapshot() == (entry,)


def test_pending_entry_is_invisible_to_stats(
    entry_store: EntryStore,
    local_calendar: LocalCalendar,
    stats_service: StatsService,
) -> None:
    controller = _controller(entry_store, local_calendar)

    asyncio.run(controller.capture(b"photo", "image/jpeg"))

    assert stats_service.stats_for_today(entry_store.snapshot()).total_calories == 0
    controller.confirm()
    assert stats_service.stats_for_today(entry_store.snapshot()).total_calories == 650


def test_gateway_failure_returns_to_idle(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    entry_store.append(make_entry("existing"))
    gateway = FakeGateway(error=GatewayError("Analysis API key is not configured."))
    controller = _controller(entry_store, local_calendar, gateway)

    with pytest.raises(GatewayError, match="not configured"):
        asyncio.run(controller.capture(b"photo", "image/jpeg"))

    assert controller.state is SessionState.IDLE
    assert controller.pending is None
    assert controller.last_error == "Analysis API key is not configured."
    assert [entry.id for entry in entry_store.snapshot()] == ["existing"]


def test_unexpected_gateway_error_still_resets(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    controller = _controller(
        entry_store, local_calendar, FakeGateway(error=RuntimeError("boom"))
    )

    with pytest.raises(RuntimeError):
        asyncio.run(controller.capture(b"photo", "image/jpeg"))

    assert controller.state is SessionState.IDLE


def test_cancel_discards_without_touching_store(
    entry_store: EntryStore,
    local_calendar: LocalCalendar,
    storage: InMemoryKeyValueStore,
) -> None:
    entry_store.append(make_entry("existing"))
    writes_before = list(storage.writes)
    controller = _controller(entry_store, local_calendar)

    asyncio.run(controller.capture(b"photo", "image/jpeg"))
    controller.cancel()

    assert controller.state is SessionState.IDLE
    assert controller.pending is None
    assert len(entry_store) == 1
    assert storage.writes == writes_before


def test_cancel_when_idle_is_noop(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    controller = _controller(entry_store, local_calendar)

    controller.cancel()

    assert controller.state is SessionState.IDLE


def test_confirm_without_review_is_rejected(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    controller = _controller(entry_store, local_calendar)

    with pytest.raises(SessionStateError):
        controller.confirm()


def test_second_capture_while_analyzing_is_rejected(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    release = asyncio.Event()

    class SlowGateway(FakeGateway):
        async def analyze(self, image_bytes: bytes, mime_type: str):  # type: ignore[no-untyped-def]
            self.calls += 1
            await release.wait()
            return self.result

    gateway = SlowGateway()
    controller = _controller(entry_store, local_calendar, gateway)

    async def scenario() -> None:
        first = asyncio.create_task(controller.capture(b"one", "image/jpeg"))
        await asyncio.sleep(0)
        assert controller.state is SessionState.ANALYZING
        with pytest.raises(ConcurrentAnalysisError):
            await controller.capture(b"two", "image/jpeg")
        with pytest.raises(SessionStateError):
            controller.cancel()
        release.set()
        await first

    asyncio.run(scenario())

    assert gateway.calls == 1
    assert controller.state is SessionState.REVIEWING


def test_timed_out_capture_returns_to_idle(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    class HangingGateway(FakeGateway):
        async def analyze(self, image_bytes: bytes, mime_type: str):  # type: ignore[no-untyped-def]
            self.calls += 1
            await asyncio.sleep(10)
            return self.result

    controller = _controller(entry_store, local_calendar, HangingGateway())

    async def scenario() -> None:
        with pytest.raises(TimeoutError):
            await asyncio.wait_for(controller.capture(b"x", "image/jpeg"), 0.01)

    asyncio.run(scenario())

    assert controller.state is SessionState.IDLE
    assert controller.pending is None
    controller.cancel()

    controller.gateway = FakeGateway()
    entry = asyncio.run(controller.capture(b"x", "image/jpeg"))

    assert controller.state is SessionState.REVIEWING
    assert entry.name == "Pasta"


def test_capture_while_reviewing_is_rejected(
    entry_store: EntryStore, local_calendar: LocalCalendar
) -> None:
    controller = _controller(entry_store, local_calendar)
    asyncio.run(controller.capture(b"photo", "image/jpeg"))

    with pytest.raises(SessionStateError) as excinfo:
        asyncio.run(controller.capture(b"photo", "image/jpeg"))

    assert not isinstance(excinfo.value, ConcurrentAnalysisError)
    assert controller.state is SessionState.REVIEWING


def test_timestamp_assigned_when_analysis_completes(
    entry_store: EntryStore,
) -> None:
    moments = iter(
        [
            datetime(2026, 10, 19, 12, 0, tzinfo=NOW.tzinfo),
            datetime(2026, 10, 19, 12, 5, tzinfo=NOW.tzinfo),
        ]
    )
    current = {"now": next(moments)}

    class AdvancingGateway(FakeGateway):
        async def analyze(self, image_bytes: bytes, mime_type: str):  # type: ignore[no-untyped-def]
            current["now"] = next(moments)
            return self.result

    local_calendar = LocalCalendar(tz=NOW.tzinfo, clock=lambda: current["now"])
    controller = _controller(entry_store, local_calendar, AdvancingGateway())

    entry = asyncio.run(controller.capture(b"photo", "image/jpeg"))

    assert entry.timestamp == millis(datetime(2026, 10, 19, 12, 5, tzinfo=NOW.tzinfo))


def test_confirm_reports_persistence_failure(local_calendar: LocalCalendar) -> None:
    store = EntryStore(FailingWriteStore())
    controller = _controller(store, local_calendar)
    asyncio.run(controller.capture(b"photo", "image/jpeg"))

    result = controller.confirm()

    assert not result.persisted
    assert controller.state is SessionState.IDLE
    assert store.snapshot() == (result.entry,)
