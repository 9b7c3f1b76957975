"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrisnap.adapters.file_store import FileKeyValueStore
from nutrisnap.adapters.gemini_analysis_client import HttpxGeminiAnalysisClient
from nutrisnap.adapters.openai_analysis_client import OpenAIAnalysisClient
from nutrisnap.adapters.supabase_kv_store import SupabaseKeyValueStore
from nutrisnap.config import Settings, resolve_timezone
from nutrisnap.services.analysis import AnalysisClient, AnalysisService
from nutrisnap.services.calendar import LocalCalendar
from nutrisnap.services.entries import EntryStore, KeyValueStore
from nutrisnap.services.preferences import PreferenceService
from nutrisnap.services.sessions import SessionController
from nutrisnap.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_store: EntryStore
    preference_service: PreferenceService
    analysis_service: AnalysisService
    session_controller: SessionController
    stats_service: StatsService
    close_resources: Callable[[], Awaitable[None]]


def build_storage(settings: Settings) -> KeyValueStore:
    """Create the configured key-value store."""
    if settings.storage_backend == "file":
        return FileKeyValueStore(settings.data_dir)
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "Supabase storage needs SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueStore(client, table=settings.supabase_table)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    storage = build_storage(resolved_settings)
    local_calendar = LocalCalendar(tz=resolve_timezone(resolved_settings.timezone))

    gemini_client: HttpxGeminiAnalysisClient | None = None
    openai_client: OpenAIAnalysisClient | None = None
    analysis_client: AnalysisClient
    if resolved_settings.analysis_provider == "gemini":
        gemini_client = HttpxGeminiAnalysisClient.create(
            resolved_settings.gemini_base_url
        )
        analysis_client = gemini_client
    elif resolved_settings.analysis_provider == "openai":
        openai_client = OpenAIAnalysisClient(
            reasoning_effort=resolved_settings.openai_reasoning_effort
        )
        analysis_client = openai_client
    else:
        raise ValueError(
            f"Unknown analysis provider: {resolved_settings.analysis_provider}"
        )

    entry_store = EntryStore(storage)
    analysis_service = AnalysisService(
        client=analysis_client,
        model=resolved_settings.analysis_model,
        api_key=resolved_settings.analysis_api_key,
    )
    session_controller = SessionController(
        gateway=analysis_service,
        entry_store=entry_store,
        local_calendar=local_calendar,
    )
    stats_service = StatsService(
        local_calendar=local_calendar,
        weekday_locale=resolved_settings.weekday_locale,
    )

    async def close_resources() -> None:
        if gemini_client is not None:
            await gemini_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        entry_store=entry_store,
        preference_service=PreferenceService(storage),
        analysis_service=analysis_service,
        session_controller=session_controller,
        stats_service=stats_service,
        close_resources=close_resources,
    )
