from typing import Callable

from loguru import logger

from clinicsync.backend.adapters.datetime_helpers import resolve_timezone
from clinicsync.backend.adapters.fake import FakeAppointmentClient
from clinicsync.backend.adapters.http import HttpAppointmentClient
from clinicsync.backend.ports import AppointmentBackendProtocol
from clinicsync.calendar.datasource import AppointmentDataSource
from clinicsync.calendar.filters import FilterComposer
from clinicsync.calendar.projector import EventProjector
from clinicsync.calendar.sync import CalendarSync, EventClickHandler
from clinicsync.calendar.window import DateRangeWindow
from clinicsync.config import AppConfig, BackendAdapter


def _build_http(config: AppConfig) -> AppointmentBackendProtocol:
    return HttpAppointmentClient(
        api_url=config.backend.url,
        token=config.backend.token,
        timeout=config.backend.timeout_seconds,
    )


def _build_fake(config: AppConfig) -> AppointmentBackendProtocol:
    return FakeAppointmentClient()


_BUILDERS: dict[BackendAdapter, Callable[[AppConfig], AppointmentBackendProtocol]] = {
    BackendAdapter.HTTP: _build_http,
    BackendAdapter.FAKE: _build_fake,
}


def build_client(config: AppConfig) -> AppointmentBackendProtocol:
    """Build the appropriate appointment API client based on config."""
    adapter = config.backend.adapter
    logger.info("Building appointment client with adapter: {}", adapter.value)
    return _BUILDERS[adapter](config)


def build_calendar_sync(
    config: AppConfig,
    *,
    can_view_all: bool = True,
    on_event_click: EventClickHandler | None = None,
    client: AppointmentBackendProtocol | None = None,
) -> CalendarSync:
    """Wire window, composer, data source and projector into one CalendarSync."""
    tz = resolve_timezone(config.clinic_timezone)
    window = DateRangeWindow(
        tz,
        view_mode=config.calendar.initial_view,
        week_starts_on=config.calendar.week_starts_on,
    )
    composer = FilterComposer(
        can_view_all=can_view_all,
        debounce_seconds=config.calendar.debounce_seconds,
    )
    source = AppointmentDataSource(
        client or build_client(config),
        can_view_all=lambda: composer.can_view_all,
        page_size=config.calendar.page_size,
        max_pages=config.calendar.max_pages,
        include_holidays=config.calendar.include_holidays,
    )
    return CalendarSync(
        window,
        composer,
        source,
        EventProjector(tz),
        on_event_click=on_event_click,
    )
