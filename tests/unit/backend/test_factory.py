import datetime as dt

import pytest

from clinicsync.backend.adapters.fake import FakeAppointmentClient
from clinicsync.backend.adapters.http import HttpAppointmentClient
from clinicsync.backend.factory import build_calendar_sync, build_client
from clinicsync.config import AppConfig, BackendAdapter, BackendConfig, CalendarConfig
from clinicsync.domain.models import ViewMode


def _config(adapter: BackendAdapter, **calendar: object) -> AppConfig:
    return AppConfig(
        clinic_timezone="Asia/Ho_Chi_Minh",
        backend=BackendConfig(adapter=adapter, url="https://clinic.test/api/v1"),
        calendar=CalendarConfig(**calendar),
    )


class TestBuildClient:
    def test_http_adapter(self) -> None:
        assert isinstance(build_client(_config(BackendAdapter.HTTP)), HttpAppointmentClient)

    def test_fake_adapter(self) -> None:
        assert isinstance(build_client(_config(BackendAdapter.FAKE)), FakeAppointmentClient)


class TestBuildCalendarSync:
    def test_window_follows_calendar_config(self) -> None:
        sync = build_calendar_sync(
            _config(BackendAdapter.FAKE, initial_view=ViewMode.MONTH, week_starts_on=6)
        )

        assert sync.window.view_mode is ViewMode.MONTH
        assert sync.window.range is None

    def test_composer_carries_view_all_flag(self) -> None:
        sync = build_calendar_sync(_config(BackendAdapter.FAKE), can_view_all=False)

        assert sync.composer.can_view_all is False

    @pytest.mark.asyncio
    async def test_wired_sync_fetches_from_given_client(self) -> None:
        client = FakeAppointmentClient()
        sync = build_calendar_sync(
            _config(BackendAdapter.HTTP, page_size=50, include_holidays=False),
            client=client,
        )

        sync.window.set_range(
            dt.datetime(2025, 1, 6, tzinfo=dt.timezone.utc),
            dt.datetime(2025, 1, 13, tzinfo=dt.timezone.utc),
        )
        await sync.settle()
        await sync.close()

        assert [q.size for q in client.queries] == [50]
        assert client.holiday_requests == []
        assert client.closed is True
