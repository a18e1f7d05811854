"""Integration tests for the REST appointment adapter.

These tests run against a real clinic API and require:
  - CLINIC_API_URL + CLINIC_API_TOKEN set in .env (or env vars)

Run explicitly with::

    pytest -m integration
"""

import datetime as dt
import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from clinicsync.backend.adapters.http import HttpAppointmentClient
from clinicsync.domain.models import AppointmentQuery, AppointmentStatus

load_dotenv(override=True)

_API_URL = os.environ.get("CLINIC_API_URL", "")
_TOKEN = os.environ.get("CLINIC_API_TOKEN", "")

_has_credentials = bool(_API_URL) and bool(_TOKEN)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.asyncio,
    pytest.mark.skipif(
        not _has_credentials,
        reason="CLINIC_API_URL + CLINIC_API_TOKEN must be set",
    ),
]


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[HttpAppointmentClient]:
    """A REST client with real credentials, closed after each test."""
    c = HttpAppointmentClient(api_url=_API_URL, token=_TOKEN)
    yield c
    await c.close()


def _this_week() -> AppointmentQuery:
    today = dt.date.today()
    monday = today - dt.timedelta(days=today.weekday())
    return AppointmentQuery(date_from=monday, date_to=monday + dt.timedelta(days=6), size=50)


class TestAppointments:
    async def test_week_page_is_within_window(self, client: HttpAppointmentClient) -> None:
        query = _this_week()

        page = await client.fetch_appointments_page(query)

        assert page.total_elements >= len(page.content)
        for appointment in page.content:
            assert appointment.end_time > appointment.start_time

    async def test_status_filter_is_honoured(self, client: HttpAppointmentClient) -> None:
        query = _this_week().model_copy(update={"status": (AppointmentStatus.COMPLETED,)})

        page = await client.fetch_appointments_page(query)

        assert all(a.status is AppointmentStatus.COMPLETED for a in page.content)


class TestHolidays:
    async def test_current_year_returns_dates(self, client: HttpAppointmentClient) -> None:
        year = dt.date.today().year
        start, end = dt.date(year, 1, 1), dt.date(year, 12, 31)

        holidays = await client.holidays_in_range(start, end)

        assert all(start <= h.holiday_date <= end for h in holidays)
