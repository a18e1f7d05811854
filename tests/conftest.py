import datetime as dt
from collections.abc import Callable, Sequence
from zoneinfo import ZoneInfo

import pytest

from clinicsync.backend.adapters.fake import FakeAppointmentClient
from clinicsync.calendar.datasource import AppointmentDataSource
from clinicsync.domain.models import (
    AppointmentStatus,
    AppointmentSummary,
    DoctorRef,
    PatientRef,
    ServiceRef,
)

SummaryFactory = Callable[..., AppointmentSummary]


@pytest.fixture
def tz() -> dt.tzinfo:
    return ZoneInfo("Asia/Ho_Chi_Minh")


@pytest.fixture
def fake_client() -> FakeAppointmentClient:
    return FakeAppointmentClient()


@pytest.fixture
def source(fake_client: FakeAppointmentClient) -> AppointmentDataSource:
    return AppointmentDataSource(fake_client)


@pytest.fixture
def make_summary() -> SummaryFactory:
    """Build appointment summaries with sensible defaults."""

    def _make(
        code: str = "APT-001",
        start: dt.datetime = dt.datetime(2025, 1, 6, 9, 0),
        minutes: int = 30,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        doctor: str | None = "Nguyen Van An",
        patient: str | None = "Tran Thi Binh",
        services: Sequence[str] = ("Scaling",),
    ) -> AppointmentSummary:
        return AppointmentSummary(
            code=code,
            start_time=start,
            end_time=start + dt.timedelta(minutes=minutes),
            status=status,
            doctor=DoctorRef(employee_code="EMP001", full_name=doctor) if doctor else None,
            patient=PatientRef(patient_code="BN001", full_name=patient) if patient else None,
            services=tuple(
                ServiceRef(service_code=f"SV{i:02d}", service_name=name)
                for i, name in enumerate(services, start=1)
            ),
        )

    return _make
