import datetime as dt
from collections.abc import Callable

import pytest

from clinicsync.calendar.projector import (
    HOLIDAY_COLOR,
    STATUS_COLORS,
    EventProjector,
    color_for,
    legend,
)
from clinicsync.domain.models import AppointmentStatus, AppointmentSummary, HolidayDate

SummaryFactory = Callable[..., AppointmentSummary]


@pytest.fixture
def projector(tz: dt.tzinfo) -> EventProjector:
    return EventProjector(tz)


class TestStatusColors:
    def test_every_status_has_a_color(self) -> None:
        assert set(STATUS_COLORS) == set(AppointmentStatus)

    @pytest.mark.parametrize("status", list(AppointmentStatus))
    def test_mapping_is_deterministic(self, status: AppointmentStatus) -> None:
        assert color_for(status) == color_for(status)

    def test_statuses_have_distinct_colors(self) -> None:
        backgrounds = {pair.background for pair in STATUS_COLORS.values()}

        assert len(backgrounds) == len(AppointmentStatus)

    def test_legend_lists_statuses_then_holiday(self) -> None:
        entries = legend()

        assert entries[: len(AppointmentStatus)] == [STATUS_COLORS[s] for s in AppointmentStatus]
        assert entries[-1] == HOLIDAY_COLOR


class TestProject:
    def test_event_carries_time_span_color_and_label(
        self, projector: EventProjector, make_summary: SummaryFactory
    ) -> None:
        summary = make_summary(
            code="APT-7",
            start=dt.datetime(2025, 1, 6, 9, 0),
            minutes=45,
            status=AppointmentStatus.CHECKED_IN,
        )

        [event] = projector.project([summary])

        assert event.id == "APT-7"
        assert event.start == summary.start_time
        assert event.end == summary.end_time
        assert event.color == STATUS_COLORS[AppointmentStatus.CHECKED_IN]
        assert event.title == "Dr. Nguyen Van An"
        assert event.label == "09:00 - 09:45 Dr. Nguyen Van An"
        assert event.backing_summary is summary

    def test_missing_people_use_placeholders(
        self, projector: EventProjector, make_summary: SummaryFactory
    ) -> None:
        [event] = projector.project([make_summary(doctor=None, patient=None)])

        assert event.title == "Dr. No Doctor"
        assert event.patient_name == "Unknown Patient"

    def test_service_names_are_joined(
        self, projector: EventProjector, make_summary: SummaryFactory
    ) -> None:
        [event] = projector.project([make_summary(services=("Scaling", "Filling"))])

        assert event.service_names == "Scaling, Filling"

    def test_aware_times_are_labelled_in_clinic_time(
        self, projector: EventProjector, make_summary: SummaryFactory
    ) -> None:
        utc_start = dt.datetime(2025, 1, 6, 2, 0, tzinfo=dt.timezone.utc)

        [event] = projector.project([make_summary(start=utc_start, minutes=30)])

        # Asia/Ho_Chi_Minh is UTC+7
        assert event.label.startswith("09:00 - 09:30")

    def test_preserves_backend_order(
        self, projector: EventProjector, make_summary: SummaryFactory
    ) -> None:
        summaries = [
            make_summary(code="B", start=dt.datetime(2025, 1, 7, 9, 0)),
            make_summary(code="A", start=dt.datetime(2025, 1, 6, 9, 0)),
        ]

        events = projector.project(summaries)

        assert [e.id for e in events] == ["B", "A"]


class TestProjectHolidays:
    def test_holiday_becomes_all_day_event(self, projector: EventProjector, tz: dt.tzinfo) -> None:
        holiday = HolidayDate(
            holiday_date=dt.date(2025, 1, 29), holiday_name="Tet", definition_id=3
        )

        [event] = projector.project_holidays([holiday])

        assert event.id == "holiday-2025-01-29-3"
        assert event.all_day is True
        assert event.is_holiday is True
        assert event.backing_summary is None
        assert event.start == dt.datetime(2025, 1, 29, tzinfo=tz)
        assert event.end - event.start == dt.timedelta(days=1)
        assert event.color == HOLIDAY_COLOR

    def test_unnamed_holiday_gets_default_title(self, projector: EventProjector) -> None:
        [event] = projector.project_holidays([HolidayDate(holiday_date=dt.date(2025, 4, 30))])

        assert event.title == "Holiday"
