import datetime as dt
from collections.abc import Iterable

from clinicsync.backend.adapters.datetime_helpers import format_time_range, start_of_day
from clinicsync.domain.models import (
    AppointmentStatus,
    AppointmentSummary,
    CalendarEvent,
    ColorPair,
    HolidayDate,
)

STATUS_COLORS: dict[AppointmentStatus, ColorPair] = {
    AppointmentStatus.SCHEDULED: ColorPair(
        background="#3b82f6", border="#2563eb", label="Scheduled"
    ),
    AppointmentStatus.CHECKED_IN: ColorPair(
        background="#f59e0b", border="#d97706", label="Checked in"
    ),
    AppointmentStatus.IN_PROGRESS: ColorPair(
        background="#8b5cf6", border="#7c3aed", label="In progress"
    ),
    AppointmentStatus.COMPLETED: ColorPair(
        background="#22c55e", border="#16a34a", label="Completed"
    ),
    AppointmentStatus.CANCELLED: ColorPair(
        background="#ef4444", border="#dc2626", label="Cancelled"
    ),
    AppointmentStatus.NO_SHOW: ColorPair(
        background="#6b7280", border="#4b5563", label="No show"
    ),
}

HOLIDAY_COLOR = ColorPair(background="#fef3c7", border="#f59e0b", label="Holiday")

_missing = set(AppointmentStatus) - set(STATUS_COLORS)
if _missing:
    raise RuntimeError(f"No calendar colour for statuses: {sorted(s.value for s in _missing)}")

NO_DOCTOR = "No Doctor"
UNKNOWN_PATIENT = "Unknown Patient"


def color_for(status: AppointmentStatus) -> ColorPair:
    """Return the colour pair for ``status``. Every status has exactly one."""
    return STATUS_COLORS[status]


def legend() -> list[ColorPair]:
    """Colour legend in status order, followed by the holiday entry."""
    return [STATUS_COLORS[status] for status in AppointmentStatus] + [HOLIDAY_COLOR]


class EventProjector:
    """Maps appointment summaries and holidays to calendar events."""

    def __init__(self, tz: dt.tzinfo) -> None:
        self._tz = tz

    def project(self, appointments: Iterable[AppointmentSummary]) -> list[CalendarEvent]:
        """Project summaries one-to-one, preserving the backend's order."""
        return [self.project_one(appointment) for appointment in appointments]

    def project_one(self, appointment: AppointmentSummary) -> CalendarEvent:
        doctor_name = appointment.doctor.full_name if appointment.doctor else NO_DOCTOR
        patient_name = appointment.patient.full_name if appointment.patient else UNKNOWN_PATIENT
        time_range = format_time_range(appointment.start_time, appointment.end_time, self._tz)
        title = f"Dr. {doctor_name}"

        return CalendarEvent(
            id=appointment.code,
            start=appointment.start_time,
            end=appointment.end_time,
            color=color_for(appointment.status),
            title=title,
            label=f"{time_range} {title}",
            backing_summary=appointment,
            doctor_name=doctor_name,
            patient_name=patient_name,
            service_names=", ".join(s.service_name for s in appointment.services),
        )

    def project_holidays(self, holidays: Iterable[HolidayDate]) -> list[CalendarEvent]:
        events: list[CalendarEvent] = []
        for holiday in holidays:
            name = holiday.holiday_name or HOLIDAY_COLOR.label
            start = start_of_day(holiday.holiday_date, self._tz)
            events.append(
                CalendarEvent(
                    id=f"holiday-{holiday.holiday_date.isoformat()}-{holiday.definition_id}",
                    start=start,
                    end=start + dt.timedelta(days=1),
                    color=HOLIDAY_COLOR,
                    title=name,
                    label=name,
                    all_day=True,
                    is_holiday=True,
                    holiday=holiday,
                )
            )
        return events
