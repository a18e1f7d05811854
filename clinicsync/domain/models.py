import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from clinicsync.domain.exceptions import InvalidRangeError


class AppointmentStatus(str, Enum):
    """Lifecycle states of an appointment as reported by the backend."""

    SCHEDULED = "SCHEDULED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class DatePreset(str, Enum):
    TODAY = "TODAY"
    THIS_WEEK = "THIS_WEEK"
    NEXT_7_DAYS = "NEXT_7_DAYS"
    THIS_MONTH = "THIS_MONTH"


class SortField(str, Enum):
    APPOINTMENT_START_TIME = "appointmentStartTime"
    APPOINTMENT_CODE = "appointmentCode"
    PATIENT_CODE = "patientCode"
    EMPLOYEE_CODE = "employeeCode"
    ROOM_CODE = "roomCode"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ViewMode(str, Enum):
    """Calendar granularity, named after the rendering surface's view ids."""

    DAY = "timeGridDay"
    WEEK = "timeGridWeek"
    MONTH = "dayGridMonth"


class ParticipantRole(str, Enum):
    ASSISTANT = "ASSISTANT"
    SECONDARY_DOCTOR = "SECONDARY_DOCTOR"
    OBSERVER = "OBSERVER"


class _WireModel(BaseModel):
    """Immutable record read from (or sent to) the backend in camelCase."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class DateRange(BaseModel):
    """A half-open ``[start, end)`` span of visible calendar time."""

    model_config = ConfigDict(frozen=True)

    start: dt.datetime
    end: dt.datetime

    @model_validator(mode="after")
    def _start_before_end(self) -> "DateRange":
        # Naive and aware bounds cannot be ordered.
        if (self.start.tzinfo is None) != (self.end.tzinfo is None) or self.end <= self.start:
            raise InvalidRangeError(self.start, self.end)
        return self

    @property
    def first_day(self) -> dt.date:
        return self.start.date()

    @property
    def last_day(self) -> dt.date:
        """Last calendar day covered; ``end`` itself is exclusive."""
        return (self.end - dt.timedelta(microseconds=1)).date()


class EntityFields(_WireModel):
    """Structured entity-targeting shortcuts; only sent for view-all users."""

    patient_code: str | None = None
    patient_name: str | None = None
    patient_phone: str | None = None
    employee_code: str | None = None
    room_code: str | None = None
    service_code: str | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class FilterCriteria(BaseModel):
    """Canonical filter and sort state emitted by the filter composer."""

    model_config = ConfigDict(frozen=True)

    search_code: str | None = None
    status: tuple[AppointmentStatus, ...] = ()
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    date_preset: DatePreset | None = None
    sort_by: SortField = SortField.APPOINTMENT_START_TIME
    sort_direction: SortDirection = SortDirection.ASC
    entity_fields: EntityFields | None = None


class AppointmentQuery(BaseModel):
    """One page request for the backend query endpoint."""

    model_config = ConfigDict(frozen=True)

    date_from: dt.date
    date_to: dt.date
    status: tuple[AppointmentStatus, ...] = ()
    search_code: str | None = None
    sort_by: SortField = SortField.APPOINTMENT_START_TIME
    sort_direction: SortDirection = SortDirection.ASC
    entity_fields: EntityFields | None = None
    page: int = 0
    size: int = 1000


class PatientRef(_WireModel):
    patient_code: str
    full_name: str


class DoctorRef(_WireModel):
    employee_code: str
    full_name: str


class RoomRef(_WireModel):
    room_code: str
    room_name: str


class ServiceRef(_WireModel):
    service_code: str
    service_name: str


class ParticipantRef(_WireModel):
    employee_code: str
    full_name: str
    role: ParticipantRole


class AppointmentSummary(_WireModel):
    """Read-only appointment projection returned by the list endpoint."""

    code: str = Field(alias="appointmentCode")
    start_time: dt.datetime = Field(alias="appointmentStartTime")
    end_time: dt.datetime = Field(alias="appointmentEndTime")
    status: AppointmentStatus
    computed_status: str | None = None
    minutes_late: int | None = None
    expected_duration_minutes: int | None = None
    patient: PatientRef | None = None
    doctor: DoctorRef | None = None
    room: RoomRef | None = None
    services: tuple[ServiceRef, ...] = ()
    participants: tuple[ParticipantRef, ...] = ()
    notes: str | None = None


class AppointmentPage(_WireModel):
    """Paged envelope of the list endpoint."""

    content: tuple[AppointmentSummary, ...] = ()
    total_elements: int = 0
    total_pages: int | None = None
    number: int | None = None
    last: bool | None = None


class HolidayDate(_WireModel):
    holiday_date: dt.date
    holiday_name: str | None = None
    definition_id: int | str | None = None


class ColorPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    background: str
    border: str
    label: str


class CalendarEvent(BaseModel):
    """A render-ready calendar entry, regenerated on every published fetch."""

    model_config = ConfigDict(frozen=True)

    id: str
    start: dt.datetime
    end: dt.datetime
    color: ColorPair
    title: str
    label: str
    all_day: bool = False
    is_holiday: bool = False
    backing_summary: AppointmentSummary | None = None
    holiday: HolidayDate | None = None
    doctor_name: str | None = None
    patient_name: str | None = None
    service_names: str = ""


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class Notice(BaseModel):
    """A non-blocking message for the hosting page to display."""

    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    title: str
    description: str


class FetchOutcome(str, Enum):
    RESOLVED = "resolved"
    SERVICE_UNAVAILABLE = "service_unavailable"
    FAILED = "failed"


class FetchResult(BaseModel):
    """The resolution of one fetch, tagged with the generation that issued it."""

    model_config = ConfigDict(frozen=True)

    generation: int
    outcome: FetchOutcome
    range: DateRange
    query: AppointmentQuery
    stale: bool = False
    appointments: tuple[AppointmentSummary, ...] = ()
    holidays: tuple[HolidayDate, ...] = ()
    total_elements: int = 0
    notice: Notice | None = None
