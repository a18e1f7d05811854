import asyncio
import datetime as dt

from clinicsync.domain.models import (
    AppointmentPage,
    AppointmentQuery,
    AppointmentSummary,
    HolidayDate,
)


class FakeAppointmentClient:
    """In-memory test double for the AppointmentBackendProtocol protocol.

    Pre-load ``appointments`` and ``holidays`` to control what the client
    returns; pages are sliced from the appointments whose start date falls in
    the query window (and whose status matches, when the query filters on it).

    Set ``page_error`` to make every page request raise, or add an entry to
    ``page_errors`` keyed by the query's ``date_from`` to fail only that window.
    ``hold(date_from)`` returns an ``asyncio.Event`` that the matching request
    waits on before answering, so tests can decide resolution order.

    After calls, inspect ``queries`` and ``holiday_requests``.
    """

    def __init__(self) -> None:
        self.appointments: list[AppointmentSummary] = []
        self.holidays: list[HolidayDate] = []
        self.queries: list[AppointmentQuery] = []
        self.holiday_requests: list[tuple[dt.date, dt.date]] = []
        self.closed: bool = False

        self.page_error: Exception | None = None
        self.page_errors: dict[dt.date, Exception] = {}
        self.holiday_error: Exception | None = None
        self._gates: dict[dt.date, asyncio.Event] = {}

    def hold(self, date_from: dt.date) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[date_from] = gate
        return gate

    def _matching(self, query: AppointmentQuery) -> list[AppointmentSummary]:
        matching = [
            a
            for a in self.appointments
            if query.date_from <= a.start_time.date() <= query.date_to
        ]
        if query.status:
            matching = [a for a in matching if a.status in query.status]
        return matching

    async def fetch_appointments_page(self, query: AppointmentQuery) -> AppointmentPage:
        self.queries.append(query)
        gate = self._gates.get(query.date_from)
        if gate is not None:
            await gate.wait()

        error = self.page_errors.get(query.date_from) or self.page_error
        if error:
            raise error

        matching = self._matching(query)
        offset = query.page * query.size
        content = matching[offset : offset + query.size]
        total_pages = (len(matching) + query.size - 1) // query.size
        return AppointmentPage(
            content=tuple(content),
            total_elements=len(matching),
            total_pages=total_pages,
            number=query.page,
            last=query.page >= total_pages - 1,
        )

    async def holidays_in_range(self, start: dt.date, end: dt.date) -> list[HolidayDate]:
        self.holiday_requests.append((start, end))
        if self.holiday_error:
            raise self.holiday_error
        return [h for h in self.holidays if start <= h.holiday_date <= end]

    async def close(self) -> None:
        self.closed = True
