import asyncio
from collections.abc import Callable

from loguru import logger

from clinicsync.backend.ports import AbstractAppointmentSource, AppointmentBackendProtocol
from clinicsync.calendar import rbac
from clinicsync.domain.exceptions import BackendError, ServiceUnavailableError
from clinicsync.domain.models import (
    AppointmentQuery,
    AppointmentSummary,
    DateRange,
    FetchOutcome,
    FetchResult,
    FilterCriteria,
    HolidayDate,
    Notice,
    NoticeLevel,
)

DEFAULT_PAGE_SIZE: int = 1000
DEFAULT_MAX_PAGES: int = 10

SERVICE_NOT_READY = Notice(
    level=NoticeLevel.INFO,
    title="No appointments",
    description="The appointment service is not ready yet.",
)


def _generic_failure(message: str | None) -> Notice:
    return Notice(
        level=NoticeLevel.ERROR,
        title="Could not load appointments",
        description=message or "Please try again later.",
    )


class GenerationCounter:
    """Mints monotonically increasing fetch generation tokens."""

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def mint(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, generation: int) -> bool:
        return generation == self._latest


class _Superseded(Exception):
    """A newer fetch was issued while this one was still paging."""


class AppointmentDataSource(AbstractAppointmentSource):
    """Fetches the visible window's appointments, honouring only the latest request.

    Each ``fetch`` runs under a generation token, either minted up front with
    ``next_generation`` or minted on entry. On resolution the token is
    compared with the latest minted one; older results are marked stale and
    never published. Backend failures become ``FetchResult`` values with a
    user-facing ``Notice`` instead of exceptions.
    """

    def __init__(
        self,
        client: AppointmentBackendProtocol,
        *,
        can_view_all: Callable[[], bool] = lambda: True,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        include_holidays: bool = True,
        generations: GenerationCounter | None = None,
    ) -> None:
        self._client = client
        self._can_view_all = can_view_all
        self._page_size = page_size
        self._max_pages = max_pages
        self._include_holidays = include_holidays
        self._generations = generations or GenerationCounter()
        self._publishers: list[Callable[[FetchResult], None]] = []

    @property
    def latest_generation(self) -> int:
        return self._generations.latest

    def on_publish(self, publisher: Callable[[FetchResult], None]) -> None:
        """Register a callback that receives every non-stale result."""
        self._publishers.append(publisher)

    def build_query(self, date_range: DateRange, criteria: FilterCriteria) -> AppointmentQuery:
        query = AppointmentQuery(
            date_from=date_range.first_day,
            date_to=date_range.last_day,
            status=criteria.status,
            search_code=criteria.search_code,
            sort_by=criteria.sort_by,
            sort_direction=criteria.sort_direction,
            entity_fields=criteria.entity_fields,
            page=0,
            size=self._page_size,
        )
        return rbac.strip(query, self._can_view_all())

    def next_generation(self) -> int:
        return self._generations.mint()

    async def fetch(
        self,
        date_range: DateRange,
        criteria: FilterCriteria,
        *,
        generation: int | None = None,
    ) -> FetchResult:
        if generation is None:
            generation = self._generations.mint()
        query = self.build_query(date_range, criteria)
        logger.info(
            "Fetching appointments: generation={}, dateFrom={}, dateTo={}",
            generation,
            query.date_from,
            query.date_to,
        )

        try:
            if self._include_holidays:
                appointments_total, holidays = await asyncio.gather(
                    self._fetch_all_pages(query, generation),
                    self._fetch_holidays(query),
                )
            else:
                appointments_total = await self._fetch_all_pages(query, generation)
                holidays = []
        except _Superseded:
            logger.debug("Fetch generation {} superseded while paging", generation)
            return FetchResult(
                generation=generation,
                outcome=FetchOutcome.RESOLVED,
                range=date_range,
                query=query,
                stale=True,
            )
        except ServiceUnavailableError as exc:
            logger.warning("Appointment service unavailable: {}", exc)
            return self._resolve(
                FetchResult(
                    generation=generation,
                    outcome=FetchOutcome.SERVICE_UNAVAILABLE,
                    range=date_range,
                    query=query,
                    notice=SERVICE_NOT_READY,
                )
            )
        except BackendError as exc:
            logger.error("Appointment fetch failed: {}", exc)
            return self._resolve(
                FetchResult(
                    generation=generation,
                    outcome=FetchOutcome.FAILED,
                    range=date_range,
                    query=query,
                    notice=_generic_failure(str(exc)),
                )
            )
        except Exception:
            logger.exception("Unexpected error while fetching appointments")
            return self._resolve(
                FetchResult(
                    generation=generation,
                    outcome=FetchOutcome.FAILED,
                    range=date_range,
                    query=query,
                    notice=_generic_failure(None),
                )
            )

        appointments, total = appointments_total
        return self._resolve(
            FetchResult(
                generation=generation,
                outcome=FetchOutcome.RESOLVED,
                range=date_range,
                query=query,
                appointments=tuple(appointments),
                holidays=tuple(holidays),
                total_elements=total,
            )
        )

    def _resolve(self, result: FetchResult) -> FetchResult:
        if not self._generations.is_current(result.generation):
            logger.debug(
                "Discarding stale fetch generation {} (latest is {})",
                result.generation,
                self._generations.latest,
            )
            return result.model_copy(update={"stale": True})

        logger.info(
            "Publishing fetch generation {}: outcome={}, count={}, total={}",
            result.generation,
            result.outcome.value,
            len(result.appointments),
            result.total_elements,
        )
        for publisher in list(self._publishers):
            publisher(result)
        return result

    async def _fetch_all_pages(
        self, query: AppointmentQuery, generation: int
    ) -> tuple[list[AppointmentSummary], int]:
        appointments: list[AppointmentSummary] = []
        page_query = query
        while True:
            page = await self._client.fetch_appointments_page(page_query)
            appointments.extend(page.content)
            total = page.total_elements

            done = (
                page.last is True
                or not page.content
                or len(appointments) >= total
            )
            if done:
                return appointments, total

            if page_query.page + 1 >= self._max_pages:
                logger.warning(
                    "Stopped paging after {} page(s): {} of {} appointments loaded",
                    self._max_pages,
                    len(appointments),
                    total,
                )
                return appointments, total

            if not self._generations.is_current(generation):
                raise _Superseded()
            page_query = page_query.model_copy(update={"page": page_query.page + 1})

    async def _fetch_holidays(self, query: AppointmentQuery) -> list[HolidayDate]:
        try:
            return await self._client.holidays_in_range(query.date_from, query.date_to)
        except Exception as exc:
            logger.warning("Holiday fetch failed, showing none: {}", exc)
            return []

    async def close(self) -> None:
        await self._client.close()
