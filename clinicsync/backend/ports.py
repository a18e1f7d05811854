import datetime as dt
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol

from clinicsync.domain.models import (
    AppointmentPage,
    AppointmentQuery,
    DateRange,
    FetchResult,
    FilterCriteria,
    HolidayDate,
)


class AbstractAppointmentSource(ABC):
    """Abstract base class for generation-tracked appointment fetching."""

    @property
    @abstractmethod
    def latest_generation(self) -> int:
        """The most recently minted generation token (0 before any fetch)."""

    @abstractmethod
    def build_query(self, date_range: DateRange, criteria: FilterCriteria) -> AppointmentQuery:
        """Build the first-page query for a visible range and filter criteria.

        The result is always RBAC-stripped, whatever ``criteria`` contains.
        """

    @abstractmethod
    def on_publish(self, publisher: Callable[[FetchResult], None]) -> None:
        """Register a callback that receives each result of the latest generation."""

    @abstractmethod
    def next_generation(self) -> int:
        """Mint and return a new generation token, superseding all earlier ones."""

    @abstractmethod
    async def fetch(
        self,
        date_range: DateRange,
        criteria: FilterCriteria,
        *,
        generation: int | None = None,
    ) -> FetchResult:
        """Fetch every appointment in ``date_range`` matching ``criteria``.

        Args:
            date_range: The visible calendar window.
            criteria: Canonical filter/sort state.
            generation: Token minted by ``next_generation``; a fresh one is
                minted when omitted.

        Returns:
            The tagged result. ``stale`` is True when a newer fetch was issued
            before this one resolved; such a result must not be applied.
            Backend failures are reported through ``outcome`` and ``notice``,
            never raised.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by this source."""


class AppointmentBackendProtocol(Protocol):
    """Low-level interface for the clinic's appointment API."""

    async def fetch_appointments_page(self, query: AppointmentQuery) -> AppointmentPage:
        """Fetch one page of appointment summaries.

        Raises:
            ServiceUnavailableError: On a 5xx response.
            BackendRequestError: On transport errors or other error responses.
            PayloadValidationError: If the response has an unexpected shape.
        """
        ...

    async def holidays_in_range(self, start: dt.date, end: dt.date) -> list[HolidayDate]:
        """Fetch holiday dates between ``start`` and ``end`` inclusive."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
