import asyncio
from collections.abc import Callable
from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict

from clinicsync.backend.ports import AbstractAppointmentSource
from clinicsync.calendar.filters import FilterComposer
from clinicsync.calendar.projector import EventProjector
from clinicsync.calendar.window import DateRangeWindow
from clinicsync.domain.models import (
    AppointmentQuery,
    AppointmentSummary,
    CalendarEvent,
    DateRange,
    FetchOutcome,
    FetchResult,
    FilterCriteria,
    Notice,
)


class Transition(str, Enum):
    RANGE_CHANGED = "range-changed"
    FILTER_COMMITTED = "filter-committed"
    FETCH_RESOLVED = "fetch-resolved"
    FETCH_FAILED = "fetch-failed"


class CalendarState(BaseModel):
    """Immutable snapshot of everything the calendar surface renders."""

    model_config = ConfigDict(frozen=True)

    range: DateRange | None = None
    criteria: FilterCriteria = FilterCriteria()
    appointments: tuple[AppointmentSummary, ...] = ()
    events: tuple[CalendarEvent, ...] = ()
    total_elements: int = 0
    loading: bool = False
    notice: Notice | None = None
    generation: int = 0


StateListener = Callable[[CalendarState], None]
EventClickHandler = Callable[[AppointmentSummary], None]


class CalendarSync:
    """Keeps the visible window, filter state and fetched events consistent.

    Four named transitions drive the state:

    * ``range-changed`` and ``filter-committed`` store the new input and
      dispatch a fetch unless the resulting query equals the last one sent.
    * ``fetch-resolved`` replaces appointments and events wholesale.
    * ``fetch-failed`` clears them to empty and raises a notice.

    Only results of the latest generation ever reach the fetch transitions;
    the data source drops the rest.
    """

    def __init__(
        self,
        window: DateRangeWindow,
        composer: FilterComposer,
        source: AbstractAppointmentSource,
        projector: EventProjector,
        *,
        on_event_click: EventClickHandler | None = None,
    ) -> None:
        self._window = window
        self._composer = composer
        self._source = source
        self._projector = projector
        self._on_event_click = on_event_click

        self._state = CalendarState(range=window.range, criteria=composer.criteria)
        self._last_query: AppointmentQuery | None = None
        self._tasks: set[asyncio.Task[FetchResult]] = set()
        self._listeners: list[StateListener] = []
        self._external_loading: bool | None = None

        window.on_range_changed(self.range_changed)
        composer.on_criteria_changed(self.filter_committed)
        source.on_publish(self._on_published)

    @property
    def window(self) -> DateRangeWindow:
        return self._window

    @property
    def composer(self) -> FilterComposer:
        return self._composer

    @property
    def state(self) -> CalendarState:
        return self._state

    @property
    def events(self) -> tuple[CalendarEvent, ...]:
        return self._state.events

    @property
    def loading(self) -> bool:
        if self._external_loading is not None:
            return self._external_loading
        return self._state.loading

    def set_external_loading(self, loading: bool | None) -> None:
        """Let the host override the loading flag; ``None`` restores ours."""
        self._external_loading = loading

    def on_change(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Dispatch the initial fetch if the window already has a range."""
        self._request()

    def refresh(self) -> None:
        """Re-fetch the current query even if it has not changed."""
        self._request(force=True)

    # Transitions

    def range_changed(self, date_range: DateRange) -> None:
        self._transition(Transition.RANGE_CHANGED, range=date_range)
        self._request()

    def filter_committed(self, criteria: FilterCriteria) -> None:
        self._transition(Transition.FILTER_COMMITTED, criteria=criteria)
        self._request()

    def fetch_resolved(self, result: FetchResult) -> None:
        events = self._projector.project(result.appointments)
        events.extend(self._projector.project_holidays(result.holidays))
        self._transition(
            Transition.FETCH_RESOLVED,
            appointments=result.appointments,
            events=tuple(events),
            total_elements=result.total_elements,
            loading=False,
            notice=None,
            generation=result.generation,
        )

    def fetch_failed(self, result: FetchResult) -> None:
        # A failed query may be retried by re-navigating to it.
        self._last_query = None
        self._transition(
            Transition.FETCH_FAILED,
            appointments=(),
            events=(),
            total_elements=0,
            loading=False,
            notice=result.notice,
            generation=result.generation,
        )

    def _transition(self, transition: Transition, **changes: object) -> None:
        logger.debug("Calendar transition: {}", transition.value)
        self._update(**changes)

    def _update(self, **changes: object) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _on_published(self, result: FetchResult) -> None:
        if result.outcome is FetchOutcome.RESOLVED:
            self.fetch_resolved(result)
        else:
            self.fetch_failed(result)

    def _request(self, *, force: bool = False) -> None:
        date_range = self._state.range
        if date_range is None:
            logger.debug("No visible range yet, fetch deferred")
            return

        criteria = self._state.criteria
        query = self._source.build_query(date_range, criteria)
        if not force and query == self._last_query:
            logger.debug("Query unchanged, skipping duplicate fetch")
            return
        self._last_query = query

        generation = self._source.next_generation()
        self._update(loading=True)
        task = asyncio.create_task(self._source.fetch(date_range, criteria, generation=generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Surface callbacks

    def event_clicked(self, event_id: str) -> AppointmentSummary | None:
        """Hand the clicked event's backing summary to the click handler.

        Holiday events and unknown ids are ignored. No fetch is performed.
        """
        for event in self._state.events:
            if event.id != event_id:
                continue
            if event.is_holiday or event.backing_summary is None:
                return None
            if self._on_event_click is not None:
                self._on_event_click(event.backing_summary)
            return event.backing_summary
        logger.debug("Click on unknown calendar event {}", event_id)
        return None

    async def settle(self) -> None:
        """Wait until every dispatched fetch, including stale ones, has resolved."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        self._composer.close()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._source.close()
