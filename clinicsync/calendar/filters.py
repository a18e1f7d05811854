import asyncio
import datetime as dt
from collections.abc import Callable

from loguru import logger

from clinicsync.calendar import rbac
from clinicsync.domain.models import (
    AppointmentStatus,
    DatePreset,
    EntityFields,
    FilterCriteria,
    SortDirection,
    SortField,
)

CriteriaListener = Callable[[FilterCriteria], None]

# Quiet period before typed search text is committed.
DEFAULT_DEBOUNCE_SECONDS: float = 1.0


class FilterComposer:
    """Owns the editable filter/sort state and emits canonical criteria.

    Free-text search is buffered and committed after ``debounce_seconds`` of
    inactivity, or immediately by ``press_enter``. Status, sort and date
    controls commit immediately. Each commit emits one ``FilterCriteria``,
    already passed through the RBAC gate, to every ``on_criteria_changed``
    listener.

    Free-text search and the structured entity shortcuts exclude each other:
    committing one clears the other.
    """

    def __init__(
        self,
        *,
        can_view_all: bool = True,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        initial: FilterCriteria | None = None,
    ) -> None:
        self._can_view_all = can_view_all
        self._debounce = debounce_seconds
        self._listeners: list[CriteriaListener] = []
        self._pending: asyncio.Task[None] | None = None
        self._reset(initial or FilterCriteria())

    def _reset(self, state: FilterCriteria) -> None:
        self._search_code = state.search_code
        self._search_input = state.search_code or ""
        self._status = state.status
        self._date_preset = state.date_preset
        self._date_from = state.date_from
        self._date_to = state.date_to
        self._sort_by = state.sort_by
        self._sort_direction = state.sort_direction
        self._entity_fields = state.entity_fields if self._can_view_all else None

    @property
    def search_input(self) -> str:
        """The raw text-box contents, updated on every keystroke."""
        return self._search_input

    @property
    def can_view_all(self) -> bool:
        return self._can_view_all

    @property
    def has_pending_search(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def criteria(self) -> FilterCriteria:
        """The committed criteria, RBAC-stripped for the current visibility."""
        criteria = FilterCriteria(
            search_code=self._search_code,
            status=self._status,
            date_from=self._date_from,
            date_to=self._date_to,
            date_preset=self._date_preset,
            sort_by=self._sort_by,
            sort_direction=self._sort_direction,
            entity_fields=self._entity_fields,
        )
        return rbac.strip(criteria, self._can_view_all)

    def on_criteria_changed(self, listener: CriteriaListener) -> None:
        self._listeners.append(listener)

    # Free-text search

    def type_search(self, text: str) -> None:
        """Echo a keystroke into the buffer and restart the debounce timer."""
        self._search_input = text
        self._cancel_pending()
        self._pending = asyncio.create_task(self._delayed_commit())

    def press_enter(self) -> None:
        """Commit the buffer now, dropping any pending debounced commit."""
        self._cancel_pending()
        self._commit_search(force=True)

    async def _delayed_commit(self) -> None:
        await asyncio.sleep(self._debounce)
        self._pending = None
        self._commit_search(force=False)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Pending search commit cancelled")
        self._pending = None

    def _commit_search(self, *, force: bool) -> None:
        value = self._search_input.strip() or None
        if not force and value == self._search_code:
            logger.debug("Debounced search unchanged, nothing to commit")
            return
        self._search_code = value
        self._entity_fields = None
        self._commit("search")

    # Structured controls

    def target_entity(self, fields: EntityFields | None) -> None:
        """Apply structured entity targeting, replacing any free-text search."""
        self._cancel_pending()
        self._search_input = ""
        self._search_code = None
        if fields is None or fields.is_empty() or not self._can_view_all:
            fields = None
        self._entity_fields = fields
        self._commit("entity")

    def set_status(self, *statuses: AppointmentStatus) -> None:
        """Filter on the given statuses; no arguments means all statuses."""
        self._status = tuple(dict.fromkeys(statuses))
        self._commit("status")

    def set_sort_by(self, field: SortField) -> None:
        self._sort_by = field
        self._commit("sort_by")

    def set_sort_direction(self, direction: SortDirection) -> None:
        self._sort_direction = direction
        self._commit("sort_direction")

    def toggle_sort_direction(self) -> None:
        if self._sort_direction is SortDirection.ASC:
            self.set_sort_direction(SortDirection.DESC)
        else:
            self.set_sort_direction(SortDirection.ASC)

    def set_date_preset(self, preset: DatePreset | None) -> None:
        """Choose a preset (or ``None`` for all dates); clears explicit dates."""
        self._date_preset = preset
        self._date_from = None
        self._date_to = None
        self._commit("date_preset")

    def set_date_range(self, date_from: dt.date | None, date_to: dt.date | None) -> None:
        """Choose explicit dates; clears the preset."""
        self._date_from = date_from
        self._date_to = date_to
        self._date_preset = None
        self._commit("date_range")

    def set_can_view_all(self, can_view_all: bool) -> None:
        """Update the caller's visibility scope and re-emit if it changed.

        Dropping to own records discards any entity targeting for good.
        """
        if can_view_all == self._can_view_all:
            return
        self._can_view_all = can_view_all
        if not can_view_all:
            self._entity_fields = None
        self._commit("visibility")

    def clear(self) -> None:
        """Reset every filter to its default and commit once."""
        self._cancel_pending()
        self._reset(FilterCriteria())
        self._commit("clear")

    def close(self) -> None:
        self._cancel_pending()

    def _commit(self, reason: str) -> None:
        criteria = self.criteria
        active = sorted(criteria.model_dump(exclude_defaults=True))
        logger.info("Filter criteria committed ({}): active fields={}", reason, active)
        for listener in list(self._listeners):
            listener(criteria)
