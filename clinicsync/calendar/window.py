import datetime as dt
from collections.abc import Callable

from loguru import logger

from clinicsync.backend.adapters.datetime_helpers import (
    add_months,
    start_of_day,
    start_of_week,
    to_clinic_time,
)
from clinicsync.domain.exceptions import InvalidRangeError
from clinicsync.domain.models import DateRange, ViewMode

RangeListener = Callable[[DateRange], None]

# The month grid always shows six full weeks.
_MONTH_GRID_DAYS = 42


class DateRangeWindow:
    """Holds the visible calendar window and its view granularity.

    Navigation (``prev``/``next``/``today``/``change_view``) computes the new
    window locally; ``set_range`` accepts the window reported by the rendering
    surface. Every accepted range is announced to ``on_range_changed``
    listeners; rejected ranges are logged and the previous window is kept.
    """

    def __init__(
        self,
        tz: dt.tzinfo,
        *,
        view_mode: ViewMode = ViewMode.WEEK,
        week_starts_on: int = 0,
        clock: Callable[[], dt.datetime] | None = None,
    ) -> None:
        self._tz = tz
        self._view_mode = view_mode
        self._week_starts_on = week_starts_on
        self._clock = clock or (lambda: dt.datetime.now(tz))
        self._anchor: dt.date = self._clock().astimezone(tz).date()
        self._range: DateRange | None = None
        self._listeners: list[RangeListener] = []

    @property
    def range(self) -> DateRange | None:
        return self._range

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def anchor(self) -> dt.date:
        """The date the current view is centred on."""
        return self._anchor

    def on_range_changed(self, listener: RangeListener) -> None:
        self._listeners.append(listener)

    def set_range(
        self,
        start: dt.datetime,
        end: dt.datetime,
        view_mode: ViewMode | None = None,
    ) -> bool:
        """Accept a new visible window; returns False if it was rejected.

        Both ends are expressed in clinic time, so naive values are read as
        clinic wall-clock time and aware ones are converted.
        """
        try:
            new_range = DateRange(
                start=to_clinic_time(start, self._tz), end=to_clinic_time(end, self._tz)
            )
        except InvalidRangeError as exc:
            logger.warning("Rejected calendar range, keeping previous window: {}", exc)
            return False

        if view_mode is not None:
            self._view_mode = view_mode
        midpoint = new_range.start + (new_range.end - new_range.start) / 2
        self._anchor = midpoint.date()
        self._range = new_range
        for listener in list(self._listeners):
            listener(new_range)
        return True

    def dates_set(self, active_start: dt.datetime, active_end: dt.datetime) -> None:
        """Range-change callback handed to the rendering surface."""
        self.set_range(active_start, active_end)

    def today(self) -> bool:
        self._anchor = self._clock().astimezone(self._tz).date()
        return self._show(self._anchor)

    def prev(self) -> bool:
        return self._show(self._shift(-1))

    def next(self) -> bool:
        return self._show(self._shift(1))

    def change_view(self, view_mode: ViewMode) -> bool:
        logger.info("Calendar view changed: {} -> {}", self._view_mode.value, view_mode.value)
        self._view_mode = view_mode
        return self._show(self._anchor)

    def _shift(self, steps: int) -> dt.date:
        if self._view_mode is ViewMode.DAY:
            return self._anchor + dt.timedelta(days=steps)
        if self._view_mode is ViewMode.WEEK:
            return self._anchor + dt.timedelta(weeks=steps)
        return add_months(self._anchor, steps)

    def _show(self, anchor: dt.date) -> bool:
        start_day, days = self._window_for(anchor)
        start = start_of_day(start_day, self._tz)
        end = start_of_day(start_day + dt.timedelta(days=days), self._tz)
        accepted = self.set_range(start, end)
        if accepted:
            # Keep the navigation anchor rather than the window's midpoint.
            self._anchor = anchor
        return accepted

    def _window_for(self, anchor: dt.date) -> tuple[dt.date, int]:
        if self._view_mode is ViewMode.DAY:
            return anchor, 1
        if self._view_mode is ViewMode.WEEK:
            return start_of_week(anchor, self._week_starts_on), 7
        first_of_month = anchor.replace(day=1)
        return start_of_week(first_of_month, self._week_starts_on), _MONTH_GRID_DAYS
