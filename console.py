import asyncio

from loguru import logger

from clinicsync.backend.factory import build_calendar_sync
from clinicsync.calendar.projector import legend
from clinicsync.calendar.sync import CalendarState
from clinicsync.config import AppConfig
from clinicsync.domain.models import AppointmentSummary


def _show_detail(appointment: AppointmentSummary) -> None:
    logger.info(
        "Selected appointment {}: status={}, services={}",
        appointment.code,
        appointment.status.value,
        len(appointment.services),
    )


def _report(state: CalendarState) -> None:
    if state.notice is not None:
        logger.info(
            "Notice [{}] {}: {}",
            state.notice.level.value,
            state.notice.title,
            state.notice.description,
        )


async def run_console(config: AppConfig) -> None:
    logger.info("Starting clinic calendar sync")

    sync = build_calendar_sync(config, on_event_click=_show_detail)
    sync.on_change(_report)
    try:
        sync.window.today()
        await sync.settle()

        state = sync.state
        if state.range is not None:
            logger.info(
                "Window {} .. {} ({}): {} event(s)",
                state.range.first_day,
                state.range.last_day,
                sync.window.view_mode.value,
                len(state.events),
            )
        for event in state.events:
            logger.info("{} [{}] {}", event.start.date(), event.color.label, event.label)
        logger.info("Legend: {}", ", ".join(pair.label for pair in legend()))
    finally:
        await sync.close()


def main() -> None:
    asyncio.run(run_console(AppConfig()))


if __name__ == "__main__":
    main()
