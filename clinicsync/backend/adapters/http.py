import datetime as dt
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from clinicsync.domain.exceptions import (
    BackendRequestError,
    PayloadValidationError,
    ServiceUnavailableError,
)
from clinicsync.domain.models import AppointmentPage, AppointmentQuery, HolidayDate

_APPOINTMENTS_PATH = "/appointments"
_HOLIDAYS_PATH = "/holiday-dates/by-range"


def query_params(query: AppointmentQuery) -> list[tuple[str, str]]:
    """Encode a query as repeated-key URL parameters.

    Unset optional filters are omitted; ``status`` repeats once per value.
    """
    params: list[tuple[str, str]] = [
        ("page", str(query.page)),
        ("size", str(query.size)),
        ("sortBy", query.sort_by.value),
        ("sortDirection", query.sort_direction.value),
        ("dateFrom", query.date_from.isoformat()),
        ("dateTo", query.date_to.isoformat()),
    ]
    params.extend(("status", status.value) for status in query.status)

    if query.entity_fields is not None:
        entity: dict[str, str] = query.entity_fields.model_dump(by_alias=True, exclude_none=True)
        params.extend(entity.items())

    if query.search_code:
        params.append(("searchCode", query.search_code))
    return params


class HttpAppointmentClient:
    """Clinic appointment API client over REST."""

    def __init__(
        self,
        api_url: str,
        *,
        token: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._token: str | None = token or None
        self._client = httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get(self, path: str, params: list[tuple[str, str]]) -> Any:
        """Execute an authenticated GET and return the decoded JSON body."""
        try:
            resp = await self._client.get(
                f"{self._api_url}{path}",
                params=params,
                headers=self._headers(),
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status >= 500:
                raise ServiceUnavailableError(
                    f"Appointment API unavailable (status {status})", status_code=status
                ) from exc
            raise BackendRequestError(
                f"Appointment API request failed: {exc}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendRequestError(f"Appointment API request failed: {exc}") from exc
        except ValueError as exc:
            raise PayloadValidationError(f"Appointment API returned invalid JSON: {exc}") from exc

    async def fetch_appointments_page(self, query: AppointmentQuery) -> AppointmentPage:
        data = await self._get(_APPOINTMENTS_PATH, query_params(query))
        try:
            return AppointmentPage.model_validate(data)
        except ValidationError as exc:
            raise PayloadValidationError(
                f"Unexpected appointment page shape: {exc.error_count()} error(s)"
            ) from exc

    async def holidays_in_range(self, start: dt.date, end: dt.date) -> list[HolidayDate]:
        data = await self._get(
            _HOLIDAYS_PATH,
            [("startDate", start.isoformat()), ("endDate", end.isoformat())],
        )
        # Some deployments wrap the list as {"data": [...]}
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            return []

        holidays: list[HolidayDate] = []
        for raw in data:
            try:
                holidays.append(HolidayDate.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping malformed holiday entry")
        return holidays

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Appointment API client closed")
