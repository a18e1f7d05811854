from typing import TypeVar

from clinicsync.domain.models import AppointmentQuery, FilterCriteria

_Stripped = TypeVar("_Stripped", FilterCriteria, AppointmentQuery)


def strip(criteria: _Stripped, can_view_all: bool) -> _Stripped:
    """Remove entity-targeting fields the caller may not query.

    Users limited to their own records never transmit patient, employee,
    room or service targeting, even if those fields were set earlier. Every
    path that emits criteria or builds a backend query goes through here.
    """
    if can_view_all or criteria.entity_fields is None:
        return criteria
    return criteria.model_copy(update={"entity_fields": None})
