import datetime as dt

import pytest

from clinicsync.calendar.rbac import strip
from clinicsync.domain.models import (
    AppointmentQuery,
    AppointmentStatus,
    EntityFields,
    FilterCriteria,
)

ALL_ENTITY_FIELDS = EntityFields(
    patient_code="BN001",
    patient_name="Tran Thi Binh",
    patient_phone="0901234567",
    employee_code="EMP001",
    room_code="P01",
    service_code="SV01",
)


class TestStrip:
    def test_own_records_scope_removes_every_entity_field(self) -> None:
        criteria = FilterCriteria(entity_fields=ALL_ENTITY_FIELDS)

        result = strip(criteria, can_view_all=False)

        assert result.entity_fields is None

    def test_view_all_scope_keeps_entity_fields(self) -> None:
        criteria = FilterCriteria(entity_fields=ALL_ENTITY_FIELDS)

        result = strip(criteria, can_view_all=True)

        assert result.entity_fields == ALL_ENTITY_FIELDS

    def test_other_fields_survive_stripping(self) -> None:
        criteria = FilterCriteria(
            search_code="APT-9",
            status=(AppointmentStatus.COMPLETED,),
            entity_fields=EntityFields(room_code="P01"),
        )

        result = strip(criteria, can_view_all=False)

        assert result.search_code == "APT-9"
        assert result.status == (AppointmentStatus.COMPLETED,)

    def test_does_not_mutate_input(self) -> None:
        criteria = FilterCriteria(entity_fields=ALL_ENTITY_FIELDS)

        strip(criteria, can_view_all=False)

        assert criteria.entity_fields == ALL_ENTITY_FIELDS

    def test_applies_to_backend_queries(self) -> None:
        query = AppointmentQuery(
            date_from=dt.date(2025, 1, 6),
            date_to=dt.date(2025, 1, 12),
            entity_fields=EntityFields(employee_code="EMP001"),
        )

        result = strip(query, can_view_all=False)

        assert isinstance(result, AppointmentQuery)
        assert result.entity_fields is None

    @pytest.mark.parametrize("can_view_all", [True, False])
    def test_criteria_without_entity_fields_pass_through(self, can_view_all: bool) -> None:
        criteria = FilterCriteria(search_code="abc")

        assert strip(criteria, can_view_all) == criteria
