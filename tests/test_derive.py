from __future__ import annotations

from typing import Any

from pyfleet.derive import EmptyState, derive_vehicle_list, filter_vehicles, sort_vehicles
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.models import FilterState, SortColumn, SortDirection


def _vehicle(vehicle_id: int, model: str, type_: str, status: str = "active") -> Vehicle:
    return Vehicle(
        id=vehicle_id,
        model=model,
        type=type_,
        status=status,
        registration_number=f"REG-{vehicle_id}",
    )


FLEET = [
    _vehicle(1, "Ford Transit", "Van"),
    _vehicle(2, "Toyota Camry", "Sedan", "maintenance"),
    _vehicle(3, "Volvo FH16", "Truck", "inactive"),
    _vehicle(4, "Ford Focus", "Hatchback"),
]


def _ids(vehicles: list[Any]) -> list[int]:
    return [v.id if isinstance(v, Vehicle) else v["id"] for v in vehicles]


def test_empty_query_keeps_everything_in_order() -> None:
    assert _ids(filter_vehicles(FLEET, "")) == [1, 2, 3, 4]


def test_query_matches_model_type_and_status_case_insensitively() -> None:
    assert _ids(filter_vehicles(FLEET, "FORD")) == [1, 4]
    assert _ids(filter_vehicles(FLEET, "sedan")) == [2]
    assert _ids(filter_vehicles(FLEET, "Maint")) == [2]


def test_query_does_not_match_registration_or_location() -> None:
    assert filter_vehicles(FLEET, "REG-1") == []


def test_filter_accepts_plain_mappings() -> None:
    records = [{"id": 1, "model": "Ford", "type": "Van", "status": "active"}, {"id": 2, "model": "Kia"}]
    assert _ids(filter_vehicles(records, "van")) == [1]


def test_sort_ascending_and_descending() -> None:
    assert _ids(sort_vehicles(FLEET, SortColumn.MODEL, SortDirection.ASC)) == [4, 1, 2, 3]
    assert _ids(sort_vehicles(FLEET, "model", "desc")) == [3, 2, 1, 4]


def test_sort_without_column_keeps_server_order() -> None:
    assert _ids(sort_vehicles(FLEET, None)) == [1, 2, 3, 4]


def test_sort_is_stable_for_equal_values() -> None:
    assert _ids(sort_vehicles(FLEET, SortColumn.STATUS, SortDirection.ASC)) == [1, 4, 3, 2]
    # Equal statuses keep their relative order in both directions.
    assert _ids(sort_vehicles(FLEET, SortColumn.STATUS, SortDirection.DESC)) == [2, 3, 1, 4]


def test_missing_sort_values_do_not_reorder() -> None:
    # Records without the column compare equal to everything.
    assert _ids(sort_vehicles([{"id": 1, "model": "b"}, {"id": 2}], SortColumn.MODEL)) == [1, 2]
    assert _ids(sort_vehicles([{"id": 1}, {"id": 2, "model": "a"}], SortColumn.MODEL, "desc")) == [1, 2]


def test_derive_filters_then_sorts() -> None:
    listing = derive_vehicle_list(
        FLEET,
        FilterState(search_query="ford", sort_by=SortColumn.MODEL, sort_direction=SortDirection.DESC),
    )
    assert _ids(listing.vehicles) == [1, 4]
    assert listing.total_count == 4
    assert listing.empty_state is EmptyState.NONE


def test_derive_reports_empty_fleet_and_no_results() -> None:
    assert derive_vehicle_list([], FilterState()).empty_state is EmptyState.NO_VEHICLES
    assert derive_vehicle_list(FLEET, FilterState(search_query="zzz")).empty_state is EmptyState.NO_RESULTS


def test_derive_does_not_mutate_input() -> None:
    fleet = list(FLEET)
    derive_vehicle_list(fleet, FilterState(sort_by=SortColumn.TYPE, sort_direction=SortDirection.DESC))
    assert _ids(fleet) == [1, 2, 3, 4]
