"""Pure derivation of the render-ready vehicle list.

``derive_vehicle_list`` composes cached vehicles with the user's filter
state. Nothing here touches the cache or the store; the same inputs always
produce the same output.

Records may be :class:`~pyfleet.models.vehicle.Vehicle` models or plain
mappings with the same (snake_case) keys.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pyfleet.state.models import FilterState, SortColumn, SortDirection

R = TypeVar("R")

SEARCH_FIELDS: tuple[str, ...] = ("model", "type", "status")


class EmptyState(StrEnum):
    """Why the derived list is empty, if it is."""

    NONE = "none"
    NO_VEHICLES = "no_vehicles"
    NO_RESULTS = "no_results"


@dataclass(frozen=True, slots=True)
class VehicleListing(Generic[R]):
    vehicles: list[R]
    total_count: int
    empty_state: EmptyState


def field_value(record: Any, name: str) -> Any:
    """Read *name* from a model or mapping; ``None`` when absent."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _search_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


def filter_vehicles(vehicles: Sequence[R], query: str) -> list[R]:
    """Keep records whose model, type or status contains *query*.

    Matching is case-insensitive. An empty query keeps everything, in order.
    """
    needle = query.lower()
    if not needle:
        return list(vehicles)
    return [
        vehicle
        for vehicle in vehicles
        if any(needle in _search_text(field_value(vehicle, name)) for name in SEARCH_FIELDS)
    ]


def _compare(a: Any, b: Any, column: str, direction: SortDirection) -> int:
    a_value = field_value(a, column)
    b_value = field_value(b, column)
    # Missing values express no preference.
    if a_value is None or b_value is None or a_value == b_value:
        return 0
    result = 1 if a_value > b_value else -1
    return result if direction is SortDirection.ASC else -result


def sort_vehicles(
    vehicles: Sequence[R],
    sort_by: SortColumn | str | None,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[R]:
    """Stable sort by one column; ``sort_by=None`` keeps server order."""
    if sort_by is None:
        return list(vehicles)
    column = SortColumn(sort_by).value
    key = functools.cmp_to_key(lambda a, b: _compare(a, b, column, SortDirection(direction)))
    return sorted(vehicles, key=key)


def derive_vehicle_list(vehicles: Sequence[R], filter_state: FilterState) -> VehicleListing[R]:
    filtered = filter_vehicles(vehicles, filter_state.search_query)
    ordered = sort_vehicles(filtered, filter_state.sort_by, filter_state.sort_direction)

    if ordered:
        empty_state = EmptyState.NONE
    elif vehicles:
        empty_state = EmptyState.NO_RESULTS
    else:
        empty_state = EmptyState.NO_VEHICLES
    return VehicleListing(vehicles=ordered, total_count=len(vehicles), empty_state=empty_state)
