from __future__ import annotations

import asyncio

import pytest
from conftest import FakeFleetBackend

from pyfleet._transport import ApiResponse
from pyfleet.client import FleetClient
from pyfleet.derive import EmptyState
from pyfleet.models.vehicle import VehicleStatus
from pyfleet.state.models import SortColumn, VehicleTab
from pyfleet.views import DetailStatus, RequestGuard, VehicleDetailModel, VehicleListModel, VehicleListView


def test_request_guard_tokens() -> None:
    guard = RequestGuard()
    first = guard.begin()
    second = guard.begin()

    assert not guard.is_current(first)
    assert guard.is_current(second)

    guard.cancel()
    assert not guard.is_current(second)

    third = guard.begin()
    guard.close()
    assert not guard.is_current(third)
    assert guard.closed


@pytest.mark.asyncio
async def test_list_view_loads_and_derives(client: FleetClient) -> None:
    models: list[VehicleListModel] = []
    view = VehicleListView(client, models.append)

    assert view.model.empty_state is EmptyState.NONE
    model = await view.load()

    assert [v.id for v in model.vehicles] == [3, 2, 1]
    assert model.loading is False
    assert model.error is None
    assert models[0].loading is True

    client.store.set_search_query("van")
    assert [v.model for v in view.model.vehicles] == ["Ford Transit"]

    client.store.set_search_query("zeppelin")
    assert view.model.empty_state is EmptyState.NO_RESULTS
    assert view.model.total_count == 3
    view.close()


@pytest.mark.asyncio
async def test_list_view_sorting_follows_store(client: FleetClient) -> None:
    view = VehicleListView(client)
    await view.load()

    client.store.toggle_sort(SortColumn.MODEL)
    assert [v.id for v in view.model.vehicles] == [1, 2, 3]
    client.store.toggle_sort(SortColumn.MODEL)
    assert [v.id for v in view.model.vehicles] == [3, 2, 1]
    view.close()


@pytest.mark.asyncio
async def test_empty_fleet(backend: FakeFleetBackend, client: FleetClient) -> None:
    for vehicle_id in (1, 2, 3):
        backend.repository.delete_vehicle(vehicle_id)
    view = VehicleListView(client)

    model = await view.load()

    assert model.vehicles == []
    assert model.empty_state is EmptyState.NO_VEHICLES
    view.close()


@pytest.mark.asyncio
async def test_list_view_reports_errors(backend: FakeFleetBackend, client: FleetClient) -> None:
    backend.responses[("GET", "/vehicles")] = ApiResponse(500, {"message": "Error fetching vehicles"})
    view = VehicleListView(client)

    model = await view.load()

    assert model.error == "Error fetching vehicles"
    assert model.loading is False
    view.close()


@pytest.mark.asyncio
async def test_list_view_reloads_after_mutation(backend: FakeFleetBackend, client: FleetClient) -> None:
    view = VehicleListView(client)
    await view.load()
    client.store.open_add_modal()

    await client.create_vehicle({"model": "Iveco Daily", "type": "Van", "registrationNumber": "FL-9", "location": "Yard"})
    await view.settle()

    assert [v.model for v in view.model.vehicles][0] == "Iveco Daily"
    assert backend.count("GET", "/vehicles") == 2
    view.close()


@pytest.mark.asyncio
async def test_superseded_response_is_dropped_but_cached(backend: FakeFleetBackend, client: FleetClient) -> None:
    view = VehicleListView(client)
    backend.hold = asyncio.Event()

    pending = asyncio.create_task(view.load())
    await asyncio.sleep(0)
    view.close()
    backend.hold.set()
    model = await pending

    assert model.vehicles == []
    assert len(client.cache.get(("vehicles", "list"))) == 3


@pytest.mark.asyncio
async def test_open_vehicle_records_last_viewed(client: FleetClient) -> None:
    view = VehicleListView(client)
    detail = view.open_vehicle(2)

    assert client.store.last_viewed_vehicle_id == 2
    assert view.model.selected_vehicle_id == 2
    assert detail.vehicle_id == 2
    detail.close()
    view.close()


@pytest.mark.asyncio
async def test_detail_view_loads_vehicle(client: FleetClient, backend: FakeFleetBackend) -> None:
    models: list[VehicleDetailModel] = []
    view = VehicleListView(client).open_vehicle(2, models.append)

    model = await view.load()

    assert model.status is DetailStatus.READY
    assert model.vehicle is not None
    assert model.vehicle.model == "Toyota Camry"
    assert model.maintenance is None
    assert backend.count("GET", "/vehicles/2/maintenance") == 0
    view.close()


@pytest.mark.asyncio
async def test_detail_view_not_found(client: FleetClient) -> None:
    view = VehicleListView(client).open_vehicle(404)

    model = await view.load()

    assert model.status is DetailStatus.NOT_FOUND
    assert model.vehicle is None
    view.close()


@pytest.mark.asyncio
async def test_detail_view_other_errors(backend: FakeFleetBackend, client: FleetClient) -> None:
    backend.responses[("GET", "/vehicles/2")] = ApiResponse(503)
    view = VehicleListView(client).open_vehicle(2)

    model = await view.load()

    assert model.status is DetailStatus.ERROR
    assert model.error == "Something went wrong. Please try again."
    view.close()


@pytest.mark.asyncio
async def test_maintenance_tab_loads_history(client: FleetClient, backend: FakeFleetBackend) -> None:
    view = VehicleListView(client).open_vehicle(1)
    await view.load()

    view.set_tab(VehicleTab.MAINTENANCE)
    await view.settle()

    assert view.model.active_tab is VehicleTab.MAINTENANCE
    assert view.model.maintenance == []
    assert backend.count("GET", "/vehicles/1/maintenance") == 1
    view.close()


@pytest.mark.asyncio
async def test_detail_view_follows_maintenance_mutation(client: FleetClient, backend: FakeFleetBackend) -> None:
    client.store.set_active_tab(VehicleTab.MAINTENANCE)
    view = VehicleListView(client).open_vehicle(1)
    await view.load()
    assert view.model.maintenance == []

    await view.add_maintenance({"description": "Brake pads", "cost": 120})
    await view.settle()

    model = view.model
    assert model.vehicle is not None
    assert model.vehicle.status is VehicleStatus.MAINTENANCE
    assert [r.description for r in model.maintenance or []] == ["Brake pads"]
    view.close()


@pytest.mark.asyncio
async def test_detail_view_after_delete(client: FleetClient) -> None:
    view = VehicleListView(client).open_vehicle(3)
    await view.load()
    client.store.open_delete_dialog(3)

    await client.delete_vehicle()
    await view.settle()

    assert view.model.status is DetailStatus.NOT_FOUND
    view.close()
