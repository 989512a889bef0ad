from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pyfleet._api._common import validate_request
from pyfleet._transport import ApiResponse
from pyfleet.client import FleetClient
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetApiError, FleetNotFoundError
from pyfleet.models.requests import CreateMaintenanceRequest, CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.server.repository import FleetRepository
from pyfleet.state.persistence import MemoryStorage

_VEHICLE_PATH = re.compile(r"^/vehicles/(?P<id>\d+)(?P<maintenance>/maintenance)?$")


class TickingClock:
    """Wall clock that advances one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class ManualClock:
    """Monotonic clock for cache staleness, moved by hand."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeTimer:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    timers: list[FakeTimer] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire_all(self) -> None:
        for timer in self.pending:
            timer.cancelled = True
            timer.callback()


@dataclass
class FakeFleetBackend:
    """In-process stand-in for the REST API, backed by a real repository.

    ``responses`` overrides the answer for a ``(method, endpoint)`` pair;
    ``hold`` (when set) makes every request wait for the event first.
    """

    repository: FleetRepository = field(default_factory=lambda: FleetRepository(clock=TickingClock()))
    calls: list[tuple[str, str]] = field(default_factory=list)
    bodies: list[Any] = field(default_factory=list)
    responses: dict[tuple[str, str], ApiResponse] = field(default_factory=dict)
    hold: asyncio.Event | None = None

    def count(self, method: str, endpoint: str) -> int:
        return self.calls.count((method, endpoint))

    def seed(self, *vehicles: dict[str, Any]) -> None:
        for vehicle in vehicles:
            self.repository.create_vehicle(CreateVehicleRequest.model_validate(vehicle))

    async def request(self, method: str, endpoint: str, *, json_body: Any = None) -> ApiResponse:
        self.calls.append((method, endpoint))
        self.bodies.append(json_body)
        if self.hold is not None:
            await self.hold.wait()
        override = self.responses.get((method, endpoint))
        if override is not None:
            return override
        try:
            return self._dispatch(method, endpoint, json_body)
        except FleetNotFoundError as exc:
            return ApiResponse(404, {"message": str(exc)})
        except FleetApiError as exc:
            return ApiResponse(
                exc.status_code or 400,
                {"message": str(exc), "errors": [fe.to_wire() for fe in exc.field_errors]},
            )

    def _dispatch(self, method: str, endpoint: str, body: Any) -> ApiResponse:
        repo = self.repository
        if endpoint == "/vehicles":
            if method == "GET":
                return ApiResponse(200, [v.to_wire() for v in repo.list_vehicles()])
            if method == "POST":
                created = repo.create_vehicle(validate_request(CreateVehicleRequest, body))
                return ApiResponse(201, created.to_wire())

        match = _VEHICLE_PATH.match(endpoint)
        if match is None:
            return ApiResponse(404, {"message": "Not found"})
        vehicle_id = int(match.group("id"))

        if match.group("maintenance"):
            if method == "GET":
                return ApiResponse(200, [r.to_wire() for r in repo.list_maintenance(vehicle_id)])
            if method == "POST":
                payload = validate_request(CreateMaintenanceRequest, body)
                return ApiResponse(200, repo.add_maintenance(vehicle_id, payload).to_wire())
        elif method == "GET":
            return ApiResponse(200, repo.get_vehicle(vehicle_id).to_wire())
        elif method == "PUT":
            payload = validate_request(UpdateVehicleRequest, body)
            return ApiResponse(200, repo.update_vehicle(vehicle_id, payload).to_wire())
        elif method == "DELETE":
            repo.delete_vehicle(vehicle_id)
            return ApiResponse(200, {"message": "Vehicle deleted successfully"})
        return ApiResponse(405, {"message": "Method not allowed"})


SAMPLE_VEHICLES: tuple[dict[str, Any], ...] = (
    {"model": "Ford Transit", "type": "Van", "registrationNumber": "FL-1001", "location": "Depot North"},
    {
        "model": "Toyota Camry",
        "type": "Sedan",
        "status": "maintenance",
        "registrationNumber": "FL-1002",
        "location": "Head Office",
    },
    {
        "model": "Volvo FH16",
        "type": "Truck",
        "status": "inactive",
        "registrationNumber": "FL-1003",
        "location": "Depot South",
    },
)


@pytest.fixture
def backend() -> FakeFleetBackend:
    fake = FakeFleetBackend()
    fake.seed(*SAMPLE_VEHICLES)
    return fake


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def client(backend: FakeFleetBackend, scheduler: FakeScheduler, storage: MemoryStorage) -> FleetClient:
    return FleetClient(FleetConfig(), transport=backend, storage=storage, scheduler=scheduler)
