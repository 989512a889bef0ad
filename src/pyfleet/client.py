"""High-level async client for the fleet REST API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from pyfleet._api import maintenance as _maintenance_api
from pyfleet._api import vehicles as _vehicles_api
from pyfleet._transport import HttpTransport, Transport
from pyfleet.cache import EntityCache, VehicleKeys
from pyfleet.config import FleetConfig, default_state_dir
from pyfleet.exceptions import FleetError
from pyfleet.models.maintenance import MaintenanceRecord
from pyfleet.models.requests import CreateMaintenanceRequest, CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.models.vehicle import Vehicle
from pyfleet.orchestrators import MutationResult, VehicleMutations
from pyfleet.state.persistence import JsonFileStorage, MemoryStorage, SnapshotStorage
from pyfleet.state.store import Scheduler, UiStateStore

_logger = logging.getLogger(__name__)


def _default_storage(config: FleetConfig) -> SnapshotStorage:
    if not config.persist_ui_state:
        return MemoryStorage()
    return JsonFileStorage(config.state_dir or default_state_dir())


class FleetClient:
    """Async client for the fleet API.

    Owns one entity cache and one UI state store; every view and
    orchestrator created from the client shares them.

    Usage::

        async with FleetClient(config) as client:
            vehicles = await client.get_vehicles()
            await client.create_vehicle({"model": "Transit", ...})

    Pass ``transport`` to talk to something other than HTTP (tests do);
    in that case no ``aiohttp`` session is opened.
    """

    def __init__(
        self,
        config: FleetConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        storage: SnapshotStorage | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config or FleetConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._cache = EntityCache(stale_after=self._config.stale_after)
        self._store = UiStateStore(
            storage=storage if storage is not None else _default_storage(self._config),
            namespace=self._config.storage_namespace,
            toast_duration=self._config.toast_duration,
            scheduler=scheduler,
        )
        self._mutations: VehicleMutations | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
            _logger.debug("Fleet client connected to %s", self._config.base_url)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None
        self._mutations = None

    # ------------------------------------------------------------------
    # Shared state
    # ------------------------------------------------------------------

    @property
    def config(self) -> FleetConfig:
        return self._config

    @property
    def cache(self) -> EntityCache:
        return self._cache

    @property
    def store(self) -> UiStateStore:
        return self._store

    @property
    def mutations(self) -> VehicleMutations:
        if self._mutations is None:
            self._mutations = VehicleMutations(self._require_transport(), self._cache, self._store)
        return self._mutations

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FleetError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Reads (through the cache)
    # ------------------------------------------------------------------

    async def get_vehicles(self) -> list[Vehicle]:
        """Return all vehicles, loading them unless a fresh copy is cached."""
        transport = self._require_transport()
        return await self._cache.fetch(
            VehicleKeys.lists(),
            lambda: _vehicles_api.fetch_vehicles(transport),
        )

    async def get_vehicle(self, vehicle_id: int) -> Vehicle:
        transport = self._require_transport()
        return await self._cache.fetch(
            VehicleKeys.detail(vehicle_id),
            lambda: _vehicles_api.fetch_vehicle(transport, vehicle_id),
        )

    async def get_maintenance_history(self, vehicle_id: int) -> list[MaintenanceRecord]:
        transport = self._require_transport()
        return await self._cache.fetch(
            VehicleKeys.maintenance(vehicle_id),
            lambda: _maintenance_api.fetch_maintenance_history(transport, vehicle_id),
        )

    async def refresh_vehicles(self) -> list[Vehicle]:
        """Mark the list stale and fetch it again."""
        self._cache.invalidate(VehicleKeys.lists())
        return await self.get_vehicles()

    # ------------------------------------------------------------------
    # Writes (through the orchestrators)
    # ------------------------------------------------------------------

    async def create_vehicle(self, request: CreateVehicleRequest | Mapping[str, Any]) -> MutationResult[Vehicle]:
        return await self.mutations.create_vehicle(request)

    async def update_vehicle(
        self,
        request: UpdateVehicleRequest | Mapping[str, Any],
        vehicle_id: int | None = None,
    ) -> MutationResult[Vehicle]:
        return await self.mutations.update_vehicle(request, vehicle_id)

    async def delete_vehicle(self, vehicle_id: int | None = None) -> MutationResult[str]:
        return await self.mutations.delete_vehicle(vehicle_id)

    async def add_maintenance(
        self,
        vehicle_id: int,
        request: CreateMaintenanceRequest | Mapping[str, Any],
    ) -> MutationResult[Vehicle]:
        return await self.mutations.add_maintenance(vehicle_id, request)
