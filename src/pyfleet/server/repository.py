"""In-memory vehicle and maintenance storage for the reference server."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pyfleet._api._common import DUPLICATE_REGISTRATION_MESSAGE, REGISTRATION_FIELD
from pyfleet.exceptions import FleetConflictError, FleetNotFoundError
from pyfleet.models.errors import FieldError
from pyfleet.models.maintenance import MaintenanceRecord
from pyfleet.models.requests import CreateMaintenanceRequest, CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.models.vehicle import Vehicle, VehicleStatus

_logger = logging.getLogger(__name__)

VEHICLE_NOT_FOUND_MESSAGE = "Vehicle not found"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FleetRepository:
    """Vehicles and their maintenance records, keyed by auto-increment ids.

    Registration numbers are unique. Deleting a vehicle deletes its
    maintenance records.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._vehicles: dict[int, Vehicle] = {}
        self._records: dict[int, MaintenanceRecord] = {}
        self._next_vehicle_id = 1
        self._next_record_id = 1

    def _require_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise FleetNotFoundError(VEHICLE_NOT_FOUND_MESSAGE, status_code=404)
        return vehicle

    def _check_registration(self, registration_number: str, *, exclude_id: int | None = None) -> None:
        for vehicle in self._vehicles.values():
            if vehicle.id != exclude_id and vehicle.registration_number == registration_number:
                raise FleetConflictError(
                    DUPLICATE_REGISTRATION_MESSAGE,
                    status_code=400,
                    field_errors=[FieldError(field=REGISTRATION_FIELD, message=DUPLICATE_REGISTRATION_MESSAGE)],
                )

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def list_vehicles(self) -> list[Vehicle]:
        """All vehicles, newest first."""
        return sorted(self._vehicles.values(), key=lambda v: (v.created_at, v.id), reverse=True)

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        return self._require_vehicle(vehicle_id)

    def create_vehicle(self, request: CreateVehicleRequest) -> Vehicle:
        self._check_registration(request.registration_number)
        now = self._clock()
        vehicle = Vehicle(
            id=self._next_vehicle_id,
            model=request.model,
            type=request.type,
            status=request.status,
            registration_number=request.registration_number,
            location=request.location,
            last_maintenance=request.last_maintenance or now,
            created_at=now,
            updated_at=now,
        )
        self._next_vehicle_id += 1
        self._vehicles[vehicle.id] = vehicle
        _logger.debug("Created vehicle %d (%s)", vehicle.id, vehicle.registration_number)
        return vehicle

    def update_vehicle(self, vehicle_id: int, request: UpdateVehicleRequest) -> Vehicle:
        vehicle = self._require_vehicle(vehicle_id)
        changes = request.changes()
        if "registration_number" in changes:
            self._check_registration(changes["registration_number"], exclude_id=vehicle_id)
        updated = vehicle.with_changes(updated_at=self._clock(), **changes)
        self._vehicles[vehicle_id] = updated
        return updated

    def delete_vehicle(self, vehicle_id: int) -> None:
        self._require_vehicle(vehicle_id)
        del self._vehicles[vehicle_id]
        orphaned = [rid for rid, record in self._records.items() if record.vehicle_id == vehicle_id]
        for record_id in orphaned:
            del self._records[record_id]
        _logger.debug("Deleted vehicle %d and %d maintenance record(s)", vehicle_id, len(orphaned))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def list_maintenance(self, vehicle_id: int) -> list[MaintenanceRecord]:
        """A vehicle's maintenance records, most recently performed first."""
        self._require_vehicle(vehicle_id)
        records = [record for record in self._records.values() if record.vehicle_id == vehicle_id]
        return sorted(records, key=lambda r: (r.performed_at, r.id), reverse=True)

    def add_maintenance(self, vehicle_id: int, request: CreateMaintenanceRequest) -> Vehicle:
        """Record maintenance performed now and put the vehicle in maintenance.

        Returns the updated vehicle.
        """
        vehicle = self._require_vehicle(vehicle_id)
        now = self._clock()
        record = MaintenanceRecord(
            id=self._next_record_id,
            vehicle_id=vehicle_id,
            description=request.description,
            cost=request.cost,
            performed_at=now,
            created_at=now,
        )
        self._next_record_id += 1
        self._records[record.id] = record

        updated = vehicle.with_changes(
            updated_at=now,
            status=VehicleStatus.MAINTENANCE,
            last_maintenance=now,
        )
        self._vehicles[vehicle_id] = updated
        return updated
