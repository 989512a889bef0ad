"""Data models for fleet API payloads."""

from pyfleet.models._base import FleetBaseModel, FleetTimestamp, parse_fleet_timestamp
from pyfleet.models.errors import ErrorBody, FieldError
from pyfleet.models.maintenance import MaintenanceRecord
from pyfleet.models.requests import (
    CreateMaintenanceRequest,
    CreateVehicleRequest,
    UpdateVehicleRequest,
    collect_field_errors,
)
from pyfleet.models.vehicle import Vehicle, VehicleStatus

__all__ = [
    "CreateMaintenanceRequest",
    "CreateVehicleRequest",
    "ErrorBody",
    "FieldError",
    "FleetBaseModel",
    "FleetTimestamp",
    "MaintenanceRecord",
    "UpdateVehicleRequest",
    "Vehicle",
    "VehicleStatus",
    "collect_field_errors",
    "parse_fleet_timestamp",
]
