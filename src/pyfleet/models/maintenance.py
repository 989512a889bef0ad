"""Maintenance record model."""

from __future__ import annotations

from pyfleet.models._base import FleetBaseModel, FleetTimestamp


class MaintenanceRecord(FleetBaseModel):
    """A maintenance event logged against a vehicle.

    Records are owned by their vehicle and disappear with it.
    """

    id: int
    vehicle_id: int
    description: str
    cost: float | None = None
    """Cost of the service, ``None`` when not recorded."""
    performed_at: FleetTimestamp
    created_at: FleetTimestamp | None = None
