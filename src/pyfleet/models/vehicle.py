"""Vehicle model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pyfleet.models._base import FleetBaseModel, FleetTimestamp


class VehicleStatus(StrEnum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


class Vehicle(FleetBaseModel):
    """A vehicle record as returned by ``/vehicles`` endpoints."""

    id: int
    """Server-assigned identifier."""
    model: str
    """Model name (e.g. ``"Toyota Camry"``)."""
    type: str
    """Vehicle type (e.g. ``"Sedan"``)."""
    status: VehicleStatus = VehicleStatus.ACTIVE
    registration_number: str
    """Registration number, unique across the fleet."""
    location: str = ""
    last_maintenance: FleetTimestamp | None = None
    """When the vehicle was last serviced."""
    created_at: FleetTimestamp | None = None
    updated_at: FleetTimestamp | None = None

    @property
    def in_maintenance(self) -> bool:
        return self.status is VehicleStatus.MAINTENANCE

    def with_changes(self, *, updated_at: datetime, **changes: object) -> Vehicle:
        """Return a copy with *changes* applied and ``updated_at`` bumped."""
        return self.model_copy(update={**changes, "updated_at": updated_at})
