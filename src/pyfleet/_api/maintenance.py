"""Maintenance endpoints: /vehicles/{id}/maintenance."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyfleet._api._common import expect_list, expect_object, parse_model, request_json, validate_request
from pyfleet._api.vehicles import vehicle_endpoint
from pyfleet._transport import Transport
from pyfleet.models.maintenance import MaintenanceRecord
from pyfleet.models.requests import CreateMaintenanceRequest
from pyfleet.models.vehicle import Vehicle


def maintenance_endpoint(vehicle_id: int) -> str:
    return f"{vehicle_endpoint(vehicle_id)}/maintenance"


async def fetch_maintenance_history(transport: Transport, vehicle_id: int) -> list[MaintenanceRecord]:
    """Fetch a vehicle's maintenance records, most recent first."""
    endpoint = maintenance_endpoint(vehicle_id)
    decoded = await request_json(transport=transport, method="GET", endpoint=endpoint)
    return [parse_model(endpoint, MaintenanceRecord, item) for item in expect_list(endpoint, decoded)]


async def add_maintenance(
    transport: Transport,
    vehicle_id: int,
    request: CreateMaintenanceRequest | Mapping[str, Any],
) -> Vehicle:
    """Log a maintenance record.

    The server answers with the updated parent vehicle, not the record.
    """
    endpoint = maintenance_endpoint(vehicle_id)
    payload = validate_request(CreateMaintenanceRequest, request)
    decoded = await request_json(transport=transport, method="POST", endpoint=endpoint, body=payload.to_wire())
    return parse_model(endpoint, Vehicle, expect_object(endpoint, decoded))
