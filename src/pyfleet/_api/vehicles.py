"""Vehicle endpoints: /vehicles and /vehicles/{id}."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyfleet._api._common import expect_list, expect_object, parse_model, request_json, validate_request
from pyfleet._transport import Transport
from pyfleet.models.requests import CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.models.vehicle import Vehicle

VEHICLES_ENDPOINT = "/vehicles"


def vehicle_endpoint(vehicle_id: int) -> str:
    return f"{VEHICLES_ENDPOINT}/{int(vehicle_id)}"


async def fetch_vehicles(transport: Transport) -> list[Vehicle]:
    """Fetch every vehicle, in server order."""
    decoded = await request_json(transport=transport, method="GET", endpoint=VEHICLES_ENDPOINT)
    items = expect_list(VEHICLES_ENDPOINT, decoded)
    return [parse_model(VEHICLES_ENDPOINT, Vehicle, item) for item in items]


async def fetch_vehicle(transport: Transport, vehicle_id: int) -> Vehicle:
    endpoint = vehicle_endpoint(vehicle_id)
    decoded = await request_json(transport=transport, method="GET", endpoint=endpoint)
    return parse_model(endpoint, Vehicle, expect_object(endpoint, decoded))


async def create_vehicle(
    transport: Transport,
    request: CreateVehicleRequest | Mapping[str, Any],
) -> Vehicle:
    """Register a vehicle. Invalid input raises before anything is sent."""
    payload = validate_request(CreateVehicleRequest, request)
    decoded = await request_json(
        transport=transport,
        method="POST",
        endpoint=VEHICLES_ENDPOINT,
        body=payload.to_wire(),
    )
    return parse_model(VEHICLES_ENDPOINT, Vehicle, expect_object(VEHICLES_ENDPOINT, decoded))


async def update_vehicle(
    transport: Transport,
    vehicle_id: int,
    request: UpdateVehicleRequest | Mapping[str, Any],
) -> Vehicle:
    endpoint = vehicle_endpoint(vehicle_id)
    payload = validate_request(UpdateVehicleRequest, request)
    decoded = await request_json(transport=transport, method="PUT", endpoint=endpoint, body=payload.to_wire())
    return parse_model(endpoint, Vehicle, expect_object(endpoint, decoded))


async def delete_vehicle(transport: Transport, vehicle_id: int) -> str:
    """Delete a vehicle (and, server-side, its maintenance records).

    Returns the server's confirmation message.
    """
    endpoint = vehicle_endpoint(vehicle_id)
    decoded = await request_json(transport=transport, method="DELETE", endpoint=endpoint)
    if isinstance(decoded, dict):
        return str(decoded.get("message", ""))
    return ""
