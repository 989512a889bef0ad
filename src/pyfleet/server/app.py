"""aiohttp application serving the fleet REST API from a :class:`FleetRepository`.

Routes live under ``/api/vehicles``. Errors are answered as
``{"message": ..., "errors": [{"field": ..., "message": ...}]}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aiohttp import web

from pyfleet._api._common import validate_request
from pyfleet.exceptions import FleetApiError, FleetNotFoundError, FleetValidationError
from pyfleet.models._base import FleetBaseModel
from pyfleet.models.requests import CreateMaintenanceRequest, CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.server.repository import FleetRepository

_logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]
TRequest = TypeVar("TRequest", bound=FleetBaseModel)

API_PREFIX = "/api"
INVALID_VEHICLE_ID_MESSAGE = "Invalid vehicle ID"
INVALID_JSON_MESSAGE = "Invalid JSON body"
DEFAULT_FAILURE_MESSAGE = "Internal server error"

REPOSITORY_KEY = web.AppKey("repository", FleetRepository)


def _failure_message(message: str) -> Callable[[Handler], Handler]:
    """Attach the 500 message a handler answers with on unexpected errors."""

    def _decorate(handler: Handler) -> Handler:
        handler.failure_message = message  # type: ignore[attr-defined]
        return handler

    return _decorate


def _error_response(status: int, message: str, errors: list[dict[str, str]] | None = None) -> web.Response:
    body: dict[str, Any] = {"message": message}
    if errors:
        body["errors"] = errors
    return web.json_response(body, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except FleetNotFoundError as exc:
        return _error_response(404, str(exc))
    except FleetApiError as exc:
        errors = [fe.to_wire() for fe in exc.field_errors]
        return _error_response(exc.status_code or 400, str(exc), errors)
    except Exception:
        route_handler = request.match_info.handler
        message = getattr(route_handler, "failure_message", DEFAULT_FAILURE_MESSAGE)
        _logger.exception("%s %s failed", request.method, request.path)
        return _error_response(500, message)


def _repository(request: web.Request) -> FleetRepository:
    return request.app[REPOSITORY_KEY]


def _vehicle_id(request: web.Request) -> int:
    raw = request.match_info["id"]
    try:
        return int(raw)
    except ValueError:
        raise FleetValidationError(INVALID_VEHICLE_ID_MESSAGE, status_code=400) from None


async def _read_body(request: web.Request, model_cls: type[TRequest]) -> TRequest:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        raise FleetValidationError(INVALID_JSON_MESSAGE, status_code=400) from None
    if not isinstance(payload, dict):
        raise FleetValidationError(INVALID_JSON_MESSAGE, status_code=400)
    return validate_request(model_cls, payload)


# ------------------------------------------------------------------
# Vehicles
# ------------------------------------------------------------------


@_failure_message("Error fetching vehicles")
async def list_vehicles(request: web.Request) -> web.Response:
    vehicles = _repository(request).list_vehicles()
    return web.json_response([vehicle.to_wire() for vehicle in vehicles])


@_failure_message("Error fetching vehicle")
async def get_vehicle(request: web.Request) -> web.Response:
    vehicle = _repository(request).get_vehicle(_vehicle_id(request))
    return web.json_response(vehicle.to_wire())


@_failure_message("Error creating vehicle")
async def create_vehicle(request: web.Request) -> web.Response:
    payload = await _read_body(request, CreateVehicleRequest)
    vehicle = _repository(request).create_vehicle(payload)
    return web.json_response(vehicle.to_wire(), status=201)


@_failure_message("Error updating vehicle")
async def update_vehicle(request: web.Request) -> web.Response:
    vehicle_id = _vehicle_id(request)
    payload = await _read_body(request, UpdateVehicleRequest)
    vehicle = _repository(request).update_vehicle(vehicle_id, payload)
    return web.json_response(vehicle.to_wire())


@_failure_message("Error deleting vehicle")
async def delete_vehicle(request: web.Request) -> web.Response:
    _repository(request).delete_vehicle(_vehicle_id(request))
    return web.json_response({"message": "Vehicle deleted successfully"})


# ------------------------------------------------------------------
# Maintenance
# ------------------------------------------------------------------


@_failure_message("Error updating maintenance record")
async def add_maintenance(request: web.Request) -> web.Response:
    vehicle_id = _vehicle_id(request)
    payload = await _read_body(request, CreateMaintenanceRequest)
    vehicle = _repository(request).add_maintenance(vehicle_id, payload)
    return web.json_response(vehicle.to_wire())


@_failure_message("Error fetching maintenance history")
async def list_maintenance(request: web.Request) -> web.Response:
    records = _repository(request).list_maintenance(_vehicle_id(request))
    return web.json_response([record.to_wire() for record in records])


def create_app(repository: FleetRepository | None = None) -> web.Application:
    """Build the application; a fresh empty repository is used by default."""
    app = web.Application(middlewares=[error_middleware])
    app[REPOSITORY_KEY] = repository if repository is not None else FleetRepository()
    app.router.add_routes(
        [
            web.get(f"{API_PREFIX}/vehicles", list_vehicles),
            web.post(f"{API_PREFIX}/vehicles", create_vehicle),
            web.get(f"{API_PREFIX}/vehicles/{{id}}", get_vehicle),
            web.put(f"{API_PREFIX}/vehicles/{{id}}", update_vehicle),
            web.delete(f"{API_PREFIX}/vehicles/{{id}}", delete_vehicle),
            web.post(f"{API_PREFIX}/vehicles/{{id}}/maintenance", add_maintenance),
            web.get(f"{API_PREFIX}/vehicles/{{id}}/maintenance", list_maintenance),
        ]
    )
    return app
