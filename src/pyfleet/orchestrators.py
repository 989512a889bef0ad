"""Mutation orchestrators.

Each write goes through the same protocol:

1. gate on the form's submitting flag,
2. validate and send the request,
3. on success reconcile the entity cache (write the returned vehicle,
   invalidate lists), show a toast and close the modal,
4. on failure leave the cache untouched and put the error on the form.

Create and edit modals stay open after a failure so the input can be
corrected; the delete dialog always closes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pyfleet._api import maintenance as _maintenance_api
from pyfleet._api import vehicles as _vehicles_api
from pyfleet._constants import GENERIC_ERROR_MESSAGE
from pyfleet._transport import Transport
from pyfleet.cache import EntityCache, VehicleKeys
from pyfleet.exceptions import FleetApiError, FleetError, FleetTransportError
from pyfleet.models.requests import CreateMaintenanceRequest, CreateVehicleRequest, UpdateVehicleRequest
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.models import FormKind, ModalKind, OpenModal, ToastSeverity
from pyfleet.state.store import UiStateStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")

VEHICLE_CREATED_MESSAGE = "Vehicle registered successfully!"
VEHICLE_UPDATED_MESSAGE = "Vehicle updated successfully!"
VEHICLE_DELETED_MESSAGE = "Vehicle deleted successfully!"
VEHICLE_DELETE_FAILED_MESSAGE = "Failed to delete vehicle. Please try again."
MAINTENANCE_ADDED_MESSAGE = "Maintenance record added successfully!"


@dataclass(frozen=True, slots=True)
class MutationResult(Generic[T]):
    """Outcome of one orchestrated mutation.

    ``skipped`` is set when the call was ignored because the same form was
    already submitting (or there was no target to act on).
    """

    value: T | None = None
    error: FleetError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


def display_message(error: FleetError) -> str:
    """Text suitable for showing next to a form or in a toast."""
    if isinstance(error, FleetTransportError):
        return error.server_message or GENERIC_ERROR_MESSAGE
    return str(error) or GENERIC_ERROR_MESSAGE


def _field_errors(error: FleetError) -> dict[str, str]:
    if isinstance(error, FleetApiError):
        return error.field_error_map
    return {}


class VehicleMutations:
    """Create, update and delete vehicles and log maintenance.

    Shares the client's cache and UI store; never touches their internals.
    """

    def __init__(self, transport: Transport, cache: EntityCache, store: UiStateStore) -> None:
        self._transport = transport
        self._cache = cache
        self._store = store

    async def _run(self, form: FormKind, call: Callable[[], Awaitable[T]]) -> MutationResult[T]:
        if not self._store.begin_submit(form):
            _logger.debug("Ignoring %s submit; already submitting", form)
            return MutationResult(skipped=True)
        try:
            value = await call()
        except FleetError as exc:
            _logger.debug("%s submit failed: %s", form, exc)
            return MutationResult(error=exc)
        except BaseException:
            self._store.end_submit(form)
            raise
        return MutationResult(value=value)

    def _modal_target(self, kind: ModalKind) -> int | None:
        modal = self._store.modal
        if isinstance(modal, OpenModal) and modal.kind is kind:
            return modal.target_id
        return None

    def _fail_form(self, form: FormKind, error: FleetError) -> None:
        self._store.fail_submit(form, display_message(error), _field_errors(error))

    def _reconcile_vehicle(self, vehicle: Vehicle) -> None:
        self._cache.write(VehicleKeys.detail(vehicle.id), vehicle)
        self._cache.invalidate(VehicleKeys.lists())

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def create_vehicle(self, request: CreateVehicleRequest | Mapping[str, Any]) -> MutationResult[Vehicle]:
        """Register a vehicle from the add modal."""
        result = await self._run(
            FormKind.ADD,
            lambda: _vehicles_api.create_vehicle(self._transport, request),
        )
        if result.skipped:
            return result
        if result.error is not None:
            self._fail_form(FormKind.ADD, result.error)
            return result

        assert result.value is not None  # noqa: S101
        self._reconcile_vehicle(result.value)
        self._store.end_submit(FormKind.ADD)
        self._store.show_toast(VEHICLE_CREATED_MESSAGE, ToastSeverity.SUCCESS)
        self._store.close_add_modal()
        return result

    async def update_vehicle(
        self,
        request: UpdateVehicleRequest | Mapping[str, Any],
        vehicle_id: int | None = None,
    ) -> MutationResult[Vehicle]:
        """Apply an edit; *vehicle_id* defaults to the edit modal's target."""
        target = vehicle_id if vehicle_id is not None else self._modal_target(ModalKind.EDIT)
        if target is None:
            _logger.debug("Ignoring update without a target vehicle")
            return MutationResult(skipped=True)

        result = await self._run(
            FormKind.EDIT,
            lambda: _vehicles_api.update_vehicle(self._transport, target, request),
        )
        if result.skipped:
            return result
        if result.error is not None:
            self._fail_form(FormKind.EDIT, result.error)
            return result

        assert result.value is not None  # noqa: S101
        self._reconcile_vehicle(result.value)
        self._store.end_submit(FormKind.EDIT)
        self._store.show_toast(VEHICLE_UPDATED_MESSAGE, ToastSeverity.SUCCESS)
        self._store.close_edit_modal()
        return result

    async def delete_vehicle(self, vehicle_id: int | None = None) -> MutationResult[str]:
        """Delete a vehicle; *vehicle_id* defaults to the delete dialog's target.

        The dialog is closed whatever the outcome; failures are reported
        through an error toast.
        """
        target = vehicle_id if vehicle_id is not None else self._modal_target(ModalKind.DELETE)
        if target is None:
            _logger.debug("Ignoring delete without a target vehicle")
            return MutationResult(skipped=True)

        try:
            result = await self._run(
                FormKind.DELETE,
                lambda: _vehicles_api.delete_vehicle(self._transport, target),
            )
        except BaseException:
            self._store.close_delete_dialog()
            raise
        if result.skipped:
            return result

        self._store.end_submit(FormKind.DELETE)
        if result.error is not None:
            _logger.debug("Delete of vehicle %s failed: %s", target, result.error)
            self._store.show_toast(VEHICLE_DELETE_FAILED_MESSAGE, ToastSeverity.ERROR)
        else:
            self._cache.remove(VehicleKeys.detail(target))
            self._cache.remove(VehicleKeys.maintenance(target))
            self._cache.invalidate(VehicleKeys.lists())
            self._store.show_toast(VEHICLE_DELETED_MESSAGE, ToastSeverity.SUCCESS)
        self._store.close_delete_dialog()
        return result

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def add_maintenance(
        self,
        vehicle_id: int,
        request: CreateMaintenanceRequest | Mapping[str, Any],
    ) -> MutationResult[Vehicle]:
        """Log maintenance from the maintenance tab form.

        The server flips the vehicle to ``maintenance`` and returns it; the
        returned vehicle replaces the cached detail entry.
        """
        result = await self._run(
            FormKind.MAINTENANCE,
            lambda: _maintenance_api.add_maintenance(self._transport, vehicle_id, request),
        )
        if result.skipped:
            return result
        if result.error is not None:
            self._fail_form(FormKind.MAINTENANCE, result.error)
            return result

        assert result.value is not None  # noqa: S101
        self._cache.write(VehicleKeys.detail(vehicle_id), result.value)
        self._cache.invalidate(VehicleKeys.maintenance(vehicle_id))
        self._cache.invalidate(VehicleKeys.lists())
        self._store.end_submit(FormKind.MAINTENANCE)
        self._store.show_toast(MAINTENANCE_ADDED_MESSAGE, ToastSeverity.SUCCESS)
        return result
