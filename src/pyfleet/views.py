"""Render-ready views over the client's cache and UI store.

A view is the consumer side of the data flow: it reads entities through the
cache, re-derives when either the cache or the store changes, and drops
responses that arrive after it moved on (a newer request or ``close()``).
Dropped responses are still stored by the cache for everyone else.

Views never render anything themselves; they expose frozen view models and
call ``on_change`` whenever the model changes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pyfleet.cache import CacheKey, VehicleKeys
from pyfleet.derive import EmptyState, derive_vehicle_list
from pyfleet.exceptions import FleetError, FleetNotFoundError
from pyfleet.models.maintenance import MaintenanceRecord
from pyfleet.models.vehicle import Vehicle
from pyfleet.orchestrators import display_message
from pyfleet.state.models import ClosedModal, FilterState, FormState, OpenModal, ToastState, UiState, VehicleTab

if TYPE_CHECKING:
    from pyfleet.client import FleetClient

_logger = logging.getLogger(__name__)


class RequestGuard:
    """Tracks which request a consumer still cares about.

    Every :meth:`begin` supersedes the previous token; :meth:`cancel` and
    :meth:`close` supersede all outstanding ones.
    """

    def __init__(self) -> None:
        self._token = 0
        self._closed = False

    def begin(self) -> int:
        self._token += 1
        return self._token

    def is_current(self, token: int) -> bool:
        return not self._closed and token == self._token

    def cancel(self) -> None:
        self._token += 1

    def close(self) -> None:
        self._closed = True
        self.cancel()

    @property
    def closed(self) -> bool:
        return self._closed


class _Reloader:
    """Runs *load* in the background, coalescing requests made meanwhile."""

    def __init__(self, name: str, load: Callable[[], Awaitable[Any]]) -> None:
        self._name = name
        self._load = load
        self._task: asyncio.Task[None] | None = None
        self._again = False

    def schedule(self) -> None:
        if self._task is not None and not self._task.done():
            self._again = True
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running event loop; not reloading %s", self._name)
            return
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        while True:
            self._again = False
            await self._load()
            if not self._again:
                return

    async def settle(self) -> None:
        """Wait until no reload is pending."""
        while self._task is not None and not self._task.done():
            await self._task

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._again = False


def _notify(on_change: Callable[[Any], None] | None, model: Any) -> None:
    if on_change is None:
        return
    try:
        on_change(model)
    except Exception:
        _logger.warning("View change callback failed", exc_info=True)


# ------------------------------------------------------------------
# Vehicle list
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VehicleListModel:
    vehicles: list[Vehicle]
    total_count: int
    empty_state: EmptyState
    loading: bool
    error: str | None
    filter_state: FilterState
    selected_vehicle_id: int | None
    modal: ClosedModal | OpenModal
    toast: ToastState


class VehicleListView:
    """The fleet overview: filtered, sorted vehicles plus list-page UI state.

    Subscribes to the client's cache and store on construction; call
    :meth:`close` when done with it.
    """

    def __init__(
        self,
        client: FleetClient,
        on_change: Callable[[VehicleListModel], None] | None = None,
    ) -> None:
        self._client = client
        self._on_change = on_change
        self._guard = RequestGuard()
        self._vehicles: list[Vehicle] | None = None
        self._loading = False
        self._error: str | None = None
        self._reloader = _Reloader("vehicle list", self.load)
        self._unsubscribe_cache = client.cache.subscribe(self._on_cache_change)
        self._unsubscribe_store = client.store.subscribe(self._on_store_change)

    @property
    def model(self) -> VehicleListModel:
        state = self._client.store.state
        listing = derive_vehicle_list(self._vehicles or [], state.filter_state)
        # Nothing loaded yet is not the same as an empty fleet.
        empty_state = listing.empty_state if self._vehicles is not None else EmptyState.NONE
        return VehicleListModel(
            vehicles=listing.vehicles,
            total_count=listing.total_count,
            empty_state=empty_state,
            loading=self._loading,
            error=self._error,
            filter_state=state.filter_state,
            selected_vehicle_id=state.last_viewed_vehicle_id,
            modal=state.modal,
            toast=state.toast,
        )

    async def load(self) -> VehicleListModel:
        """Fetch the list through the cache and re-derive."""
        token = self._guard.begin()
        self._loading = True
        self._changed()
        try:
            vehicles = await self._client.get_vehicles()
        except FleetError as exc:
            if not self._guard.is_current(token):
                _logger.debug("Dropping superseded vehicle list error: %s", exc)
                return self.model
            self._loading = False
            self._error = display_message(exc)
            self._changed()
            return self.model

        if not self._guard.is_current(token):
            _logger.debug("Dropping superseded vehicle list response")
            return self.model
        self._vehicles = vehicles
        self._loading = False
        self._error = None
        self._changed()
        return self.model

    async def refresh(self) -> VehicleListModel:
        self._client.cache.invalidate(VehicleKeys.lists())
        return await self.load()

    async def settle(self) -> None:
        """Wait for reloads triggered by cache invalidation."""
        await self._reloader.settle()

    def open_vehicle(
        self,
        vehicle_id: int,
        on_change: Callable[[VehicleDetailModel], None] | None = None,
    ) -> VehicleDetailView:
        """Remember *vehicle_id* as last viewed and return its detail view."""
        self._client.store.set_last_viewed_vehicle(vehicle_id)
        return VehicleDetailView(self._client, vehicle_id, on_change)

    def close(self) -> None:
        self._guard.close()
        self._reloader.cancel()
        self._unsubscribe_cache()
        self._unsubscribe_store()

    def _changed(self) -> None:
        if not self._guard.closed:
            _notify(self._on_change, self.model)

    def _on_store_change(self, _state: UiState) -> None:
        self._changed()

    def _on_cache_change(self, key: CacheKey) -> None:
        if key != VehicleKeys.lists() or self._guard.closed:
            return
        cache = self._client.cache
        if cache.is_fresh(key):
            self._vehicles = cache.get(key)
            self._changed()
        elif self._vehicles is not None:
            self._reloader.schedule()


# ------------------------------------------------------------------
# Vehicle detail
# ------------------------------------------------------------------


class DetailStatus(StrEnum):
    LOADING = "loading"
    READY = "ready"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class VehicleDetailModel:
    vehicle_id: int
    status: DetailStatus
    vehicle: Vehicle | None
    error: str | None
    active_tab: VehicleTab
    maintenance: list[MaintenanceRecord] | None
    maintenance_loading: bool
    maintenance_error: str | None
    maintenance_form: FormState
    modal: ClosedModal | OpenModal
    toast: ToastState


class VehicleDetailView:
    """One vehicle with its tabs; loads maintenance when that tab is shown."""

    def __init__(
        self,
        client: FleetClient,
        vehicle_id: int,
        on_change: Callable[[VehicleDetailModel], None] | None = None,
    ) -> None:
        self._client = client
        self._vehicle_id = vehicle_id
        self._on_change = on_change
        self._guard = RequestGuard()
        self._maintenance_guard = RequestGuard()
        self._status = DetailStatus.LOADING
        self._vehicle: Vehicle | None = None
        self._error: str | None = None
        self._maintenance: list[MaintenanceRecord] | None = None
        self._maintenance_loading = False
        self._maintenance_error: str | None = None
        self._reloader = _Reloader(f"vehicle {vehicle_id}", self.load)
        self._maintenance_reloader = _Reloader(f"maintenance of vehicle {vehicle_id}", self.load_maintenance)
        self._unsubscribe_cache = client.cache.subscribe(self._on_cache_change)
        self._unsubscribe_store = client.store.subscribe(self._on_store_change)

    @property
    def vehicle_id(self) -> int:
        return self._vehicle_id

    @property
    def model(self) -> VehicleDetailModel:
        state = self._client.store.state
        return VehicleDetailModel(
            vehicle_id=self._vehicle_id,
            status=self._status,
            vehicle=self._vehicle,
            error=self._error,
            active_tab=state.active_tab,
            maintenance=self._maintenance,
            maintenance_loading=self._maintenance_loading,
            maintenance_error=self._maintenance_error,
            maintenance_form=state.maintenance_form,
            modal=state.modal,
            toast=state.toast,
        )

    async def load(self) -> VehicleDetailModel:
        token = self._guard.begin()
        try:
            vehicle = await self._client.get_vehicle(self._vehicle_id)
        except FleetNotFoundError:
            if self._guard.is_current(token):
                self._vehicle = None
                self._status = DetailStatus.NOT_FOUND
                self._error = None
                self._changed()
            return self.model
        except FleetError as exc:
            if self._guard.is_current(token):
                self._status = DetailStatus.ERROR
                self._error = display_message(exc)
                self._changed()
            return self.model

        if not self._guard.is_current(token):
            _logger.debug("Dropping superseded response for vehicle %s", self._vehicle_id)
            return self.model
        self._vehicle = vehicle
        self._status = DetailStatus.READY
        self._error = None
        self._changed()

        if self._client.store.active_tab is VehicleTab.MAINTENANCE and self._maintenance is None:
            await self.load_maintenance()
        return self.model

    async def load_maintenance(self) -> VehicleDetailModel:
        token = self._maintenance_guard.begin()
        self._maintenance_loading = True
        self._changed()
        try:
            records = await self._client.get_maintenance_history(self._vehicle_id)
        except FleetError as exc:
            if self._maintenance_guard.is_current(token):
                self._maintenance_loading = False
                self._maintenance_error = display_message(exc)
                self._changed()
            return self.model

        if not self._maintenance_guard.is_current(token):
            return self.model
        self._maintenance = records
        self._maintenance_loading = False
        self._maintenance_error = None
        self._changed()
        return self.model

    def set_tab(self, tab: VehicleTab | str) -> None:
        """Switch tabs; the maintenance tab loads its history in the background."""
        self._client.store.set_active_tab(tab)

    async def add_maintenance(self, request: Any) -> Any:
        return await self._client.add_maintenance(self._vehicle_id, request)

    async def settle(self) -> None:
        await self._reloader.settle()
        await self._maintenance_reloader.settle()

    def close(self) -> None:
        self._guard.close()
        self._maintenance_guard.close()
        self._reloader.cancel()
        self._maintenance_reloader.cancel()
        self._unsubscribe_cache()
        self._unsubscribe_store()

    def _changed(self) -> None:
        if not self._guard.closed:
            _notify(self._on_change, self.model)

    def _on_store_change(self, state: UiState) -> None:
        if self._guard.closed:
            return
        if (
            state.active_tab is VehicleTab.MAINTENANCE
            and self._status is DetailStatus.READY
            and self._maintenance is None
            and not self._maintenance_loading
        ):
            self._maintenance_reloader.schedule()
        self._changed()

    def _on_cache_change(self, key: CacheKey) -> None:
        if self._guard.closed:
            return
        cache = self._client.cache
        if key == VehicleKeys.detail(self._vehicle_id):
            if cache.is_fresh(key):
                self._vehicle = cache.get(key)
                self._status = DetailStatus.READY
                self._error = None
                self._changed()
            elif self._status is not DetailStatus.LOADING:
                self._reloader.schedule()
        elif key == VehicleKeys.maintenance(self._vehicle_id):
            if cache.is_fresh(key):
                self._maintenance = cache.get(key)
                self._changed()
            elif self._maintenance is not None:
                self._maintenance_reloader.schedule()
