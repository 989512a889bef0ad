"""pyfleet - Async client core for a fleet management REST API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfleet.cache import EntityCache, VehicleKeys
from pyfleet.client import FleetClient
from pyfleet.config import FleetConfig
from pyfleet.derive import EmptyState, VehicleListing, derive_vehicle_list, filter_vehicles, sort_vehicles
from pyfleet.exceptions import (
    FleetApiError,
    FleetConfigError,
    FleetConflictError,
    FleetError,
    FleetNotFoundError,
    FleetTransportError,
    FleetValidationError,
)
from pyfleet.models import (
    CreateMaintenanceRequest,
    CreateVehicleRequest,
    FieldError,
    MaintenanceRecord,
    UpdateVehicleRequest,
    Vehicle,
    VehicleStatus,
)
from pyfleet.orchestrators import MutationResult, VehicleMutations
from pyfleet.state import (
    FilterState,
    FormKind,
    ModalKind,
    SortColumn,
    SortDirection,
    ToastSeverity,
    UiState,
    UiStateStore,
    VehicleTab,
)
from pyfleet.views import DetailStatus, RequestGuard, VehicleDetailView, VehicleListView

__all__ = [
    "__version__",
    "CreateMaintenanceRequest",
    "CreateVehicleRequest",
    "DetailStatus",
    "EmptyState",
    "EntityCache",
    "FieldError",
    "FilterState",
    "FleetApiError",
    "FleetClient",
    "FleetConfig",
    "FleetConfigError",
    "FleetConflictError",
    "FleetError",
    "FleetNotFoundError",
    "FleetTransportError",
    "FleetValidationError",
    "FormKind",
    "MaintenanceRecord",
    "ModalKind",
    "MutationResult",
    "RequestGuard",
    "SortColumn",
    "SortDirection",
    "ToastSeverity",
    "UiState",
    "UiStateStore",
    "UpdateVehicleRequest",
    "Vehicle",
    "VehicleDetailView",
    "VehicleKeys",
    "VehicleListView",
    "VehicleListing",
    "VehicleMutations",
    "VehicleStatus",
    "VehicleTab",
    "derive_vehicle_list",
    "filter_vehicles",
    "sort_vehicles",
]
